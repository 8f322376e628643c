from datetime import datetime
from typing import Any
from uuid import UUID

from workdesk.models.schemas.common import CamelCaseModel


class ActivityLogRead(CamelCaseModel):
    id: UUID
    work_item_id: UUID
    user_id: UUID
    action: str
    changes: dict[str, Any]
    created_at: datetime
