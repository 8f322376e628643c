from datetime import datetime
from uuid import UUID

from workdesk.models.schemas.common import CamelCaseModel
from workdesk.models.schemas.reference import UserSummary


class CommentCreateRequest(CamelCaseModel):
    work_item_id: UUID
    content: str
    is_internal: bool = False


class CommentRead(CamelCaseModel):
    id: UUID
    work_item_id: UUID
    content: str
    is_internal: bool
    created_at: datetime
    user: UserSummary | None = None


class CommentDataResponse(CamelCaseModel):
    data: CommentRead
