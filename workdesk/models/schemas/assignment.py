from typing import Any
from uuid import UUID

from pydantic import field_validator

from workdesk.models.entities import AssignmentMode, WorkItemType
from workdesk.models.schemas.common import CamelCaseModel
from workdesk.models.schemas.work_item import blank_to_none


class AssignmentRequest(CamelCaseModel):
    """Body of ``PATCH /{tickets|tasks}/{id}/assignment``.

    Exactly which fields were sent matters: ``teamId: null`` removes a team
    assignment while an absent ``teamId`` means "not a team change". Use
    :meth:`has_field` rather than comparing against ``None``.
    """

    assignment_mode: AssignmentMode | None = None
    team_id: UUID | None = None
    assignee_ids: list[UUID] | None = None
    assignee_id: UUID | None = None
    claim_ticket: bool = False
    claim_task: bool = False

    @field_validator("team_id", "assignee_id", mode="before")
    @classmethod
    def normalize_blank_ids(cls, value: Any) -> Any:
        return blank_to_none(value)

    def has_field(self, name: str) -> bool:
        return name in self.model_fields_set

    def wants_claim(self, item_type: WorkItemType) -> bool:
        return self.claim_ticket if item_type == "TICKET" else self.claim_task
