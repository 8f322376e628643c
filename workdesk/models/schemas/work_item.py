from datetime import date, datetime
from typing import Annotated, Any
from uuid import UUID

from pydantic import Field, field_validator

from workdesk.models.entities import (
    AssignmentMode,
    WorkItemPriority,
    WorkItemStatus,
    WorkItemType,
)
from workdesk.models.schemas.activity import ActivityLogRead
from workdesk.models.schemas.comment import CommentRead
from workdesk.models.schemas.common import CamelCaseModel, ListMeta
from workdesk.models.schemas.reference import (
    CategorySummary,
    ProjectSummary,
    TeamSummary,
    UserSummary,
)
from workdesk.models.schemas.time_log import TimeLogRead

EstimatedHours = Annotated[float, Field(ge=0, le=999)]


def blank_to_none(value: Any) -> Any:
    if isinstance(value, str) and not value.strip():
        return None
    return value


class WorkItemCreateRequest(CamelCaseModel):
    title: str
    description: str
    priority: WorkItemPriority
    category_id: UUID | None = None
    project_id: UUID | None = None
    due_date: date | None = None
    estimated_hours: EstimatedHours | None = None
    assignment_mode: AssignmentMode | None = None
    team_id: UUID | None = None
    assignee_ids: list[UUID] = Field(default_factory=list)
    # Single-assignee form kept for older clients; same as assignee_ids=[id].
    assignee_id: UUID | None = None

    @field_validator(
        "category_id",
        "project_id",
        "team_id",
        "assignee_id",
        "due_date",
        mode="before",
    )
    @classmethod
    def normalize_blank_ids(cls, value: Any) -> Any:
        return blank_to_none(value)


class WorkItemUpdateRequest(CamelCaseModel):
    title: str | None = None
    description: str | None = None
    priority: WorkItemPriority | None = None
    status: WorkItemStatus | None = None
    category_id: UUID | None = None
    project_id: UUID | None = None
    due_date: date | None = None
    estimated_hours: EstimatedHours | None = None

    @field_validator("category_id", "project_id", "due_date", mode="before")
    @classmethod
    def normalize_blank_ids(cls, value: Any) -> Any:
        return blank_to_none(value)


class AssigneeRead(CamelCaseModel):
    user: UserSummary
    assigned_by: UUID | None = None
    assigned_at: datetime


class WorkItemRead(CamelCaseModel):
    id: UUID
    type: WorkItemType
    ticket_number: str | None = None
    task_number: str | None = None
    title: str
    description: str | None = None
    status: WorkItemStatus
    priority: WorkItemPriority
    assignment_mode: AssignmentMode | None = None
    team_id: UUID | None = None
    assignee_id: UUID | None = None
    creator_id: UUID
    category_id: UUID | None = None
    project_id: UUID | None = None
    due_date: date | None = None
    estimated_hours: float | None = None
    created_at: datetime
    updated_at: datetime
    completed_at: datetime | None = None
    creator: UserSummary | None = None
    assignee: UserSummary | None = None
    team: TeamSummary | None = None
    category: CategorySummary | None = None
    project: ProjectSummary | None = None
    assignees: list[AssigneeRead] = Field(default_factory=list)


class WorkItemDetailRead(WorkItemRead):
    comments: list[CommentRead] = Field(default_factory=list)
    time_logs: list[TimeLogRead] = Field(default_factory=list)
    activity_logs: list[ActivityLogRead] = Field(default_factory=list)


class WorkItemDataResponse(CamelCaseModel):
    data: WorkItemRead


class WorkItemDetailResponse(CamelCaseModel):
    data: WorkItemDetailRead


class WorkItemListResponse(CamelCaseModel):
    data: list[WorkItemRead]
    meta: ListMeta
