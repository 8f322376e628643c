"""Pydantic schema definitions."""

from workdesk.models.schemas.activity import ActivityLogRead
from workdesk.models.schemas.assignment import AssignmentRequest
from workdesk.models.schemas.comment import CommentCreateRequest, CommentDataResponse, CommentRead
from workdesk.models.schemas.common import CamelCaseModel, ListMeta
from workdesk.models.schemas.health import DatabaseHealth, HealthResponse
from workdesk.models.schemas.reference import (
    AssignableUserListResponse,
    AssignableUserRead,
    CategoryListResponse,
    CategorySummary,
    ProjectSummary,
    TeamListResponse,
    TeamSummary,
    UserSummary,
)
from workdesk.models.schemas.time_log import (
    ActiveTimerResponse,
    TimeLogDataResponse,
    TimeLogRead,
    TimerStartRequest,
    TimerStopRequest,
)
from workdesk.models.schemas.work_item import (
    AssigneeRead,
    WorkItemCreateRequest,
    WorkItemDataResponse,
    WorkItemDetailRead,
    WorkItemDetailResponse,
    WorkItemListResponse,
    WorkItemRead,
    WorkItemUpdateRequest,
)

__all__ = [
    "ActiveTimerResponse",
    "ActivityLogRead",
    "AssignableUserListResponse",
    "AssignableUserRead",
    "AssigneeRead",
    "AssignmentRequest",
    "CamelCaseModel",
    "CategoryListResponse",
    "CategorySummary",
    "CommentCreateRequest",
    "CommentDataResponse",
    "CommentRead",
    "DatabaseHealth",
    "HealthResponse",
    "ListMeta",
    "ProjectSummary",
    "TeamListResponse",
    "TeamSummary",
    "TimeLogDataResponse",
    "TimeLogRead",
    "TimerStartRequest",
    "TimerStopRequest",
    "UserSummary",
    "WorkItemCreateRequest",
    "WorkItemDataResponse",
    "WorkItemDetailRead",
    "WorkItemDetailResponse",
    "WorkItemListResponse",
    "WorkItemRead",
    "WorkItemUpdateRequest",
]
