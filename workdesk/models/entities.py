from dataclasses import dataclass
from datetime import date, datetime
from typing import Any, Literal
from uuid import UUID

WorkItemType = Literal["TICKET", "TASK"]
WorkItemStatus = Literal["OPEN", "IN_PROGRESS", "ON_HOLD", "RESOLVED", "CLOSED", "CANCELLED"]
WorkItemPriority = Literal["LOW", "MEDIUM", "HIGH", "CRITICAL"]
AssignmentMode = Literal["team", "individuals"]
UserRole = Literal["USER", "AGENT", "MANAGER", "ADMIN"]

NUMBER_PREFIXES: dict[str, str] = {"TICKET": "T-", "TASK": "TASK-"}


def format_display_number(item_type: WorkItemType, value: int) -> str:
    return f"{NUMBER_PREFIXES[item_type]}{value:04d}"


@dataclass(slots=True, frozen=True)
class Principal:
    """The authenticated caller as asserted by the access token."""

    id: UUID
    role: UserRole
    team_id: UUID | None = None


@dataclass(slots=True)
class WorkItemEntity:
    id: UUID
    type: WorkItemType
    ticket_number: str | None
    task_number: str | None
    title: str
    description: str | None
    status: WorkItemStatus
    priority: WorkItemPriority
    assignment_mode: AssignmentMode | None
    team_id: UUID | None
    assignee_id: UUID | None
    creator_id: UUID
    category_id: UUID | None
    project_id: UUID | None
    due_date: date | None
    estimated_hours: float | None
    created_at: datetime
    updated_at: datetime
    completed_at: datetime | None

    @property
    def display_number(self) -> str:
        return self.ticket_number or self.task_number or str(self.id)


@dataclass(slots=True)
class WorkItemAssigneeEntity:
    work_item_id: UUID
    user_id: UUID
    assigned_by: UUID | None
    assigned_at: datetime


@dataclass(slots=True)
class ActivityLogEntity:
    id: UUID
    work_item_id: UUID
    user_id: UUID
    action: str
    changes: dict[str, Any]
    created_at: datetime


@dataclass(slots=True)
class NotificationEntity:
    id: UUID
    user_id: UUID
    type: str
    title: str
    message: str
    link: str | None
    is_read: bool
    created_at: datetime


@dataclass(slots=True)
class TimeLogEntity:
    id: UUID
    work_item_id: UUID
    user_id: UUID
    started_at: datetime
    ended_at: datetime | None
    duration_mins: int | None
    is_running: bool
    notes: str | None


@dataclass(slots=True)
class CommentEntity:
    id: UUID
    work_item_id: UUID
    user_id: UUID
    content: str
    is_internal: bool
    created_at: datetime


@dataclass(slots=True)
class UserEntity:
    id: UUID
    name: str
    email: str
    role: UserRole
    team_id: UUID | None
    is_active: bool = True


@dataclass(slots=True)
class TeamEntity:
    id: UUID
    name: str
    color: str | None = None


@dataclass(slots=True)
class CategoryEntity:
    id: UUID
    name: str
    color: str | None = None


@dataclass(slots=True)
class ProjectEntity:
    id: UUID
    name: str


@dataclass(slots=True, frozen=True)
class VisibilityScope:
    """Which work items a caller may see.

    An unrestricted scope matches everything. Otherwise an item matches when
    any enabled relationship holds: the caller is an assignee (legacy field or
    assignee list), the caller created it (``include_created``), or it belongs
    to ``team_id`` (only in team mode when ``team_mode_only``).
    """

    unrestricted: bool = False
    user_id: UUID | None = None
    include_created: bool = False
    team_id: UUID | None = None
    team_mode_only: bool = False

