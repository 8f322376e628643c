"""Domain models and API schemas."""

from workdesk.models.entities import (
    ActivityLogEntity,
    CommentEntity,
    NotificationEntity,
    Principal,
    TeamEntity,
    TimeLogEntity,
    UserEntity,
    VisibilityScope,
    WorkItemAssigneeEntity,
    WorkItemEntity,
    WorkItemStatus,
    WorkItemType,
)

__all__ = [
    "ActivityLogEntity",
    "CommentEntity",
    "NotificationEntity",
    "Principal",
    "TeamEntity",
    "TimeLogEntity",
    "UserEntity",
    "VisibilityScope",
    "WorkItemAssigneeEntity",
    "WorkItemEntity",
    "WorkItemStatus",
    "WorkItemType",
]
