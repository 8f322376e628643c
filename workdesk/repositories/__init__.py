"""Database repositories."""

from workdesk.repositories.activity_log_repository import ActivityLogRepository
from workdesk.repositories.comment_repository import CommentRepository
from workdesk.repositories.health_repository import HealthRepository
from workdesk.repositories.notification_repository import NotificationRepository
from workdesk.repositories.reference_repository import ReferenceRepository
from workdesk.repositories.time_log_repository import TimeLogRepository
from workdesk.repositories.user_repository import UserRepository
from workdesk.repositories.work_item_assignee_repository import WorkItemAssigneeRepository
from workdesk.repositories.work_item_repository import WorkItemRepository

__all__ = [
    "ActivityLogRepository",
    "CommentRepository",
    "HealthRepository",
    "NotificationRepository",
    "ReferenceRepository",
    "TimeLogRepository",
    "UserRepository",
    "WorkItemAssigneeRepository",
    "WorkItemRepository",
]
