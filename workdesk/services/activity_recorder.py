from typing import Any
from uuid import UUID

from fastapi.encoders import jsonable_encoder
from psycopg import Connection

from workdesk.models.entities import ActivityLogEntity, WorkItemEntity, WorkItemType
from workdesk.repositories.activity_log_repository import ActivityLogRepository
from workdesk.repositories.notification_repository import NotificationRepository

ITEM_LABELS: dict[str, str] = {"TICKET": "ticket", "TASK": "task"}


def item_label(item_type: WorkItemType) -> str:
    return ITEM_LABELS[item_type]


def item_link(item: WorkItemEntity) -> str:
    return f"/{item_label(item.type)}s/{item.id}"


def promote_status(status: str) -> str:
    """Status after somebody is assigned: only OPEN moves on."""
    return "IN_PROGRESS" if status == "OPEN" else status


class ActivityRecorder:
    """Writes the audit trail and user notifications of work item changes."""

    def __init__(
        self,
        activity_log_repository: ActivityLogRepository,
        notification_repository: NotificationRepository,
    ) -> None:
        self.activity_log_repository = activity_log_repository
        self.notification_repository = notification_repository

    def record(
        self,
        *,
        work_item_id: UUID,
        actor_id: UUID,
        action: str,
        changes: dict[str, Any],
        connection: Connection | None = None,
    ) -> ActivityLogEntity:
        return self.activity_log_repository.create(
            work_item_id=work_item_id,
            user_id=actor_id,
            action=action,
            changes=jsonable_encoder(changes),
            connection=connection,
        )

    def notify_assigned(
        self,
        *,
        item: WorkItemEntity,
        user_id: UUID,
        connection: Connection | None = None,
    ) -> None:
        label = item_label(item.type)
        self.notification_repository.create(
            user_id=user_id,
            type=f"{item.type}_ASSIGNED",
            title=f"New {label.capitalize()} Assigned",
            message=f"You have been assigned to {label} {item.display_number}: {item.title}",
            link=item_link(item),
            connection=connection,
        )

    def notify_comment(
        self,
        *,
        item: WorkItemEntity,
        author_name: str,
        connection: Connection | None = None,
    ) -> None:
        label = item_label(item.type)
        self.notification_repository.create(
            user_id=item.creator_id,
            type="COMMENT_ADDED",
            title=f"New comment on your {label}",
            message=f"{author_name} commented on {label} {item.display_number}: {item.title}",
            link=item_link(item),
            connection=connection,
        )
