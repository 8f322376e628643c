from typing import Any
from uuid import UUID

from psycopg import Connection

from workdesk.models.entities import NotificationEntity
from workdesk.repositories.base import BaseRepository

NOTIFICATION_COLUMNS = "id, user_id, type, title, message, link, is_read, created_at"


def _to_notification_entity(row: dict[str, Any]) -> NotificationEntity:
    return NotificationEntity(
        id=row["id"],
        user_id=row["user_id"],
        type=row["type"],
        title=row["title"],
        message=row["message"],
        link=row["link"],
        is_read=row["is_read"],
        created_at=row["created_at"],
    )


class NotificationRepository(BaseRepository):
    def create(
        self,
        *,
        user_id: UUID,
        type: str,
        title: str,
        message: str,
        link: str | None = None,
        connection: Connection | None = None,
    ) -> NotificationEntity:
        query = f"""
            INSERT INTO notifications (user_id, type, title, message, link)
            VALUES (%s, %s, %s, %s, %s)
            RETURNING {NOTIFICATION_COLUMNS}
        """
        with self._use_connection(connection) as active_connection:
            with active_connection.cursor() as cursor:
                cursor.execute(query, (user_id, type, title, message, link))
                created = cursor.fetchone()
        if created is None:
            raise RuntimeError("Failed to create notification.")
        return _to_notification_entity(created)

    def list_for_user(
        self,
        user_id: UUID,
        *,
        unread_only: bool = False,
        limit: int = 50,
        connection: Connection | None = None,
    ) -> list[NotificationEntity]:
        query = f"SELECT {NOTIFICATION_COLUMNS} FROM notifications WHERE user_id = %s"
        if unread_only:
            query += " AND NOT is_read"
        query += " ORDER BY created_at DESC LIMIT %s"
        with self._use_connection(connection) as active_connection:
            with active_connection.cursor() as cursor:
                cursor.execute(query, (user_id, limit))
                rows = cursor.fetchall()
        return [_to_notification_entity(row) for row in rows]
