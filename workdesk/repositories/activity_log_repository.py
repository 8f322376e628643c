from typing import Any
from uuid import UUID

from psycopg import Connection
from psycopg.types.json import Jsonb

from workdesk.models.entities import ActivityLogEntity
from workdesk.repositories.base import BaseRepository


def _to_activity_log_entity(row: dict[str, Any]) -> ActivityLogEntity:
    return ActivityLogEntity(
        id=row["id"],
        work_item_id=row["work_item_id"],
        user_id=row["user_id"],
        action=row["action"],
        changes=row["changes"] or {},
        created_at=row["created_at"],
    )


class ActivityLogRepository(BaseRepository):
    def create(
        self,
        *,
        work_item_id: UUID,
        user_id: UUID,
        action: str,
        changes: dict[str, Any],
        connection: Connection | None = None,
    ) -> ActivityLogEntity:
        query = """
            INSERT INTO activity_logs (work_item_id, user_id, action, changes, created_at)
            VALUES (%s, %s, %s, %s, clock_timestamp())
            RETURNING id, work_item_id, user_id, action, changes, created_at
        """
        with self._use_connection(connection) as active_connection:
            with active_connection.cursor() as cursor:
                cursor.execute(query, (work_item_id, user_id, action, Jsonb(changes)))
                created = cursor.fetchone()
        if created is None:
            raise RuntimeError("Failed to write activity log.")
        return _to_activity_log_entity(created)

    def list_for_work_item(
        self,
        work_item_id: UUID,
        *,
        limit: int = 20,
        connection: Connection | None = None,
    ) -> list[ActivityLogEntity]:
        query = """
            SELECT id, work_item_id, user_id, action, changes, created_at
            FROM activity_logs
            WHERE work_item_id = %s
            ORDER BY created_at DESC, id DESC
            LIMIT %s
        """
        with self._use_connection(connection) as active_connection:
            with active_connection.cursor() as cursor:
                cursor.execute(query, (work_item_id, limit))
                rows = cursor.fetchall()
        return [_to_activity_log_entity(row) for row in rows]
