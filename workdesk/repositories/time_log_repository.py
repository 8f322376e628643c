from datetime import datetime
from typing import Any
from uuid import UUID

from psycopg import Connection

from workdesk.models.entities import TimeLogEntity
from workdesk.repositories.base import BaseRepository

TIME_LOG_COLUMNS = (
    "id, work_item_id, user_id, started_at, ended_at, duration_mins, is_running, notes"
)


def _to_time_log_entity(row: dict[str, Any]) -> TimeLogEntity:
    return TimeLogEntity(
        id=row["id"],
        work_item_id=row["work_item_id"],
        user_id=row["user_id"],
        started_at=row["started_at"],
        ended_at=row["ended_at"],
        duration_mins=row["duration_mins"],
        is_running=row["is_running"],
        notes=row["notes"],
    )


class TimeLogRepository(BaseRepository):
    def get_by_id(
        self,
        time_log_id: UUID,
        *,
        for_update: bool = False,
        connection: Connection | None = None,
    ) -> TimeLogEntity | None:
        query = f"SELECT {TIME_LOG_COLUMNS} FROM time_logs WHERE id = %s"
        if for_update:
            query += " FOR UPDATE"
        with self._use_connection(connection) as active_connection:
            with active_connection.cursor() as cursor:
                cursor.execute(query, (time_log_id,))
                row = cursor.fetchone()
        if row is None:
            return None
        return _to_time_log_entity(row)

    def get_running_for_user(
        self,
        user_id: UUID,
        *,
        for_update: bool = False,
        connection: Connection | None = None,
    ) -> TimeLogEntity | None:
        query = f"SELECT {TIME_LOG_COLUMNS} FROM time_logs WHERE user_id = %s AND is_running"
        if for_update:
            query += " FOR UPDATE"
        with self._use_connection(connection) as active_connection:
            with active_connection.cursor() as cursor:
                cursor.execute(query, (user_id,))
                row = cursor.fetchone()
        if row is None:
            return None
        return _to_time_log_entity(row)

    def start(
        self,
        *,
        work_item_id: UUID,
        user_id: UUID,
        started_at: datetime,
        notes: str | None = None,
        connection: Connection | None = None,
    ) -> TimeLogEntity:
        query = f"""
            INSERT INTO time_logs (work_item_id, user_id, started_at, is_running, notes)
            VALUES (%s, %s, %s, TRUE, %s)
            RETURNING {TIME_LOG_COLUMNS}
        """
        with self._use_connection(connection) as active_connection:
            with active_connection.cursor() as cursor:
                cursor.execute(query, (work_item_id, user_id, started_at, notes))
                created = cursor.fetchone()
        if created is None:
            raise RuntimeError("Failed to start timer.")
        return _to_time_log_entity(created)

    def stop(
        self,
        *,
        time_log_id: UUID,
        ended_at: datetime,
        duration_mins: int,
        notes: str | None,
        connection: Connection | None = None,
    ) -> TimeLogEntity | None:
        query = f"""
            UPDATE time_logs
            SET is_running = FALSE,
                ended_at = %s,
                duration_mins = %s,
                notes = %s
            WHERE id = %s
            RETURNING {TIME_LOG_COLUMNS}
        """
        with self._use_connection(connection) as active_connection:
            with active_connection.cursor() as cursor:
                cursor.execute(query, (ended_at, duration_mins, notes, time_log_id))
                row = cursor.fetchone()
        if row is None:
            return None
        return _to_time_log_entity(row)

    def list_for_work_item(
        self,
        work_item_id: UUID,
        *,
        limit: int = 10,
        connection: Connection | None = None,
    ) -> list[TimeLogEntity]:
        query = f"""
            SELECT {TIME_LOG_COLUMNS}
            FROM time_logs
            WHERE work_item_id = %s
            ORDER BY started_at DESC
            LIMIT %s
        """
        with self._use_connection(connection) as active_connection:
            with active_connection.cursor() as cursor:
                cursor.execute(query, (work_item_id, limit))
                rows = cursor.fetchall()
        return [_to_time_log_entity(row) for row in rows]
