from typing import Any
from uuid import UUID

from psycopg import Connection

from workdesk.models.entities import WorkItemAssigneeEntity
from workdesk.repositories.base import BaseRepository


def _to_assignee_entity(row: dict[str, Any]) -> WorkItemAssigneeEntity:
    return WorkItemAssigneeEntity(
        work_item_id=row["work_item_id"],
        user_id=row["user_id"],
        assigned_by=row["assigned_by"],
        assigned_at=row["assigned_at"],
    )


class WorkItemAssigneeRepository(BaseRepository):
    def list_for_work_item(
        self,
        work_item_id: UUID,
        connection: Connection | None = None,
    ) -> list[WorkItemAssigneeEntity]:
        query = """
            SELECT work_item_id, user_id, assigned_by, assigned_at
            FROM work_item_assignees
            WHERE work_item_id = %s
            ORDER BY assigned_at ASC, user_id ASC
        """
        with self._use_connection(connection) as active_connection:
            with active_connection.cursor() as cursor:
                cursor.execute(query, (work_item_id,))
                rows = cursor.fetchall()
        return [_to_assignee_entity(row) for row in rows]

    def list_for_work_items(
        self,
        work_item_ids: list[UUID],
        connection: Connection | None = None,
    ) -> dict[UUID, list[WorkItemAssigneeEntity]]:
        if not work_item_ids:
            return {}

        query = """
            SELECT work_item_id, user_id, assigned_by, assigned_at
            FROM work_item_assignees
            WHERE work_item_id = ANY(%s)
            ORDER BY work_item_id ASC, assigned_at ASC, user_id ASC
        """
        with self._use_connection(connection) as active_connection:
            with active_connection.cursor() as cursor:
                cursor.execute(query, (work_item_ids,))
                rows = cursor.fetchall()

        mapping: dict[UUID, list[WorkItemAssigneeEntity]] = {
            work_item_id: [] for work_item_id in work_item_ids
        }
        for row in rows:
            mapping[row["work_item_id"]].append(_to_assignee_entity(row))
        return mapping

    def add_many(
        self,
        *,
        work_item_id: UUID,
        user_ids: list[UUID],
        assigned_by: UUID,
        connection: Connection | None = None,
    ) -> None:
        if not user_ids:
            return

        # clock_timestamp() keeps insertion order visible within one transaction.
        query = """
            INSERT INTO work_item_assignees (work_item_id, user_id, assigned_by, assigned_at)
            VALUES (%s, %s, %s, clock_timestamp())
        """
        with self._use_connection(connection) as active_connection:
            with active_connection.cursor() as cursor:
                cursor.executemany(
                    query,
                    [(work_item_id, user_id, assigned_by) for user_id in user_ids],
                )

    def remove_users(
        self,
        *,
        work_item_id: UUID,
        user_ids: list[UUID],
        connection: Connection | None = None,
    ) -> int:
        if not user_ids:
            return 0

        query = "DELETE FROM work_item_assignees WHERE work_item_id = %s AND user_id = ANY(%s)"
        with self._use_connection(connection) as active_connection:
            with active_connection.cursor() as cursor:
                cursor.execute(query, (work_item_id, user_ids))
                return cursor.rowcount

    def clear(self, *, work_item_id: UUID, connection: Connection | None = None) -> int:
        query = "DELETE FROM work_item_assignees WHERE work_item_id = %s"
        with self._use_connection(connection) as active_connection:
            with active_connection.cursor() as cursor:
                cursor.execute(query, (work_item_id,))
                return cursor.rowcount
