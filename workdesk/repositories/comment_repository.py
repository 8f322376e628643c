from typing import Any
from uuid import UUID

from psycopg import Connection

from workdesk.models.entities import CommentEntity
from workdesk.repositories.base import BaseRepository

COMMENT_COLUMNS = "id, work_item_id, user_id, content, is_internal, created_at"


def _to_comment_entity(row: dict[str, Any]) -> CommentEntity:
    return CommentEntity(
        id=row["id"],
        work_item_id=row["work_item_id"],
        user_id=row["user_id"],
        content=row["content"],
        is_internal=row["is_internal"],
        created_at=row["created_at"],
    )


class CommentRepository(BaseRepository):
    def create(
        self,
        *,
        work_item_id: UUID,
        user_id: UUID,
        content: str,
        is_internal: bool,
        connection: Connection | None = None,
    ) -> CommentEntity:
        query = f"""
            INSERT INTO comments (work_item_id, user_id, content, is_internal)
            VALUES (%s, %s, %s, %s)
            RETURNING {COMMENT_COLUMNS}
        """
        with self._use_connection(connection) as active_connection:
            with active_connection.cursor() as cursor:
                cursor.execute(query, (work_item_id, user_id, content, is_internal))
                created = cursor.fetchone()
        if created is None:
            raise RuntimeError("Failed to create comment.")
        return _to_comment_entity(created)

    def list_for_work_item(
        self,
        work_item_id: UUID,
        *,
        include_internal: bool,
        connection: Connection | None = None,
    ) -> list[CommentEntity]:
        query = f"SELECT {COMMENT_COLUMNS} FROM comments WHERE work_item_id = %s"
        if not include_internal:
            query += " AND NOT is_internal"
        query += " ORDER BY created_at ASC"
        with self._use_connection(connection) as active_connection:
            with active_connection.cursor() as cursor:
                cursor.execute(query, (work_item_id,))
                rows = cursor.fetchall()
        return [_to_comment_entity(row) for row in rows]
