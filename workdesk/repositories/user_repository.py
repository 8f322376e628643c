from typing import Any
from uuid import UUID

from psycopg import Connection

from workdesk.models.entities import UserEntity, UserRole
from workdesk.repositories.base import BaseRepository

USER_COLUMNS = "id, name, email, role, team_id, is_active"


def _to_user_entity(row: dict[str, Any]) -> UserEntity:
    return UserEntity(
        id=row["id"],
        name=row["name"],
        email=row["email"],
        role=row["role"],
        team_id=row["team_id"],
        is_active=row["is_active"],
    )


class UserRepository(BaseRepository):
    def get_by_id(self, user_id: UUID, connection: Connection | None = None) -> UserEntity | None:
        query = f"SELECT {USER_COLUMNS} FROM users WHERE id = %s"
        with self._use_connection(connection) as active_connection:
            with active_connection.cursor() as cursor:
                cursor.execute(query, (user_id,))
                row = cursor.fetchone()
        if row is None:
            return None
        return _to_user_entity(row)

    def list_by_ids(
        self,
        user_ids: list[UUID],
        connection: Connection | None = None,
    ) -> list[UserEntity]:
        deduped_ids = list(dict.fromkeys(user_ids))
        if not deduped_ids:
            return []

        query = f"SELECT {USER_COLUMNS} FROM users WHERE id = ANY(%s)"
        with self._use_connection(connection) as active_connection:
            with active_connection.cursor() as cursor:
                cursor.execute(query, (deduped_ids,))
                rows = cursor.fetchall()
        return [_to_user_entity(row) for row in rows]

    def list_active(
        self,
        *,
        roles: list[UserRole] | None = None,
        team_id: UUID | None = None,
        connection: Connection | None = None,
    ) -> list[UserEntity]:
        where_clauses = ["is_active"]
        params: list[Any] = []
        if roles:
            where_clauses.append("role = ANY(%s)")
            params.append(list(roles))
        if team_id is not None:
            where_clauses.append("team_id = %s")
            params.append(team_id)

        query = f"""
            SELECT {USER_COLUMNS}
            FROM users
            WHERE {" AND ".join(where_clauses)}
            ORDER BY role ASC, name ASC
        """
        with self._use_connection(connection) as active_connection:
            with active_connection.cursor() as cursor:
                cursor.execute(query, params)
                rows = cursor.fetchall()
        return [_to_user_entity(row) for row in rows]
