from uuid import UUID

from psycopg import Connection

from workdesk.models.entities import CategoryEntity, ProjectEntity, TeamEntity
from workdesk.repositories.base import BaseRepository


class ReferenceRepository(BaseRepository):
    """Read access to teams, categories and projects."""

    def get_team(self, team_id: UUID, connection: Connection | None = None) -> TeamEntity | None:
        with self._use_connection(connection) as active_connection:
            with active_connection.cursor() as cursor:
                cursor.execute("SELECT id, name, color FROM teams WHERE id = %s", (team_id,))
                row = cursor.fetchone()
        if row is None:
            return None
        return TeamEntity(id=row["id"], name=row["name"], color=row["color"])

    def list_teams(
        self,
        team_ids: list[UUID] | None = None,
        connection: Connection | None = None,
    ) -> list[TeamEntity]:
        query = "SELECT id, name, color FROM teams"
        params: tuple = ()
        if team_ids is not None:
            if not team_ids:
                return []
            query += " WHERE id = ANY(%s)"
            params = (list(dict.fromkeys(team_ids)),)
        query += " ORDER BY name ASC"
        with self._use_connection(connection) as active_connection:
            with active_connection.cursor() as cursor:
                cursor.execute(query, params)
                rows = cursor.fetchall()
        return [TeamEntity(id=row["id"], name=row["name"], color=row["color"]) for row in rows]

    def list_categories(
        self,
        category_ids: list[UUID],
        connection: Connection | None = None,
    ) -> list[CategoryEntity]:
        if not category_ids:
            return []
        query = "SELECT id, name, color FROM categories WHERE id = ANY(%s)"
        with self._use_connection(connection) as active_connection:
            with active_connection.cursor() as cursor:
                cursor.execute(query, (list(dict.fromkeys(category_ids)),))
                rows = cursor.fetchall()
        return [CategoryEntity(id=row["id"], name=row["name"], color=row["color"]) for row in rows]

    def list_all_categories(self, connection: Connection | None = None) -> list[CategoryEntity]:
        query = "SELECT id, name, color FROM categories ORDER BY name ASC"
        with self._use_connection(connection) as active_connection:
            with active_connection.cursor() as cursor:
                cursor.execute(query)
                rows = cursor.fetchall()
        return [CategoryEntity(id=row["id"], name=row["name"], color=row["color"]) for row in rows]

    def list_projects(
        self,
        project_ids: list[UUID],
        connection: Connection | None = None,
    ) -> list[ProjectEntity]:
        if not project_ids:
            return []
        query = "SELECT id, name FROM projects WHERE id = ANY(%s)"
        with self._use_connection(connection) as active_connection:
            with active_connection.cursor() as cursor:
                cursor.execute(query, (list(dict.fromkeys(project_ids)),))
                rows = cursor.fetchall()
        return [ProjectEntity(id=row["id"], name=row["name"]) for row in rows]
