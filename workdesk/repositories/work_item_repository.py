from datetime import date
from typing import Any
from uuid import UUID

from psycopg import Connection

from workdesk.models.entities import (
    AssignmentMode,
    VisibilityScope,
    WorkItemEntity,
    WorkItemPriority,
    WorkItemStatus,
    WorkItemType,
)
from workdesk.repositories.base import BaseRepository

WORK_ITEM_COLUMNS = """
    id, type, ticket_number, task_number, title, description, status, priority,
    assignment_mode, team_id, assignee_id, creator_id, category_id, project_id,
    due_date, estimated_hours, created_at, updated_at, completed_at
"""

# Columns a partial update may touch; anything else is rejected.
UPDATABLE_COLUMNS = frozenset(
    {
        "title",
        "description",
        "priority",
        "status",
        "category_id",
        "project_id",
        "due_date",
        "estimated_hours",
        "completed_at",
    }
)


def _to_work_item_entity(row: dict[str, Any]) -> WorkItemEntity:
    return WorkItemEntity(
        id=row["id"],
        type=row["type"],
        ticket_number=row["ticket_number"],
        task_number=row["task_number"],
        title=row["title"],
        description=row["description"],
        status=row["status"],
        priority=row["priority"],
        assignment_mode=row["assignment_mode"],
        team_id=row["team_id"],
        assignee_id=row["assignee_id"],
        creator_id=row["creator_id"],
        category_id=row["category_id"],
        project_id=row["project_id"],
        due_date=row["due_date"],
        estimated_hours=row["estimated_hours"],
        created_at=row["created_at"],
        updated_at=row["updated_at"],
        completed_at=row["completed_at"],
    )


def _visibility_clause(scope: VisibilityScope) -> tuple[str | None, list[Any]]:
    if scope.unrestricted:
        return None, []

    clauses: list[str] = []
    params: list[Any] = []
    if scope.user_id is not None:
        clauses.append("w.assignee_id = %s")
        params.append(scope.user_id)
        clauses.append(
            "EXISTS (SELECT 1 FROM work_item_assignees a "
            "WHERE a.work_item_id = w.id AND a.user_id = %s)"
        )
        params.append(scope.user_id)
        if scope.include_created:
            clauses.append("w.creator_id = %s")
            params.append(scope.user_id)
    if scope.team_id is not None:
        if scope.team_mode_only:
            clauses.append("(w.team_id = %s AND w.assignment_mode = 'team')")
        else:
            clauses.append("w.team_id = %s")
        params.append(scope.team_id)

    if not clauses:
        # A restricted scope with no relationship matches nothing.
        return "FALSE", []
    return "(" + " OR ".join(clauses) + ")", params


class WorkItemRepository(BaseRepository):
    def next_number(self, *, item_type: WorkItemType, connection: Connection | None = None) -> int:
        """Allocate the next display number for ``item_type``.

        The upsert locks the counter row until the surrounding transaction
        ends, so concurrent creations of one type are serialized.
        """
        query = """
            INSERT INTO work_item_counters (type, last_value)
            VALUES (%s, 1)
            ON CONFLICT (type) DO UPDATE
            SET last_value = work_item_counters.last_value + 1
            RETURNING last_value
        """
        with self._use_connection(connection) as active_connection:
            with active_connection.cursor() as cursor:
                cursor.execute(query, (item_type,))
                row = cursor.fetchone()
        if row is None:
            raise RuntimeError("Failed to allocate a work item number.")
        return int(row["last_value"])

    def create(
        self,
        *,
        item_type: WorkItemType,
        number: str,
        title: str,
        description: str | None,
        priority: WorkItemPriority,
        creator_id: UUID,
        category_id: UUID | None = None,
        project_id: UUID | None = None,
        due_date: date | None = None,
        estimated_hours: float | None = None,
        assignment_mode: AssignmentMode | None = None,
        team_id: UUID | None = None,
        assignee_id: UUID | None = None,
        connection: Connection | None = None,
    ) -> WorkItemEntity:
        query = f"""
            INSERT INTO work_items (
                type, ticket_number, task_number, title, description, status, priority,
                assignment_mode, team_id, assignee_id, creator_id, category_id, project_id,
                due_date, estimated_hours
            )
            VALUES (%s, %s, %s, %s, %s, 'OPEN', %s, %s, %s, %s, %s, %s, %s, %s, %s)
            RETURNING {WORK_ITEM_COLUMNS}
        """
        ticket_number = number if item_type == "TICKET" else None
        task_number = number if item_type == "TASK" else None
        params = (
            item_type,
            ticket_number,
            task_number,
            title,
            description,
            priority,
            assignment_mode,
            team_id,
            assignee_id,
            creator_id,
            category_id,
            project_id,
            due_date,
            estimated_hours,
        )
        with self._use_connection(connection) as active_connection:
            with active_connection.cursor() as cursor:
                cursor.execute(query, params)
                created = cursor.fetchone()
        if created is None:
            raise RuntimeError("Failed to create work item.")
        return _to_work_item_entity(created)

    def get_by_id(
        self,
        work_item_id: UUID,
        *,
        item_type: WorkItemType | None = None,
        for_update: bool = False,
        connection: Connection | None = None,
    ) -> WorkItemEntity | None:
        query = f"SELECT {WORK_ITEM_COLUMNS} FROM work_items WHERE id = %s"
        params: list[Any] = [work_item_id]
        if item_type is not None:
            query += " AND type = %s"
            params.append(item_type)
        if for_update:
            query += " FOR UPDATE"
        with self._use_connection(connection) as active_connection:
            with active_connection.cursor() as cursor:
                cursor.execute(query, params)
                row = cursor.fetchone()
        if row is None:
            return None
        return _to_work_item_entity(row)

    def update_assignment(
        self,
        *,
        work_item_id: UUID,
        assignment_mode: AssignmentMode | None,
        team_id: UUID | None,
        assignee_id: UUID | None,
        status: WorkItemStatus,
        connection: Connection | None = None,
    ) -> WorkItemEntity | None:
        query = f"""
            UPDATE work_items
            SET assignment_mode = %s,
                team_id = %s,
                assignee_id = %s,
                status = %s,
                updated_at = NOW()
            WHERE id = %s
            RETURNING {WORK_ITEM_COLUMNS}
        """
        with self._use_connection(connection) as active_connection:
            with active_connection.cursor() as cursor:
                cursor.execute(
                    query,
                    (assignment_mode, team_id, assignee_id, status, work_item_id),
                )
                row = cursor.fetchone()
        if row is None:
            return None
        return _to_work_item_entity(row)

    def update_fields(
        self,
        *,
        work_item_id: UUID,
        fields: dict[str, Any],
        connection: Connection | None = None,
    ) -> WorkItemEntity | None:
        unknown = set(fields) - UPDATABLE_COLUMNS
        if unknown:
            raise ValueError(f"Cannot update work item columns: {sorted(unknown)}")

        assignments = [f"{column} = %s" for column in fields]
        assignments.append("updated_at = NOW()")
        query = f"""
            UPDATE work_items
            SET {", ".join(assignments)}
            WHERE id = %s
            RETURNING {WORK_ITEM_COLUMNS}
        """
        with self._use_connection(connection) as active_connection:
            with active_connection.cursor() as cursor:
                cursor.execute(query, [*fields.values(), work_item_id])
                row = cursor.fetchone()
        if row is None:
            return None
        return _to_work_item_entity(row)

    def list_visible(
        self,
        *,
        item_type: WorkItemType,
        scope: VisibilityScope,
        status: WorkItemStatus | None,
        priority: WorkItemPriority | None,
        limit: int,
        offset: int,
        connection: Connection | None = None,
    ) -> tuple[list[WorkItemEntity], int]:
        where_clauses: list[str] = ["w.type = %s"]
        params: list[Any] = [item_type]

        if status is not None:
            where_clauses.append("w.status = %s")
            params.append(status)

        if priority is not None:
            where_clauses.append("w.priority = %s")
            params.append(priority)

        visibility_sql, visibility_params = _visibility_clause(scope)
        if visibility_sql is not None:
            where_clauses.append(visibility_sql)
            params.extend(visibility_params)

        where_sql = "WHERE " + " AND ".join(where_clauses)
        columns = ", ".join(f"w.{column.strip()}" for column in WORK_ITEM_COLUMNS.split(","))
        list_query = f"""
            SELECT {columns}
            FROM work_items w
            {where_sql}
            ORDER BY w.created_at DESC, w.id DESC
            LIMIT %s OFFSET %s
        """
        count_query = f"""
            SELECT COUNT(1) AS total
            FROM work_items w
            {where_sql}
        """

        with self._use_connection(connection) as active_connection:
            with active_connection.cursor() as cursor:
                cursor.execute(count_query, params)
                count_row = cursor.fetchone()
                total = int(count_row["total"]) if count_row is not None else 0

                cursor.execute(list_query, [*params, limit, offset])
                rows = cursor.fetchall()

        return ([_to_work_item_entity(row) for row in rows], total)
