from uuid import UUID

from psycopg import Connection

from workdesk.models.entities import UserEntity, WorkItemAssigneeEntity, WorkItemEntity
from workdesk.models.schemas.reference import (
    CategorySummary,
    ProjectSummary,
    TeamSummary,
    UserSummary,
)
from workdesk.models.schemas.work_item import AssigneeRead, WorkItemRead
from workdesk.repositories.reference_repository import ReferenceRepository
from workdesk.repositories.user_repository import UserRepository
from workdesk.repositories.work_item_assignee_repository import WorkItemAssigneeRepository


def _user_summary(user: UserEntity | None) -> UserSummary | None:
    if user is None:
        return None
    return UserSummary.model_validate(user)


class WorkItemAssembler:
    """Turns work item rows into API models with their related records.

    Relations are loaded in one query per table for the whole batch.
    """

    def __init__(
        self,
        user_repository: UserRepository,
        reference_repository: ReferenceRepository,
        assignee_repository: WorkItemAssigneeRepository,
    ) -> None:
        self.user_repository = user_repository
        self.reference_repository = reference_repository
        self.assignee_repository = assignee_repository

    def build(self, item: WorkItemEntity, connection: Connection | None = None) -> WorkItemRead:
        return self.build_many([item], connection=connection)[0]

    def build_many(
        self,
        items: list[WorkItemEntity],
        connection: Connection | None = None,
    ) -> list[WorkItemRead]:
        if not items:
            return []

        assignee_mapping = self.assignee_repository.list_for_work_items(
            [item.id for item in items],
            connection=connection,
        )

        user_ids: list[UUID] = []
        for item in items:
            user_ids.append(item.creator_id)
            if item.assignee_id is not None:
                user_ids.append(item.assignee_id)
            user_ids.extend(row.user_id for row in assignee_mapping.get(item.id, []))
        users = {
            user.id: user
            for user in self.user_repository.list_by_ids(user_ids, connection=connection)
        }

        team_ids = [item.team_id for item in items if item.team_id is not None]
        teams = {
            team.id: team
            for team in self.reference_repository.list_teams(team_ids, connection=connection)
        }
        category_ids = [item.category_id for item in items if item.category_id is not None]
        categories = {
            category.id: category
            for category in self.reference_repository.list_categories(
                category_ids,
                connection=connection,
            )
        }
        project_ids = [item.project_id for item in items if item.project_id is not None]
        projects = {
            project.id: project
            for project in self.reference_repository.list_projects(
                project_ids,
                connection=connection,
            )
        }

        results: list[WorkItemRead] = []
        for item in items:
            team = teams.get(item.team_id) if item.team_id else None
            category = categories.get(item.category_id) if item.category_id else None
            project = projects.get(item.project_id) if item.project_id else None
            results.append(
                WorkItemRead(
                    id=item.id,
                    type=item.type,
                    ticket_number=item.ticket_number,
                    task_number=item.task_number,
                    title=item.title,
                    description=item.description,
                    status=item.status,
                    priority=item.priority,
                    assignment_mode=item.assignment_mode,
                    team_id=item.team_id,
                    assignee_id=item.assignee_id,
                    creator_id=item.creator_id,
                    category_id=item.category_id,
                    project_id=item.project_id,
                    due_date=item.due_date,
                    estimated_hours=item.estimated_hours,
                    created_at=item.created_at,
                    updated_at=item.updated_at,
                    completed_at=item.completed_at,
                    creator=_user_summary(users.get(item.creator_id)),
                    assignee=_user_summary(users.get(item.assignee_id))
                    if item.assignee_id
                    else None,
                    team=TeamSummary.model_validate(team) if team else None,
                    category=CategorySummary.model_validate(category) if category else None,
                    project=ProjectSummary.model_validate(project) if project else None,
                    assignees=self._assignee_reads(
                        assignee_mapping.get(item.id, []),
                        users,
                    ),
                )
            )
        return results

    def _assignee_reads(
        self,
        rows: list[WorkItemAssigneeEntity],
        users: dict[UUID, UserEntity],
    ) -> list[AssigneeRead]:
        return [
            AssigneeRead(
                user=UserSummary.model_validate(users[row.user_id]),
                assigned_by=row.assigned_by,
                assigned_at=row.assigned_at,
            )
            for row in rows
            if row.user_id in users
        ]
