from uuid import UUID

from fastapi import status

from workdesk.core.errors import AppError
from workdesk.models.entities import Principal, WorkItemType
from workdesk.models.schemas.reference import AssignableUserRead, CategorySummary, TeamSummary
from workdesk.repositories.reference_repository import ReferenceRepository
from workdesk.repositories.user_repository import UserRepository
from workdesk.services import access

# Tickets go to support staff; tasks may go to anybody.
TICKET_ASSIGNEE_ROLES = ["AGENT", "MANAGER", "ADMIN"]


class ReferenceService:
    def __init__(
        self,
        reference_repository: ReferenceRepository,
        user_repository: UserRepository,
    ) -> None:
        self.reference_repository = reference_repository
        self.user_repository = user_repository

    def list_teams(self) -> list[TeamSummary]:
        return [TeamSummary.model_validate(team) for team in self.reference_repository.list_teams()]

    def list_categories(self) -> list[CategorySummary]:
        return [
            CategorySummary.model_validate(category)
            for category in self.reference_repository.list_all_categories()
        ]

    def list_assignable_users(
        self,
        principal: Principal,
        *,
        item_type: WorkItemType,
        team_id: UUID | None = None,
    ) -> list[AssignableUserRead]:
        if not access.can_view_internal(principal):
            raise AppError(
                status_code=status.HTTP_403_FORBIDDEN,
                code="FORBIDDEN",
                message="Only staff members can list assignable users.",
            )

        roles = TICKET_ASSIGNEE_ROLES if item_type == "TICKET" else None
        users = self.user_repository.list_active(roles=roles, team_id=team_id)
        return [AssignableUserRead.model_validate(user) for user in users]
