from uuid import UUID

from workdesk.models.entities import UserRole
from workdesk.models.schemas.common import CamelCaseModel


class UserSummary(CamelCaseModel):
    id: UUID
    name: str
    email: str
    role: UserRole


class AssignableUserRead(UserSummary):
    team_id: UUID | None = None


class TeamSummary(CamelCaseModel):
    id: UUID
    name: str
    color: str | None = None


class CategorySummary(CamelCaseModel):
    id: UUID
    name: str
    color: str | None = None


class ProjectSummary(CamelCaseModel):
    id: UUID
    name: str


class TeamListResponse(CamelCaseModel):
    data: list[TeamSummary]


class CategoryListResponse(CamelCaseModel):
    data: list[CategorySummary]


class AssignableUserListResponse(CamelCaseModel):
    data: list[AssignableUserRead]
