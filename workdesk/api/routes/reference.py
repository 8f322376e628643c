from typing import Annotated
from uuid import UUID

from fastapi import APIRouter, Depends, Query

from workdesk.api.deps import CurrentPrincipal, get_reference_service
from workdesk.models.entities import WorkItemType
from workdesk.models.schemas.reference import (
    AssignableUserListResponse,
    CategoryListResponse,
    TeamListResponse,
)
from workdesk.services.reference_service import ReferenceService

router = APIRouter()


@router.get("/teams", response_model=TeamListResponse)
def list_teams(
    _: CurrentPrincipal,
    service: Annotated[ReferenceService, Depends(get_reference_service)],
) -> TeamListResponse:
    return TeamListResponse(data=service.list_teams())


@router.get("/categories", response_model=CategoryListResponse)
def list_categories(
    _: CurrentPrincipal,
    service: Annotated[ReferenceService, Depends(get_reference_service)],
) -> CategoryListResponse:
    return CategoryListResponse(data=service.list_categories())


@router.get("/users/assignable", response_model=AssignableUserListResponse)
def list_assignable_users(
    principal: CurrentPrincipal,
    service: Annotated[ReferenceService, Depends(get_reference_service)],
    item_type: Annotated[WorkItemType, Query(alias="type")] = "TICKET",
    team_id: Annotated[UUID | None, Query(alias="teamId")] = None,
) -> AssignableUserListResponse:
    users = service.list_assignable_users(principal, item_type=item_type, team_id=team_id)
    return AssignableUserListResponse(data=users)
