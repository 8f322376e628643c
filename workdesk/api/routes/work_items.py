from typing import Annotated, Literal
from uuid import UUID

from fastapi import APIRouter, Depends, Query, status

from workdesk.api.deps import CurrentPrincipal, get_assignment_service, get_work_item_service
from workdesk.models.entities import WorkItemPriority, WorkItemStatus, WorkItemType
from workdesk.models.schemas.assignment import AssignmentRequest
from workdesk.models.schemas.work_item import (
    WorkItemCreateRequest,
    WorkItemDataResponse,
    WorkItemDetailResponse,
    WorkItemListResponse,
    WorkItemUpdateRequest,
)
from workdesk.services.assignment_service import AssignmentService
from workdesk.services.work_item_service import WorkItemService


def build_work_item_router(item_type: WorkItemType, prefix: str) -> APIRouter:
    """Routes shared by tickets and tasks, bound to one work item type."""
    router = APIRouter(prefix=prefix)

    @router.get("", response_model=WorkItemListResponse)
    def list_work_items(
        principal: CurrentPrincipal,
        service: Annotated[WorkItemService, Depends(get_work_item_service)],
        status: Annotated[WorkItemStatus | None, Query()] = None,
        priority: Annotated[WorkItemPriority | None, Query()] = None,
        assigned_to_me: Annotated[bool, Query(alias="assignedToMe")] = False,
        scope: Annotated[Literal["all", "team"] | None, Query()] = None,
        page: Annotated[int, Query(ge=1)] = 1,
        page_size: Annotated[int, Query(ge=1, le=100, alias="pageSize")] = 20,
    ) -> WorkItemListResponse:
        return service.list_work_items(
            item_type=item_type,
            principal=principal,
            status=status,
            priority=priority,
            assigned_to_me=assigned_to_me,
            include_all=scope == "all",
            team_only=scope == "team",
            page=page,
            page_size=page_size,
        )

    @router.post(
        "",
        response_model=WorkItemDataResponse,
        status_code=status.HTTP_201_CREATED,
    )
    def create_work_item(
        payload: WorkItemCreateRequest,
        principal: CurrentPrincipal,
        service: Annotated[WorkItemService, Depends(get_work_item_service)],
    ) -> WorkItemDataResponse:
        item = service.create_work_item(item_type=item_type, principal=principal, payload=payload)
        return WorkItemDataResponse(data=item)

    @router.get("/{work_item_id}", response_model=WorkItemDetailResponse)
    def get_work_item(
        work_item_id: UUID,
        principal: CurrentPrincipal,
        service: Annotated[WorkItemService, Depends(get_work_item_service)],
    ) -> WorkItemDetailResponse:
        item = service.get_work_item(
            item_type=item_type,
            work_item_id=work_item_id,
            principal=principal,
        )
        return WorkItemDetailResponse(data=item)

    @router.patch("/{work_item_id}", response_model=WorkItemDataResponse)
    def update_work_item(
        work_item_id: UUID,
        payload: WorkItemUpdateRequest,
        principal: CurrentPrincipal,
        service: Annotated[WorkItemService, Depends(get_work_item_service)],
    ) -> WorkItemDataResponse:
        item = service.update_work_item(
            item_type=item_type,
            work_item_id=work_item_id,
            principal=principal,
            payload=payload,
        )
        return WorkItemDataResponse(data=item)

    @router.patch("/{work_item_id}/assignment", response_model=WorkItemDataResponse)
    def update_assignment(
        work_item_id: UUID,
        payload: AssignmentRequest,
        principal: CurrentPrincipal,
        service: Annotated[AssignmentService, Depends(get_assignment_service)],
    ) -> WorkItemDataResponse:
        item = service.update_assignment(
            item_type=item_type,
            work_item_id=work_item_id,
            principal=principal,
            payload=payload,
        )
        return WorkItemDataResponse(data=item)

    return router


ticket_router = build_work_item_router("TICKET", "/tickets")
task_router = build_work_item_router("TASK", "/tasks")
