from typing import Annotated

from fastapi import APIRouter, Depends, status

from workdesk.api.deps import CurrentPrincipal, get_comment_service
from workdesk.models.schemas.comment import CommentCreateRequest, CommentDataResponse
from workdesk.services.comment_service import CommentService

router = APIRouter(prefix="/comments")


@router.post("", response_model=CommentDataResponse, status_code=status.HTTP_201_CREATED)
def create_comment(
    payload: CommentCreateRequest,
    principal: CurrentPrincipal,
    service: Annotated[CommentService, Depends(get_comment_service)],
) -> CommentDataResponse:
    return CommentDataResponse(data=service.create_comment(principal, payload))
