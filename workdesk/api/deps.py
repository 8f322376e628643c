from typing import Annotated

from fastapi import Depends, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from workdesk.core.config import Settings, get_settings
from workdesk.core.errors import AppError
from workdesk.core.security import InvalidTokenError, decode_access_token
from workdesk.models.entities import Principal
from workdesk.repositories.activity_log_repository import ActivityLogRepository
from workdesk.repositories.comment_repository import CommentRepository
from workdesk.repositories.notification_repository import NotificationRepository
from workdesk.repositories.reference_repository import ReferenceRepository
from workdesk.repositories.time_log_repository import TimeLogRepository
from workdesk.repositories.user_repository import UserRepository
from workdesk.repositories.work_item_assignee_repository import WorkItemAssigneeRepository
from workdesk.repositories.work_item_repository import WorkItemRepository
from workdesk.services.activity_recorder import ActivityRecorder
from workdesk.services.assignment_service import AssignmentService
from workdesk.services.comment_service import CommentService
from workdesk.services.reference_service import ReferenceService
from workdesk.services.time_log_service import TimeLogService
from workdesk.services.work_item_assembler import WorkItemAssembler
from workdesk.services.work_item_service import WorkItemService

bearer_scheme = HTTPBearer(auto_error=False)


def get_principal(
    credentials: Annotated[HTTPAuthorizationCredentials | None, Depends(bearer_scheme)],
) -> Principal:
    if credentials is None:
        raise AppError(
            status_code=status.HTTP_401_UNAUTHORIZED,
            code="UNAUTHORIZED",
            message="Authentication required.",
        )
    try:
        return decode_access_token(credentials.credentials)
    except InvalidTokenError as exc:
        raise AppError(
            status_code=status.HTTP_401_UNAUTHORIZED,
            code="UNAUTHORIZED",
            message="Invalid or expired token.",
        ) from exc


CurrentPrincipal = Annotated[Principal, Depends(get_principal)]


def _recorder() -> ActivityRecorder:
    return ActivityRecorder(
        activity_log_repository=ActivityLogRepository(),
        notification_repository=NotificationRepository(),
    )


def _assembler() -> WorkItemAssembler:
    return WorkItemAssembler(
        user_repository=UserRepository(),
        reference_repository=ReferenceRepository(),
        assignee_repository=WorkItemAssigneeRepository(),
    )


def get_work_item_service(
    settings: Annotated[Settings, Depends(get_settings)],
) -> WorkItemService:
    return WorkItemService(
        work_item_repository=WorkItemRepository(),
        assignee_repository=WorkItemAssigneeRepository(),
        user_repository=UserRepository(),
        reference_repository=ReferenceRepository(),
        comment_repository=CommentRepository(),
        time_log_repository=TimeLogRepository(),
        activity_log_repository=ActivityLogRepository(),
        recorder=_recorder(),
        assembler=_assembler(),
        settings=settings,
    )


def get_assignment_service() -> AssignmentService:
    return AssignmentService(
        work_item_repository=WorkItemRepository(),
        assignee_repository=WorkItemAssigneeRepository(),
        user_repository=UserRepository(),
        reference_repository=ReferenceRepository(),
        recorder=_recorder(),
        assembler=_assembler(),
    )


def get_time_log_service() -> TimeLogService:
    return TimeLogService(
        time_log_repository=TimeLogRepository(),
        work_item_repository=WorkItemRepository(),
        user_repository=UserRepository(),
        recorder=_recorder(),
    )


def get_comment_service() -> CommentService:
    return CommentService(
        comment_repository=CommentRepository(),
        work_item_repository=WorkItemRepository(),
        assignee_repository=WorkItemAssigneeRepository(),
        user_repository=UserRepository(),
        recorder=_recorder(),
    )


def get_reference_service() -> ReferenceService:
    return ReferenceService(
        reference_repository=ReferenceRepository(),
        user_repository=UserRepository(),
    )
