import logging

from fastapi import status

from workdesk.core.database import get_connection
from workdesk.core.errors import AppError
from workdesk.models.entities import Principal
from workdesk.models.schemas.comment import CommentCreateRequest, CommentRead
from workdesk.models.schemas.reference import UserSummary
from workdesk.repositories.comment_repository import CommentRepository
from workdesk.repositories.user_repository import UserRepository
from workdesk.repositories.work_item_assignee_repository import WorkItemAssigneeRepository
from workdesk.repositories.work_item_repository import WorkItemRepository
from workdesk.services import access
from workdesk.services.activity_recorder import ActivityRecorder

logger = logging.getLogger(__name__)

MAX_COMMENT_LENGTH = 10000


class CommentService:
    def __init__(
        self,
        comment_repository: CommentRepository,
        work_item_repository: WorkItemRepository,
        assignee_repository: WorkItemAssigneeRepository,
        user_repository: UserRepository,
        recorder: ActivityRecorder,
        database_url: str | None = None,
    ) -> None:
        self.comment_repository = comment_repository
        self.work_item_repository = work_item_repository
        self.assignee_repository = assignee_repository
        self.user_repository = user_repository
        self.recorder = recorder
        self.database_url = database_url

    def create_comment(self, principal: Principal, payload: CommentCreateRequest) -> CommentRead:
        content = payload.content.strip()
        if not 1 <= len(content) <= MAX_COMMENT_LENGTH:
            raise AppError(
                status_code=status.HTTP_400_BAD_REQUEST,
                code="INVALID_COMMENT",
                message=f"Comment length must be between 1 and {MAX_COMMENT_LENGTH} characters.",
            )
        if payload.is_internal and not access.can_view_internal(principal):
            raise AppError(
                status_code=status.HTTP_403_FORBIDDEN,
                code="FORBIDDEN",
                message="Only staff members can add internal comments.",
            )

        with get_connection(self.database_url) as connection:
            item = self.work_item_repository.get_by_id(payload.work_item_id, connection=connection)
            assignee_ids = (
                [
                    row.user_id
                    for row in self.assignee_repository.list_for_work_item(
                        item.id,
                        connection=connection,
                    )
                ]
                if item is not None
                else []
            )
            if item is None or not access.can_view(principal, item, assignee_ids):
                raise AppError(
                    status_code=status.HTTP_404_NOT_FOUND,
                    code="WORK_ITEM_NOT_FOUND",
                    message="Work item not found.",
                )

            author = self.user_repository.get_by_id(principal.id, connection=connection)
            if author is None:
                raise AppError(
                    status_code=status.HTTP_401_UNAUTHORIZED,
                    code="SESSION_INVALID",
                    message="Your session is invalid. Please log out and log back in.",
                )

            comment = self.comment_repository.create(
                work_item_id=item.id,
                user_id=author.id,
                content=content,
                is_internal=payload.is_internal,
                connection=connection,
            )
            self.recorder.record(
                work_item_id=item.id,
                actor_id=author.id,
                action="COMMENT_ADDED",
                changes={
                    "commentId": comment.id,
                    "isInternal": comment.is_internal,
                    "message": f"{author.name} added a comment",
                },
                connection=connection,
            )
            if not comment.is_internal and item.creator_id != author.id:
                self.recorder.notify_comment(
                    item=item,
                    author_name=author.name,
                    connection=connection,
                )
            logger.info(
                "Comment %s added to %s by user %s",
                comment.id,
                item.display_number,
                author.id,
            )

        return CommentRead(
            id=comment.id,
            work_item_id=comment.work_item_id,
            content=comment.content,
            is_internal=comment.is_internal,
            created_at=comment.created_at,
            user=UserSummary.model_validate(author),
        )
