import logging
import math
from dataclasses import dataclass, field
from datetime import UTC, datetime
from uuid import UUID

from fastapi import status
from psycopg import Connection
from psycopg.errors import ForeignKeyViolation

from workdesk.core.config import Settings
from workdesk.core.database import get_connection
from workdesk.core.errors import AppError
from workdesk.models.entities import (
    AssignmentMode,
    Principal,
    UserEntity,
    WorkItemEntity,
    WorkItemPriority,
    WorkItemStatus,
    WorkItemType,
    format_display_number,
)
from workdesk.models.schemas.activity import ActivityLogRead
from workdesk.models.schemas.comment import CommentRead
from workdesk.models.schemas.common import ListMeta, to_camel
from workdesk.models.schemas.reference import UserSummary
from workdesk.models.schemas.time_log import TimeLogRead
from workdesk.models.schemas.work_item import (
    WorkItemCreateRequest,
    WorkItemDetailRead,
    WorkItemListResponse,
    WorkItemRead,
    WorkItemUpdateRequest,
)
from workdesk.repositories.activity_log_repository import ActivityLogRepository
from workdesk.repositories.comment_repository import CommentRepository
from workdesk.repositories.reference_repository import ReferenceRepository
from workdesk.repositories.time_log_repository import TimeLogRepository
from workdesk.repositories.user_repository import UserRepository
from workdesk.repositories.work_item_assignee_repository import WorkItemAssigneeRepository
from workdesk.repositories.work_item_repository import WorkItemRepository
from workdesk.services import access
from workdesk.services.activity_recorder import ActivityRecorder, item_label
from workdesk.services.work_item_assembler import WorkItemAssembler

logger = logging.getLogger(__name__)

COMPLETED_STATUSES = frozenset({"RESOLVED", "CLOSED"})
ACTIVE_STATUSES = frozenset({"OPEN", "IN_PROGRESS"})
TASK_ONLY_FIELDS = frozenset({"project_id", "estimated_hours"})
# Fields that may be sent as null but cannot be stored as null.
REQUIRED_FIELDS = frozenset({"title", "description", "priority", "status"})

RECENT_TIME_LOGS = 10
RECENT_ACTIVITY = 20


@dataclass(slots=True)
class InitialAssignment:
    mode: AssignmentMode | None = None
    team_id: UUID | None = None
    assignee_ids: list[UUID] = field(default_factory=list)
    team_is_explicit: bool = False


class WorkItemService:
    def __init__(
        self,
        work_item_repository: WorkItemRepository,
        assignee_repository: WorkItemAssigneeRepository,
        user_repository: UserRepository,
        reference_repository: ReferenceRepository,
        comment_repository: CommentRepository,
        time_log_repository: TimeLogRepository,
        activity_log_repository: ActivityLogRepository,
        recorder: ActivityRecorder,
        assembler: WorkItemAssembler,
        settings: Settings,
        database_url: str | None = None,
    ) -> None:
        self.work_item_repository = work_item_repository
        self.assignee_repository = assignee_repository
        self.user_repository = user_repository
        self.reference_repository = reference_repository
        self.comment_repository = comment_repository
        self.time_log_repository = time_log_repository
        self.activity_log_repository = activity_log_repository
        self.recorder = recorder
        self.assembler = assembler
        self.settings = settings
        self.database_url = database_url

    def create_work_item(
        self,
        *,
        item_type: WorkItemType,
        principal: Principal,
        payload: WorkItemCreateRequest,
    ) -> WorkItemRead:
        if not access.can_create(principal, item_type):
            raise AppError(
                status_code=status.HTTP_403_FORBIDDEN,
                code="FORBIDDEN",
                message=(
                    "You do not have permission to create tasks. "
                    "Only Admins, Managers, and Agents can create tasks."
                ),
            )

        title = self._validate_title(payload.title)
        description = self._validate_description(payload.description)
        assignment = self._initial_assignment(item_type, principal, payload)
        is_task = item_type == "TASK"

        try:
            with get_connection(self.database_url) as connection:
                creator = self._require_user(principal, connection)
                self._check_team(assignment, connection)
                self._check_users(assignment.assignee_ids, connection)

                number = format_display_number(
                    item_type,
                    self.work_item_repository.next_number(
                        item_type=item_type,
                        connection=connection,
                    ),
                )
                item = self.work_item_repository.create(
                    item_type=item_type,
                    number=number,
                    title=title,
                    description=description,
                    priority=payload.priority,
                    creator_id=creator.id,
                    category_id=payload.category_id,
                    project_id=payload.project_id if is_task else None,
                    due_date=payload.due_date,
                    estimated_hours=payload.estimated_hours if is_task else None,
                    assignment_mode=assignment.mode,
                    team_id=assignment.team_id,
                    assignee_id=assignment.assignee_ids[0] if assignment.assignee_ids else None,
                    connection=connection,
                )

                self.assignee_repository.add_many(
                    work_item_id=item.id,
                    user_ids=assignment.assignee_ids,
                    assigned_by=creator.id,
                    connection=connection,
                )
                for user_id in assignment.assignee_ids:
                    if user_id != creator.id:
                        self.recorder.notify_assigned(
                            item=item,
                            user_id=user_id,
                            connection=connection,
                        )

                self.recorder.record(
                    work_item_id=item.id,
                    actor_id=creator.id,
                    action=f"{item_type}_CREATED",
                    changes={
                        "number": number,
                        "title": item.title,
                        "priority": item.priority,
                        "status": item.status,
                        "assignmentMode": item.assignment_mode,
                        "teamId": item.team_id,
                        "assigneeCount": len(assignment.assignee_ids),
                        "message": f"{creator.name} created {item_label(item_type)} {number}",
                    },
                    connection=connection,
                )
                logger.info("%s created by user %s", number, creator.id)
                return self.assembler.build(item, connection=connection)
        except ForeignKeyViolation as exc:
            raise AppError(
                status_code=status.HTTP_400_BAD_REQUEST,
                code="INVALID_REFERENCE",
                message="Some referenced records do not exist.",
                details={
                    "category_id": str(payload.category_id) if payload.category_id else None,
                    "project_id": str(payload.project_id) if payload.project_id else None,
                },
            ) from exc

    def list_work_items(
        self,
        *,
        item_type: WorkItemType,
        principal: Principal,
        status: WorkItemStatus | None,
        priority: WorkItemPriority | None,
        assigned_to_me: bool,
        include_all: bool,
        page: int,
        page_size: int,
        team_only: bool = False,
    ) -> WorkItemListResponse:
        scope = access.list_scope(
            principal,
            item_type,
            assigned_to_me=assigned_to_me,
            include_all=include_all,
            team_only=team_only,
        )
        offset = (page - 1) * page_size

        with get_connection(self.database_url) as connection:
            items, total = self.work_item_repository.list_visible(
                item_type=item_type,
                scope=scope,
                status=status,
                priority=priority,
                limit=page_size,
                offset=offset,
                connection=connection,
            )
            data = self.assembler.build_many(items, connection=connection)

        return WorkItemListResponse(
            data=data,
            meta=ListMeta(
                page=page,
                page_size=page_size,
                total=total,
                total_pages=math.ceil(total / page_size) if total else 0,
            ),
        )

    def get_work_item(
        self,
        *,
        item_type: WorkItemType,
        work_item_id: UUID,
        principal: Principal,
    ) -> WorkItemDetailRead:
        with get_connection(self.database_url) as connection:
            item = self._get_visible(item_type, work_item_id, principal, connection)
            base = self.assembler.build(item, connection=connection)

            comments = self.comment_repository.list_for_work_item(
                item.id,
                include_internal=access.can_view_internal(principal),
                connection=connection,
            )
            authors = {
                user.id: user
                for user in self.user_repository.list_by_ids(
                    [comment.user_id for comment in comments],
                    connection=connection,
                )
            }
            time_logs = self.time_log_repository.list_for_work_item(
                item.id,
                limit=RECENT_TIME_LOGS,
                connection=connection,
            )
            activity_logs = self.activity_log_repository.list_for_work_item(
                item.id,
                limit=RECENT_ACTIVITY,
                connection=connection,
            )

        return WorkItemDetailRead(
            **base.model_dump(),
            comments=[
                CommentRead(
                    id=comment.id,
                    work_item_id=comment.work_item_id,
                    content=comment.content,
                    is_internal=comment.is_internal,
                    created_at=comment.created_at,
                    user=UserSummary.model_validate(authors[comment.user_id])
                    if comment.user_id in authors
                    else None,
                )
                for comment in comments
            ],
            time_logs=[TimeLogRead.model_validate(time_log) for time_log in time_logs],
            activity_logs=[ActivityLogRead.model_validate(entry) for entry in activity_logs],
        )

    def update_work_item(
        self,
        *,
        item_type: WorkItemType,
        work_item_id: UUID,
        principal: Principal,
        payload: WorkItemUpdateRequest,
    ) -> WorkItemRead:
        requested = payload.model_dump(exclude_unset=True)
        requested = {
            name: value
            for name, value in requested.items()
            if not (name in REQUIRED_FIELDS and value is None)
            and not (name in TASK_ONLY_FIELDS and item_type != "TASK")
        }
        if "title" in requested:
            requested["title"] = self._validate_title(requested["title"])
        if "description" in requested:
            requested["description"] = self._validate_description(requested["description"])

        try:
            with get_connection(self.database_url) as connection:
                self._require_user(principal, connection)
                item = self._get_visible(
                    item_type,
                    work_item_id,
                    principal,
                    connection,
                    for_update=True,
                )
                assignee_ids = [
                    row.user_id
                    for row in self.assignee_repository.list_for_work_item(
                        item.id,
                        connection=connection,
                    )
                ]
                if not access.can_modify(principal, item, assignee_ids):
                    raise AppError(
                        status_code=status.HTTP_403_FORBIDDEN,
                        code="FORBIDDEN",
                        message=(
                            f"You do not have permission to update this {item_label(item_type)}."
                        ),
                    )

                changed = {
                    name: value
                    for name, value in requested.items()
                    if getattr(item, name) != value
                }
                if not changed:
                    return self.assembler.build(item, connection=connection)

                fields = dict(changed)
                if "status" in changed:
                    fields["completed_at"] = self._completed_at(changed["status"], item)

                updated = self.work_item_repository.update_fields(
                    work_item_id=item.id,
                    fields=fields,
                    connection=connection,
                )
                if updated is None:
                    self._raise_not_found(item_type)

                label = item_label(item_type)
                self.recorder.record(
                    work_item_id=item.id,
                    actor_id=principal.id,
                    action=f"{item_type}_UPDATED",
                    changes={
                        **{
                            to_camel(name): {"from": getattr(item, name), "to": value}
                            for name, value in changed.items()
                        },
                        "message": f"{label.capitalize()} {item.display_number} updated",
                    },
                    connection=connection,
                )
                logger.info(
                    "%s updated by user %s (%s)",
                    item.display_number,
                    principal.id,
                    ", ".join(sorted(changed)),
                )
                return self.assembler.build(updated, connection=connection)
        except ForeignKeyViolation as exc:
            raise AppError(
                status_code=status.HTTP_400_BAD_REQUEST,
                code="INVALID_REFERENCE",
                message="Some referenced records do not exist.",
            ) from exc

    def _get_visible(
        self,
        item_type: WorkItemType,
        work_item_id: UUID,
        principal: Principal,
        connection: Connection,
        *,
        for_update: bool = False,
    ) -> WorkItemEntity:
        item = self.work_item_repository.get_by_id(
            work_item_id,
            item_type=item_type,
            for_update=for_update,
            connection=connection,
        )
        if item is None:
            self._raise_not_found(item_type)

        assignee_ids = [
            row.user_id
            for row in self.assignee_repository.list_for_work_item(item.id, connection=connection)
        ]
        # Invisible items look exactly like missing ones.
        if not access.can_view(principal, item, assignee_ids):
            self._raise_not_found(item_type)
        return item

    def _initial_assignment(
        self,
        item_type: WorkItemType,
        principal: Principal,
        payload: WorkItemCreateRequest,
    ) -> InitialAssignment:
        assignee_ids = list(dict.fromkeys(payload.assignee_ids))
        if not assignee_ids and payload.assignee_id is not None:
            assignee_ids = [payload.assignee_id]

        mode = payload.assignment_mode
        if mode is None and assignee_ids:
            mode = "individuals"
        elif mode is None and payload.team_id is not None:
            mode = "team"

        if mode == "individuals":
            if not assignee_ids:
                return InitialAssignment()
            return InitialAssignment(mode="individuals", assignee_ids=assignee_ids)

        if mode == "team":
            if payload.team_id is not None:
                return InitialAssignment(
                    mode="team",
                    team_id=payload.team_id,
                    team_is_explicit=True,
                )
            if principal.team_id is not None:
                return InitialAssignment(mode="team", team_id=principal.team_id)
            return InitialAssignment()

        if item_type == "TICKET":
            routed_team_id = self._routing_team_id(principal)
            if routed_team_id is not None:
                return InitialAssignment(mode="team", team_id=routed_team_id)
        return InitialAssignment()

    def _routing_team_id(self, principal: Principal) -> UUID | None:
        if principal.role == "USER":
            return self.settings.user_ticket_team_id
        if principal.role == "AGENT":
            return self.settings.agent_ticket_team_id
        return None

    def _check_team(self, assignment: InitialAssignment, connection: Connection) -> None:
        if assignment.team_id is None:
            return
        if self.reference_repository.get_team(assignment.team_id, connection=connection):
            return
        if assignment.team_is_explicit:
            raise AppError(
                status_code=status.HTTP_404_NOT_FOUND,
                code="TEAM_NOT_FOUND",
                message="Team not found.",
                details={"team_id": str(assignment.team_id)},
            )
        logger.warning("Default team %s does not exist; creating unassigned", assignment.team_id)
        assignment.mode = None
        assignment.team_id = None

    def _check_users(self, user_ids: list[UUID], connection: Connection) -> None:
        if not user_ids:
            return
        existing_ids = {
            user.id for user in self.user_repository.list_by_ids(user_ids, connection=connection)
        }
        missing_ids = [user_id for user_id in user_ids if user_id not in existing_ids]
        if missing_ids:
            raise AppError(
                status_code=status.HTTP_400_BAD_REQUEST,
                code="INVALID_USER_IDS",
                message="Some user IDs do not exist.",
                details={"missing_user_ids": [str(user_id) for user_id in missing_ids]},
            )

    def _require_user(self, principal: Principal, connection: Connection) -> UserEntity:
        user = self.user_repository.get_by_id(principal.id, connection=connection)
        if user is None:
            raise AppError(
                status_code=status.HTTP_401_UNAUTHORIZED,
                code="SESSION_INVALID",
                message="Your session is invalid. Please log out and log back in.",
            )
        return user

    def _completed_at(self, new_status: WorkItemStatus, item: WorkItemEntity) -> datetime | None:
        if new_status in COMPLETED_STATUSES:
            return datetime.now(UTC)
        if new_status in ACTIVE_STATUSES:
            return None
        return item.completed_at

    def _validate_title(self, title: str) -> str:
        normalized = title.strip()
        if not 5 <= len(normalized) <= 200:
            raise AppError(
                status_code=status.HTTP_400_BAD_REQUEST,
                code="INVALID_TITLE",
                message="Title length must be between 5 and 200 characters.",
            )
        return normalized

    def _validate_description(self, description: str) -> str:
        normalized = description.strip()
        if not 10 <= len(normalized) <= 5000:
            raise AppError(
                status_code=status.HTTP_400_BAD_REQUEST,
                code="INVALID_DESCRIPTION",
                message="Description length must be between 10 and 5000 characters.",
            )
        return normalized

    def _raise_not_found(self, item_type: WorkItemType) -> None:
        raise AppError(
            status_code=status.HTTP_404_NOT_FOUND,
            code=f"{item_type}_NOT_FOUND",
            message=f"{item_label(item_type).capitalize()} not found.",
        )
