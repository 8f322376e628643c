import logging
from uuid import UUID

from fastapi import status
from psycopg import Connection

from workdesk.core.database import get_connection
from workdesk.core.errors import AppError
from workdesk.models.entities import (
    Principal,
    UserEntity,
    WorkItemAssigneeEntity,
    WorkItemEntity,
    WorkItemType,
)
from workdesk.models.schemas.assignment import AssignmentRequest
from workdesk.models.schemas.work_item import WorkItemRead
from workdesk.repositories.reference_repository import ReferenceRepository
from workdesk.repositories.user_repository import UserRepository
from workdesk.repositories.work_item_assignee_repository import WorkItemAssigneeRepository
from workdesk.repositories.work_item_repository import WorkItemRepository
from workdesk.services import access
from workdesk.services.activity_recorder import ActivityRecorder, item_label, promote_status
from workdesk.services.work_item_assembler import WorkItemAssembler

logger = logging.getLogger(__name__)


class AssignmentService:
    """Changes who is responsible for a ticket or task.

    A work item is unassigned, assigned to one team, or assigned to a set of
    individuals, never a mix. Every change runs in one transaction holding a
    row lock on the work item, so concurrent changes to one item apply in turn.
    """

    def __init__(
        self,
        work_item_repository: WorkItemRepository,
        assignee_repository: WorkItemAssigneeRepository,
        user_repository: UserRepository,
        reference_repository: ReferenceRepository,
        recorder: ActivityRecorder,
        assembler: WorkItemAssembler,
        database_url: str | None = None,
    ) -> None:
        self.work_item_repository = work_item_repository
        self.assignee_repository = assignee_repository
        self.user_repository = user_repository
        self.reference_repository = reference_repository
        self.recorder = recorder
        self.assembler = assembler
        self.database_url = database_url

    def update_assignment(
        self,
        *,
        item_type: WorkItemType,
        work_item_id: UUID,
        principal: Principal,
        payload: AssignmentRequest,
    ) -> WorkItemRead:
        with get_connection(self.database_url) as connection:
            item = self.work_item_repository.get_by_id(
                work_item_id,
                item_type=item_type,
                for_update=True,
                connection=connection,
            )
            if item is None:
                self._raise_not_found(item_type)

            actor = self.user_repository.get_by_id(principal.id, connection=connection)
            if actor is None:
                raise AppError(
                    status_code=status.HTTP_401_UNAUTHORIZED,
                    code="SESSION_INVALID",
                    message="Your session is invalid. Please log out and log back in.",
                )

            assignees = self.assignee_repository.list_for_work_item(
                item.id,
                connection=connection,
            )
            label = item_label(item_type)

            if payload.wants_claim(item_type):
                self._claim(item, principal, actor, assignees, connection)
            else:
                if not access.can_assign(principal):
                    raise AppError(
                        status_code=status.HTTP_403_FORBIDDEN,
                        code="FORBIDDEN",
                        message=f"Only managers and admins can assign {label}s.",
                    )

                if payload.assignment_mode == "team" or payload.has_field("team_id"):
                    self._assign_team(item, actor, payload.team_id, assignees, connection)
                elif payload.assignment_mode == "individuals" or payload.has_field("assignee_ids"):
                    self._assign_individuals(
                        item,
                        actor,
                        payload.assignee_ids or [],
                        assignees,
                        connection,
                    )
                elif payload.has_field("assignee_id"):
                    self._assign_single(item, actor, payload.assignee_id, connection)
                else:
                    raise AppError(
                        status_code=status.HTTP_400_BAD_REQUEST,
                        code="NO_ASSIGNMENT_ACTION",
                        message="No valid assignment action provided.",
                    )

            updated = self.work_item_repository.get_by_id(item.id, connection=connection)
            if updated is None:
                self._raise_not_found(item_type)
            return self.assembler.build(updated, connection=connection)

    def _claim(
        self,
        item: WorkItemEntity,
        principal: Principal,
        actor: UserEntity,
        assignees: list[WorkItemAssigneeEntity],
        connection: Connection,
    ) -> None:
        label = item_label(item.type)
        if not access.can_claim(principal):
            raise AppError(
                status_code=status.HTTP_403_FORBIDDEN,
                code="FORBIDDEN",
                message=f"Only agents can claim {label}s.",
            )
        if any(row.user_id == actor.id for row in assignees):
            raise AppError(
                status_code=status.HTTP_400_BAD_REQUEST,
                code="ALREADY_ASSIGNED",
                message=f"You are already assigned to this {label}.",
            )

        # Claiming adds the caller next to existing assignees; it never replaces them.
        self.assignee_repository.add_many(
            work_item_id=item.id,
            user_ids=[actor.id],
            assigned_by=actor.id,
            connection=connection,
        )
        new_status = promote_status(item.status)
        first_assignee_id = assignees[0].user_id if assignees else actor.id
        self.work_item_repository.update_assignment(
            work_item_id=item.id,
            assignment_mode="individuals",
            team_id=None,
            assignee_id=first_assignee_id,
            status=new_status,
            connection=connection,
        )
        self.recorder.record(
            work_item_id=item.id,
            actor_id=actor.id,
            action=f"{item.type}_CLAIMED",
            changes={
                "assigneeAdded": actor.name,
                "status": {"from": item.status, "to": new_status}
                if new_status != item.status
                else None,
                "message": f"{actor.name} claimed {label} {item.display_number}",
            },
            connection=connection,
        )
        logger.info("%s claimed by user %s", item.display_number, actor.id)

    def _assign_team(
        self,
        item: WorkItemEntity,
        actor: UserEntity,
        team_id: UUID | None,
        assignees: list[WorkItemAssigneeEntity],
        connection: Connection,
    ) -> None:
        team = None
        if team_id is not None:
            team = self.reference_repository.get_team(team_id, connection=connection)
            if team is None:
                raise AppError(
                    status_code=status.HTTP_404_NOT_FOUND,
                    code="TEAM_NOT_FOUND",
                    message="Team not found.",
                    details={"team_id": str(team_id)},
                )

        previous_team = None
        if item.team_id is not None:
            previous_team = self.reference_repository.get_team(item.team_id, connection=connection)
        removed_names = self._names([row.user_id for row in assignees], connection)

        self.assignee_repository.clear(work_item_id=item.id, connection=connection)
        self.work_item_repository.update_assignment(
            work_item_id=item.id,
            assignment_mode="team" if team else None,
            team_id=team.id if team else None,
            assignee_id=None,
            status=item.status,
            connection=connection,
        )

        label = item_label(item.type)
        if team is not None:
            message = f"{actor.name} assigned {label} {item.display_number} to team {team.name}"
        else:
            message = f"{actor.name} unassigned {label} {item.display_number}"
        self.recorder.record(
            work_item_id=item.id,
            actor_id=actor.id,
            action=f"{item.type}_ASSIGNED",
            changes={
                "teamId": {
                    "from": previous_team.name if previous_team else None,
                    "to": team.name if team else None,
                },
                "assigneesRemoved": removed_names or None,
                "message": message,
            },
            connection=connection,
        )
        logger.info(
            "%s assigned to team %s by user %s",
            item.display_number,
            team.id if team else None,
            actor.id,
        )

    def _assign_individuals(
        self,
        item: WorkItemEntity,
        actor: UserEntity,
        requested_ids: list[UUID],
        assignees: list[WorkItemAssigneeEntity],
        connection: Connection,
    ) -> None:
        new_ids = list(dict.fromkeys(requested_ids))
        current_ids = [row.user_id for row in assignees]

        users = {
            user.id: user
            for user in self.user_repository.list_by_ids(
                [*new_ids, *current_ids],
                connection=connection,
            )
        }
        missing_ids = [user_id for user_id in new_ids if user_id not in users]
        if missing_ids:
            raise AppError(
                status_code=status.HTTP_400_BAD_REQUEST,
                code="INVALID_USER_IDS",
                message="Some user IDs do not exist.",
                details={"missing_user_ids": [str(user_id) for user_id in missing_ids]},
            )

        added_ids = [user_id for user_id in new_ids if user_id not in current_ids]
        removed_ids = [user_id for user_id in current_ids if user_id not in new_ids]

        self.assignee_repository.remove_users(
            work_item_id=item.id,
            user_ids=removed_ids,
            connection=connection,
        )
        self.assignee_repository.add_many(
            work_item_id=item.id,
            user_ids=added_ids,
            assigned_by=actor.id,
            connection=connection,
        )
        self.work_item_repository.update_assignment(
            work_item_id=item.id,
            assignment_mode="individuals" if new_ids else None,
            team_id=None,
            assignee_id=new_ids[0] if new_ids else None,
            status=promote_status(item.status) if new_ids else item.status,
            connection=connection,
        )

        label = item_label(item.type)
        for user_id in removed_ids:
            name = self._name_of(users, user_id)
            self.recorder.record(
                work_item_id=item.id,
                actor_id=actor.id,
                action="ASSIGNEE_REMOVED",
                changes={
                    "assigneeRemoved": name,
                    "message": f"{actor.name} removed {name} from {label} {item.display_number}",
                },
                connection=connection,
            )
        for user_id in added_ids:
            name = self._name_of(users, user_id)
            self.recorder.record(
                work_item_id=item.id,
                actor_id=actor.id,
                action="ASSIGNEE_ADDED",
                changes={
                    "assigneeAdded": name,
                    "message": f"{actor.name} added {name} to {label} {item.display_number}",
                },
                connection=connection,
            )
            if user_id != actor.id:
                self.recorder.notify_assigned(item=item, user_id=user_id, connection=connection)

        if not added_ids and not removed_ids:
            # Same people as before; the mode or team may still have changed.
            self.recorder.record(
                work_item_id=item.id,
                actor_id=actor.id,
                action=f"{item.type}_ASSIGNED",
                changes={
                    "assignmentMode": {
                        "from": item.assignment_mode,
                        "to": "individuals" if new_ids else None,
                    },
                    "assignees": [self._name_of(users, user_id) for user_id in new_ids],
                    "message": f"{actor.name} updated assignees of {label} {item.display_number}",
                },
                connection=connection,
            )

        logger.info(
            "%s assignees changed by user %s (added=%d, removed=%d)",
            item.display_number,
            actor.id,
            len(added_ids),
            len(removed_ids),
        )

    def _assign_single(
        self,
        item: WorkItemEntity,
        actor: UserEntity,
        assignee_id: UUID | None,
        connection: Connection,
    ) -> None:
        new_assignee = None
        if assignee_id is not None:
            new_assignee = self.user_repository.get_by_id(assignee_id, connection=connection)
            if new_assignee is None:
                raise AppError(
                    status_code=status.HTTP_400_BAD_REQUEST,
                    code="INVALID_USER_IDS",
                    message="Some user IDs do not exist.",
                    details={"missing_user_ids": [str(assignee_id)]},
                )

        previous_assignee = None
        if item.assignee_id is not None:
            previous_assignee = self.user_repository.get_by_id(
                item.assignee_id,
                connection=connection,
            )

        self.assignee_repository.clear(work_item_id=item.id, connection=connection)
        if new_assignee is not None:
            self.assignee_repository.add_many(
                work_item_id=item.id,
                user_ids=[new_assignee.id],
                assigned_by=actor.id,
                connection=connection,
            )
        self.work_item_repository.update_assignment(
            work_item_id=item.id,
            assignment_mode="individuals" if new_assignee else None,
            team_id=None,
            assignee_id=new_assignee.id if new_assignee else None,
            status=promote_status(item.status) if new_assignee else item.status,
            connection=connection,
        )

        label = item_label(item.type)
        if new_assignee is not None:
            message = f"{actor.name} assigned {label} {item.display_number} to {new_assignee.name}"
        else:
            message = f"{actor.name} unassigned {label} {item.display_number}"
        self.recorder.record(
            work_item_id=item.id,
            actor_id=actor.id,
            action=f"{item.type}_ASSIGNED",
            changes={
                "assigneeId": {
                    "from": previous_assignee.name if previous_assignee else None,
                    "to": new_assignee.name if new_assignee else None,
                },
                "message": message,
            },
            connection=connection,
        )
        if new_assignee is not None and new_assignee.id != actor.id:
            self.recorder.notify_assigned(item=item, user_id=new_assignee.id, connection=connection)

        logger.info(
            "%s assigned to user %s by user %s",
            item.display_number,
            new_assignee.id if new_assignee else None,
            actor.id,
        )

    def _names(self, user_ids: list[UUID], connection: Connection) -> list[str]:
        users = {
            user.id: user
            for user in self.user_repository.list_by_ids(user_ids, connection=connection)
        }
        return [self._name_of(users, user_id) for user_id in user_ids]

    def _name_of(self, users: dict[UUID, UserEntity], user_id: UUID) -> str:
        user = users.get(user_id)
        return user.name if user is not None else "Unknown User"

    def _raise_not_found(self, item_type: WorkItemType) -> None:
        raise AppError(
            status_code=status.HTTP_404_NOT_FOUND,
            code=f"{item_type}_NOT_FOUND",
            message=f"{item_label(item_type).capitalize()} not found.",
        )
