import logging
from collections.abc import Callable
from datetime import UTC, datetime

from fastapi import status
from psycopg import Connection
from psycopg.errors import UniqueViolation

from workdesk.core.database import get_connection
from workdesk.core.errors import AppError
from workdesk.models.entities import Principal, TimeLogEntity, UserEntity, WorkItemEntity
from workdesk.models.schemas.time_log import (
    TimeLogRead,
    TimeLogWorkItem,
    TimerStartRequest,
    TimerStopRequest,
)
from workdesk.repositories.time_log_repository import TimeLogRepository
from workdesk.repositories.user_repository import UserRepository
from workdesk.repositories.work_item_repository import WorkItemRepository
from workdesk.services.activity_recorder import ActivityRecorder

logger = logging.getLogger(__name__)


def utc_now() -> datetime:
    return datetime.now(UTC)


def elapsed_minutes(started_at: datetime, ended_at: datetime) -> int:
    """Whole minutes between two instants, never negative."""
    return max(int((ended_at - started_at).total_seconds() // 60), 0)


class TimeLogService:
    """Timers: at most one running time log per user."""

    def __init__(
        self,
        time_log_repository: TimeLogRepository,
        work_item_repository: WorkItemRepository,
        user_repository: UserRepository,
        recorder: ActivityRecorder,
        database_url: str | None = None,
        clock: Callable[[], datetime] = utc_now,
    ) -> None:
        self.time_log_repository = time_log_repository
        self.work_item_repository = work_item_repository
        self.user_repository = user_repository
        self.recorder = recorder
        self.database_url = database_url
        self.clock = clock

    def start_timer(self, principal: Principal, payload: TimerStartRequest) -> TimeLogRead:
        try:
            with get_connection(self.database_url) as connection:
                self._require_user(principal, connection)
                item = self.work_item_repository.get_by_id(
                    payload.work_item_id,
                    connection=connection,
                )
                if item is None:
                    raise AppError(
                        status_code=status.HTTP_404_NOT_FOUND,
                        code="WORK_ITEM_NOT_FOUND",
                        message="Work item not found.",
                    )

                now = self.clock()
                running = self.time_log_repository.get_running_for_user(
                    principal.id,
                    for_update=True,
                    connection=connection,
                )
                if running is not None:
                    self._stop(running, principal, now, running.notes, connection)

                created = self.time_log_repository.start(
                    work_item_id=item.id,
                    user_id=principal.id,
                    started_at=now,
                    notes=payload.notes,
                    connection=connection,
                )
                self.recorder.record(
                    work_item_id=item.id,
                    actor_id=principal.id,
                    action="TIMER_STARTED",
                    changes={
                        "timeLogId": created.id,
                        "message": f"Timer started on {item.display_number}",
                    },
                    connection=connection,
                )
                logger.info(
                    "Timer %s started on %s by user %s",
                    created.id,
                    item.display_number,
                    principal.id,
                )
                return self._to_read(created, item)
        except UniqueViolation as exc:
            # Lost a race with another start for the same user.
            raise AppError(
                status_code=status.HTTP_400_BAD_REQUEST,
                code="TIMER_ALREADY_RUNNING",
                message="Another timer was started at the same time. Please try again.",
            ) from exc

    def stop_timer(self, principal: Principal, payload: TimerStopRequest) -> TimeLogRead:
        with get_connection(self.database_url) as connection:
            self._require_user(principal, connection)
            time_log = self.time_log_repository.get_by_id(
                payload.time_log_id,
                for_update=True,
                connection=connection,
            )
            if time_log is None:
                raise AppError(
                    status_code=status.HTTP_404_NOT_FOUND,
                    code="TIME_LOG_NOT_FOUND",
                    message="Time log not found.",
                )
            if time_log.user_id != principal.id:
                raise AppError(
                    status_code=status.HTTP_403_FORBIDDEN,
                    code="FORBIDDEN",
                    message="You can only stop your own timers.",
                )
            if not time_log.is_running:
                raise AppError(
                    status_code=status.HTTP_400_BAD_REQUEST,
                    code="TIMER_ALREADY_STOPPED",
                    message="This timer is already stopped.",
                )

            notes = payload.notes if payload.notes is not None else time_log.notes
            stopped = self._stop(time_log, principal, self.clock(), notes, connection)
            item = self.work_item_repository.get_by_id(stopped.work_item_id, connection=connection)
            return self._to_read(stopped, item)

    def get_active_timer(self, principal: Principal) -> TimeLogRead | None:
        with get_connection(self.database_url) as connection:
            running = self.time_log_repository.get_running_for_user(
                principal.id,
                connection=connection,
            )
            if running is None:
                return None
            item = self.work_item_repository.get_by_id(running.work_item_id, connection=connection)
        return self._to_read(running, item)

    def _stop(
        self,
        time_log: TimeLogEntity,
        principal: Principal,
        ended_at: datetime,
        notes: str | None,
        connection: Connection,
    ) -> TimeLogEntity:
        duration_mins = elapsed_minutes(time_log.started_at, ended_at)
        stopped = self.time_log_repository.stop(
            time_log_id=time_log.id,
            ended_at=ended_at,
            duration_mins=duration_mins,
            notes=notes,
            connection=connection,
        )
        if stopped is None:
            raise AppError(
                status_code=status.HTTP_404_NOT_FOUND,
                code="TIME_LOG_NOT_FOUND",
                message="Time log not found.",
            )
        self.recorder.record(
            work_item_id=time_log.work_item_id,
            actor_id=principal.id,
            action="TIMER_STOPPED",
            changes={
                "timeLogId": time_log.id,
                "durationMins": duration_mins,
                "message": f"Timer stopped after {duration_mins} minutes",
            },
            connection=connection,
        )
        logger.info("Timer %s stopped after %d minutes", time_log.id, duration_mins)
        return stopped

    def _to_read(self, time_log: TimeLogEntity, item: WorkItemEntity | None) -> TimeLogRead:
        read = TimeLogRead.model_validate(time_log)
        if item is not None:
            read.work_item = TimeLogWorkItem.model_validate(item)
        return read

    def _require_user(self, principal: Principal, connection: Connection) -> UserEntity:
        user = self.user_repository.get_by_id(principal.id, connection=connection)
        if user is None:
            raise AppError(
                status_code=status.HTTP_401_UNAUTHORIZED,
                code="SESSION_INVALID",
                message="Your session is invalid. Please log out and log back in.",
            )
        return user
