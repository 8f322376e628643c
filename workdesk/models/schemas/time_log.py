from datetime import datetime
from uuid import UUID

from workdesk.models.entities import WorkItemType
from workdesk.models.schemas.common import CamelCaseModel


class TimerStartRequest(CamelCaseModel):
    work_item_id: UUID
    notes: str | None = None


class TimerStopRequest(CamelCaseModel):
    time_log_id: UUID
    notes: str | None = None


class TimeLogWorkItem(CamelCaseModel):
    id: UUID
    type: WorkItemType
    title: str
    ticket_number: str | None = None
    task_number: str | None = None


class TimeLogRead(CamelCaseModel):
    id: UUID
    work_item_id: UUID
    user_id: UUID
    started_at: datetime
    ended_at: datetime | None = None
    duration_mins: int | None = None
    is_running: bool
    notes: str | None = None
    work_item: TimeLogWorkItem | None = None


class TimeLogDataResponse(CamelCaseModel):
    data: TimeLogRead


class ActiveTimerResponse(CamelCaseModel):
    data: TimeLogRead | None
