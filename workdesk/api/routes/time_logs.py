from typing import Annotated

from fastapi import APIRouter, Depends, status

from workdesk.api.deps import CurrentPrincipal, get_time_log_service
from workdesk.models.schemas.time_log import (
    ActiveTimerResponse,
    TimeLogDataResponse,
    TimerStartRequest,
    TimerStopRequest,
)
from workdesk.services.time_log_service import TimeLogService

router = APIRouter(prefix="/time-logs")


@router.post("/start", response_model=TimeLogDataResponse, status_code=status.HTTP_201_CREATED)
def start_timer(
    payload: TimerStartRequest,
    principal: CurrentPrincipal,
    service: Annotated[TimeLogService, Depends(get_time_log_service)],
) -> TimeLogDataResponse:
    return TimeLogDataResponse(data=service.start_timer(principal, payload))


@router.post("/stop", response_model=TimeLogDataResponse)
def stop_timer(
    payload: TimerStopRequest,
    principal: CurrentPrincipal,
    service: Annotated[TimeLogService, Depends(get_time_log_service)],
) -> TimeLogDataResponse:
    return TimeLogDataResponse(data=service.stop_timer(principal, payload))


@router.get("/active", response_model=ActiveTimerResponse)
def active_timer(
    principal: CurrentPrincipal,
    service: Annotated[TimeLogService, Depends(get_time_log_service)],
) -> ActiveTimerResponse:
    return ActiveTimerResponse(data=service.get_active_timer(principal))
