from fastapi import APIRouter

from workdesk.api.routes.comments import router as comment_router
from workdesk.api.routes.health import router as health_router
from workdesk.api.routes.reference import router as reference_router
from workdesk.api.routes.time_logs import router as time_log_router
from workdesk.api.routes.work_items import task_router, ticket_router

api_router = APIRouter()
api_router.include_router(health_router, tags=["health"])
api_router.include_router(ticket_router, tags=["tickets"])
api_router.include_router(task_router, tags=["tasks"])
api_router.include_router(time_log_router, tags=["time-logs"])
api_router.include_router(comment_router, tags=["comments"])
api_router.include_router(reference_router, tags=["reference"])
