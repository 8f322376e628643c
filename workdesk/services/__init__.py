"""Business services."""

from workdesk.services.activity_recorder import ActivityRecorder
from workdesk.services.assignment_service import AssignmentService
from workdesk.services.comment_service import CommentService
from workdesk.services.health_service import HealthService
from workdesk.services.reference_service import ReferenceService
from workdesk.services.time_log_service import TimeLogService
from workdesk.services.work_item_assembler import WorkItemAssembler
from workdesk.services.work_item_service import WorkItemService

__all__ = [
    "ActivityRecorder",
    "AssignmentService",
    "CommentService",
    "HealthService",
    "ReferenceService",
    "TimeLogService",
    "WorkItemAssembler",
    "WorkItemService",
]
