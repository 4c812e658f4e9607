"""Table models for the HomeOps portal."""
from homeops.models.user import User
from homeops.models.task import (
    Task,
    TaskCategory,
    TaskCompletion,
    TaskInstanceOverride,
    TaskSkippedInstance,
)
from homeops.models.leave import LeaveRequest
from homeops.models.child_log import ChildLog
from homeops.models.important_date import ImportantDate
from homeops.models.schedule import EmployeeSchedule, ScheduleOneOff, ScheduleOverride

__all__ = [
    "User",
    "Task",
    "TaskCategory",
    "TaskCompletion",
    "TaskInstanceOverride",
    "TaskSkippedInstance",
    "LeaveRequest",
    "ChildLog",
    "ImportantDate",
    "EmployeeSchedule",
    "ScheduleOneOff",
    "ScheduleOverride",
]
