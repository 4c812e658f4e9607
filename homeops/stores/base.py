"""
Typed data-access boundary.

The engine only talks to storage through these protocols. The SQLModel
backend lives in ``homeops.stores.sql``; ``homeops.stores.memory`` keeps
everything in process.
"""
from dataclasses import dataclass
from datetime import date, time
from typing import List, Optional, Protocol, Sequence

from homeops.models.child_log import ChildLog
from homeops.models.important_date import ImportantDate
from homeops.models.leave import LeaveRequest
from homeops.models.schedule import EmployeeSchedule, ScheduleOneOff, ScheduleOverride
from homeops.models.task import (
    Task,
    TaskCompletion,
    TaskInstanceOverride,
    TaskSkippedInstance,
)
from homeops.schemas.calendar import DateWindow

OPEN_STATUSES = ("pending", "in_progress")


class TaskStore(Protocol):
    async def fetch_calendar_tasks(self, window: DateWindow, user_id: Optional[str] = None) -> List[Task]:
        """Non-recurring tasks due inside the window plus recurring definitions starting by its end."""
        ...

    async def list_tasks(
        self, statuses: Optional[Sequence[str]] = None, user_id: Optional[str] = None
    ) -> List[Task]:
        ...

    async def get_task(self, task_id: str) -> Optional[Task]:
        ...

    async def fetch_completions(self, window: DateWindow) -> List[TaskCompletion]:
        ...

    async def fetch_skipped(self, window: DateWindow) -> List[TaskSkippedInstance]:
        ...

    async def fetch_instance_overrides(self, window: DateWindow) -> List[TaskInstanceOverride]:
        ...

    async def upsert_completion(
        self, task_id: str, completion_date: date, completed_by: Optional[str] = None
    ) -> TaskCompletion:
        ...

    async def delete_completion(self, task_id: str, completion_date: date) -> bool:
        ...

    async def upsert_skip(
        self, task_id: str, skipped_date: date, skipped_by: Optional[str] = None
    ) -> TaskSkippedInstance:
        ...

    async def upsert_instance_override(
        self,
        task_id: str,
        instance_date: date,
        override_time: Optional[time] = None,
        override_start_time: Optional[time] = None,
        override_end_time: Optional[time] = None,
        created_by: Optional[str] = None,
    ) -> TaskInstanceOverride:
        ...


class LeaveStore(Protocol):
    async def fetch_leave(
        self,
        window: DateWindow,
        user_id: Optional[str] = None,
        statuses: Sequence[str] = ("approved",),
    ) -> List[LeaveRequest]:
        """Leave requests whose date range overlaps the window."""
        ...


class ChildLogStore(Protocol):
    async def fetch_logs(
        self, window: DateWindow, categories: Sequence[str], child: Optional[str] = None
    ) -> List[ChildLog]:
        ...


class ImportantDateStore(Protocol):
    async def fetch_important_dates(self) -> List[ImportantDate]:
        ...


class ScheduleStore(Protocol):
    async def fetch_templates(self, user_id: Optional[str] = None) -> List[EmployeeSchedule]:
        """Active weekly templates."""
        ...

    async def fetch_overrides(self, window: DateWindow) -> List[ScheduleOverride]:
        ...

    async def fetch_one_offs(self, window: DateWindow, user_id: Optional[str] = None) -> List[ScheduleOneOff]:
        ...

    async def upsert_override(
        self,
        schedule_id: str,
        override_date: date,
        start_time: Optional[time],
        end_time: Optional[time],
        is_cancelled: bool,
        notes: Optional[str] = None,
        created_by: Optional[str] = None,
    ) -> ScheduleOverride:
        ...

    async def delete_override(self, schedule_id: str, override_date: date) -> bool:
        ...


@dataclass
class CalendarStores:
    """Every store the aggregator reads from."""
    tasks: TaskStore
    leave: LeaveStore
    logs: ChildLogStore
    important_dates: ImportantDateStore
    schedules: ScheduleStore
