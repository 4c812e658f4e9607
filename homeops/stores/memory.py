"""
In-process stores.

Used by tests and local demos. Every fetch is counted in ``calls`` so
callers can assert which sources were actually queried.
"""
from collections import Counter
from datetime import date, time
from typing import Dict, List, Optional, Sequence, Tuple

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
from homeops.models.user import utcnow
from homeops.schemas.calendar import DateWindow
from homeops.stores.base import CalendarStores

Key = Tuple[str, date]


class InMemoryStores:
    """One object implementing every store protocol over plain lists."""

    def __init__(
        self,
        tasks: Optional[List[Task]] = None,
        leave: Optional[List[LeaveRequest]] = None,
        logs: Optional[List[ChildLog]] = None,
        important_dates: Optional[List[ImportantDate]] = None,
        templates: Optional[List[EmployeeSchedule]] = None,
        one_offs: Optional[List[ScheduleOneOff]] = None,
    ):
        self.tasks = list(tasks or [])
        self.leave = list(leave or [])
        self.logs = list(logs or [])
        self.important_dates = list(important_dates or [])
        self.templates = list(templates or [])
        self.one_offs = list(one_offs or [])

        self.completions: Dict[Key, TaskCompletion] = {}
        self.skipped: Dict[Key, TaskSkippedInstance] = {}
        self.instance_overrides: Dict[Key, TaskInstanceOverride] = {}
        self.schedule_overrides: Dict[Key, ScheduleOverride] = {}

        self.calls: Counter = Counter()

    def bundle(self) -> CalendarStores:
        return CalendarStores(
            tasks=self,
            leave=self,
            logs=self,
            important_dates=self,
            schedules=self,
        )

    # Tasks

    @staticmethod
    def _visible_to(task: Task, user_id: Optional[str]) -> bool:
        return not user_id or task.assigned_to is None or task.assigned_to == user_id

    async def fetch_calendar_tasks(self, window: DateWindow, user_id: Optional[str] = None) -> List[Task]:
        self.calls["tasks"] += 1
        result = []
        for task in self.tasks:
            if task.due_date is None or not self._visible_to(task, user_id):
                continue
            if task.due_date > window.end:
                continue
            if task.is_recurring or task.due_date >= window.start:
                result.append(task)
        return result

    async def list_tasks(self, statuses: Optional[Sequence[str]] = None, user_id: Optional[str] = None) -> List[Task]:
        self.calls["list_tasks"] += 1
        return [
            task for task in self.tasks
            if (not statuses or task.status in statuses) and self._visible_to(task, user_id)
        ]

    async def get_task(self, task_id: str) -> Optional[Task]:
        return next((task for task in self.tasks if task.id == task_id), None)

    async def fetch_completions(self, window: DateWindow) -> List[TaskCompletion]:
        self.calls["completions"] += 1
        return [c for c in self.completions.values() if window.contains(c.completion_date)]

    async def fetch_skipped(self, window: DateWindow) -> List[TaskSkippedInstance]:
        self.calls["skipped"] += 1
        return [s for s in self.skipped.values() if window.contains(s.skipped_date)]

    async def fetch_instance_overrides(self, window: DateWindow) -> List[TaskInstanceOverride]:
        self.calls["instance_overrides"] += 1
        return [o for o in self.instance_overrides.values() if window.contains(o.instance_date)]

    async def upsert_completion(self, task_id: str, completion_date: date, completed_by: Optional[str] = None) -> TaskCompletion:
        row = self.completions.get((task_id, completion_date))
        if row is None:
            row = TaskCompletion(task_id=task_id, completion_date=completion_date)
            self.completions[(task_id, completion_date)] = row
        row.completed_by = completed_by
        row.completed_at = utcnow()
        return row

    async def delete_completion(self, task_id: str, completion_date: date) -> bool:
        return self.completions.pop((task_id, completion_date), None) is not None

    async def upsert_skip(self, task_id: str, skipped_date: date, skipped_by: Optional[str] = None) -> TaskSkippedInstance:
        row = self.skipped.get((task_id, skipped_date))
        if row is None:
            row = TaskSkippedInstance(task_id=task_id, skipped_date=skipped_date)
            self.skipped[(task_id, skipped_date)] = row
        row.skipped_by = skipped_by
        return row

    async def upsert_instance_override(
        self,
        task_id: str,
        instance_date: date,
        override_time: Optional[time] = None,
        override_start_time: Optional[time] = None,
        override_end_time: Optional[time] = None,
        created_by: Optional[str] = None,
    ) -> TaskInstanceOverride:
        row = self.instance_overrides.get((task_id, instance_date))
        if row is None:
            row = TaskInstanceOverride(task_id=task_id, instance_date=instance_date)
            self.instance_overrides[(task_id, instance_date)] = row
        row.override_time = override_time
        row.override_start_time = override_start_time
        row.override_end_time = override_end_time
        row.created_by = created_by
        return row

    # Leave

    async def fetch_leave(
        self,
        window: DateWindow,
        user_id: Optional[str] = None,
        statuses: Sequence[str] = ("approved",),
    ) -> List[LeaveRequest]:
        self.calls["leave"] += 1
        result = []
        for leave in self.leave:
            if leave.status not in statuses:
                continue
            if user_id and leave.user_id != user_id:
                continue
            if leave.start_date is None or leave.end_date is None:
                continue
            if window.overlaps(leave.start_date, leave.end_date):
                result.append(leave)
        return result

    # Child logs

    async def fetch_logs(self, window: DateWindow, categories: Sequence[str], child: Optional[str] = None) -> List[ChildLog]:
        self.calls["logs"] += 1
        return [
            log for log in self.logs
            if log.log_date is not None
            and window.contains(log.log_date)
            and log.category in categories
            and (child is None or log.child == child)
        ]

    # Important dates

    async def fetch_important_dates(self) -> List[ImportantDate]:
        self.calls["important_dates"] += 1
        return list(self.important_dates)

    # Schedules

    async def fetch_templates(self, user_id: Optional[str] = None) -> List[EmployeeSchedule]:
        self.calls["schedules"] += 1
        return [
            template for template in self.templates
            if template.is_active and (not user_id or template.user_id == user_id)
        ]

    async def fetch_overrides(self, window: DateWindow) -> List[ScheduleOverride]:
        self.calls["schedule_overrides"] += 1
        return [o for o in self.schedule_overrides.values() if window.contains(o.override_date)]

    async def fetch_one_offs(self, window: DateWindow, user_id: Optional[str] = None) -> List[ScheduleOneOff]:
        self.calls["one_offs"] += 1
        return [
            one_off for one_off in self.one_offs
            if window.contains(one_off.schedule_date) and (not user_id or one_off.user_id == user_id)
        ]

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
        row = self.schedule_overrides.get((schedule_id, override_date))
        if row is None:
            row = ScheduleOverride(schedule_id=schedule_id, override_date=override_date, created_by=created_by)
            self.schedule_overrides[(schedule_id, override_date)] = row
        row.start_time = start_time
        row.end_time = end_time
        row.is_cancelled = is_cancelled
        row.notes = notes
        row.updated_at = utcnow()
        return row

    async def delete_override(self, schedule_id: str, override_date: date) -> bool:
        return self.schedule_overrides.pop((schedule_id, override_date), None) is not None
