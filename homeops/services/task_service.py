"""Per-occurrence task state and repeat-batch views."""
from datetime import date, time
from typing import List, Optional, Sequence
import logging

from homeops.errors import InvalidInstanceError, TaskNotFoundError
from homeops.models.task import Task, TaskCompletion, TaskInstanceOverride, TaskSkippedInstance
from homeops.schemas.task import ExpiringBatch
from homeops.services.batch_resolver import filter_repeat_batches, find_expiring_batches
from homeops.services.recurrence import is_due_on
from homeops.stores.base import OPEN_STATUSES, TaskStore

logger = logging.getLogger(__name__)


class TaskInstanceService:
    """Service class for completing, skipping and moving single task occurrences."""

    def __init__(self, store: TaskStore):
        self.store = store

    async def _recurring_occurrence(self, task_id: str, instance_date: date) -> Task:
        task = await self.store.get_task(task_id)
        if task is None:
            raise TaskNotFoundError(task_id)
        if not task.is_recurring:
            raise InvalidInstanceError(task_id, instance_date, "task is not recurring")
        if not is_due_on(task, instance_date):
            raise InvalidInstanceError(task_id, instance_date, "task does not occur on this date")
        return task

    async def complete_instance(self, task_id: str, instance_date: date, user_id: Optional[str] = None) -> TaskCompletion:
        """Mark one occurrence completed. Repeating the call keeps a single completion."""
        await self._recurring_occurrence(task_id, instance_date)
        completion = await self.store.upsert_completion(task_id, instance_date, completed_by=user_id)
        logger.info(f"Completed task {task_id} for {instance_date}")
        return completion

    async def uncomplete_instance(self, task_id: str, instance_date: date) -> bool:
        """Reopen one occurrence; returns False when it was not completed."""
        removed = await self.store.delete_completion(task_id, instance_date)
        if removed:
            logger.info(f"Reopened task {task_id} for {instance_date}")
        return removed

    async def skip_instance(self, task_id: str, instance_date: date, user_id: Optional[str] = None) -> TaskSkippedInstance:
        """Hide one occurrence from the calendar without touching the definition."""
        await self._recurring_occurrence(task_id, instance_date)
        skipped = await self.store.upsert_skip(task_id, instance_date, skipped_by=user_id)
        logger.info(f"Skipped task {task_id} on {instance_date}")
        return skipped

    async def override_instance_time(
        self,
        task_id: str,
        instance_date: date,
        override_time: Optional[time] = None,
        override_start_time: Optional[time] = None,
        override_end_time: Optional[time] = None,
        user_id: Optional[str] = None,
    ) -> TaskInstanceOverride:
        """
        Move a single occurrence to other times.

        Activities take a start/end pair; other tasks take a single time.
        """
        task = await self._recurring_occurrence(task_id, instance_date)
        if task.is_activity:
            if override_start_time is None or override_end_time is None:
                raise InvalidInstanceError(task_id, instance_date, "activity override needs start and end times")
            if override_end_time <= override_start_time:
                raise InvalidInstanceError(task_id, instance_date, "override end time must be after start time")
        elif override_time is None:
            raise InvalidInstanceError(task_id, instance_date, "override needs a time")

        return await self.store.upsert_instance_override(
            task_id,
            instance_date,
            override_time=override_time,
            override_start_time=override_start_time,
            override_end_time=override_end_time,
            created_by=user_id,
        )

    async def list_tasks(
        self,
        today: date,
        status_filter: Optional[Sequence[str]] = None,
        user_id: Optional[str] = None,
    ) -> List[Task]:
        """Task rows with repeat batches collapsed to their relevant occurrence."""
        rows = await self.store.list_tasks(statuses=status_filter, user_id=user_id)
        return filter_repeat_batches(rows, today, status_filter=status_filter)

    async def expiring_batches(
        self,
        today: date,
        horizon_days: int = 30,
        user_id: Optional[str] = None,
    ) -> List[ExpiringBatch]:
        """Repeat batches whose last open occurrence falls within ``horizon_days``."""
        all_rows = await self.store.list_tasks(user_id=user_id)
        open_rows = [row for row in all_rows if row.status in OPEN_STATUSES]
        return find_expiring_batches(all_rows, open_rows, today, horizon_days=horizon_days)
