"""
Calendar Aggregator.

Fans out to every enabled event source concurrently, normalizes what
comes back and merges it into one deterministic event list. A failing or
slow source is reported in ``CalendarResult.errors`` and contributes no
events; the other sources still render.
"""
import asyncio
from datetime import date, datetime, time, timedelta
from typing import Awaitable, List, Optional, Tuple

from homeops.config import Settings
from homeops.errors import HomeOpsError
from homeops.schemas.calendar import (
    CalendarEvent,
    CalendarResult,
    DashboardCounts,
    DateWindow,
    SourceError,
    SourceToggles,
    SourceType,
    UpcomingImportantDate,
)
from homeops.schemas.schedule import ShiftOccurrence
from homeops.services.batch_resolver import filter_repeat_batches
from homeops.services.normalizer import (
    NormalizeContext,
    ShiftRecord,
    TaskOccurrence,
    leave_days,
    normalize_all,
    project_next_occurrence,
)
from homeops.services.recurrence import completed_keys, effective_status, expand_occurrences
from homeops.services.schedule_service import expand_shifts, index_overrides
from homeops.stores.base import OPEN_STATUSES, CalendarStores
from homeops.utils.logger import get_logger
from homeops.utils.metrics import MetricsCollector, metrics_collector

logger = get_logger("homeops.calendar")

# Same-instant ordering between sources
_SOURCE_ORDER = {
    SourceType.LEAVE: 0,
    SourceType.IMPORTANT_DATE: 1,
    SourceType.SCHEDULE: 2,
    SourceType.TASK: 3,
    SourceType.LOG: 4,
}


async def _fetch_all(*fetches):
    """
    Await several fetches together. If one fails the rest are cancelled
    before the error propagates.
    """
    pending = [asyncio.ensure_future(fetch) for fetch in fetches]
    try:
        return await asyncio.gather(*pending)
    except Exception:
        for task in pending:
            task.cancel()
        raise


def _event_sort_key(event: CalendarEvent):
    start = event.start
    if not isinstance(start, datetime):
        start = datetime.combine(start, time.min)
    return (start, not event.all_day, _SOURCE_ORDER[event.source_type], event.id)


class CalendarAggregator:
    """Merge tasks, leave, child logs, important dates and shifts into one stream."""

    def __init__(
        self,
        stores: CalendarStores,
        settings: Optional[Settings] = None,
        metrics: Optional[MetricsCollector] = None,
    ):
        self.stores = stores
        self.settings = settings or Settings()
        self.metrics = metrics or metrics_collector

    async def _guarded(self, source: str, work: Awaitable[list]) -> Tuple[list, Optional[SourceError]]:
        """
        Run one source with a timeout.

        Any failure is turned into a ``SourceError``; cancellation of the
        caller is not caught and propagates.
        """
        self.metrics.source_fetched(source)
        timeout = self.settings.source_timeout_seconds
        try:
            return await asyncio.wait_for(work, timeout=timeout), None
        except asyncio.TimeoutError:
            error = SourceError(
                source=source,
                code="SOURCE_TIMEOUT",
                message=f"{source} did not respond within {timeout}s",
            )
        except HomeOpsError as e:
            error = SourceError(source=source, code=e.code, message=e.message)
        except Exception as e:
            error = SourceError(source=source, code="SOURCE_UNAVAILABLE", message=str(e) or type(e).__name__)

        self.metrics.source_failed(source)
        logger.error(
            "Calendar source failed",
            source=source,
            code=error.code,
            error=error.message,
        )
        return [], error

    async def _gather(self, jobs) -> Tuple[list, List[SourceError]]:
        results = await asyncio.gather(*(self._guarded(name, work) for name, work in jobs))
        items: list = []
        errors: List[SourceError] = []
        for contribution, error in results:
            items.extend(contribution)
            if error is not None:
                errors.append(error)
        return items, errors

    # ------------------------------------------------------------------
    # Sources
    # ------------------------------------------------------------------

    async def _task_events(self, window: DateWindow, scope: Optional[str], ctx: NormalizeContext) -> List[CalendarEvent]:
        store = self.stores.tasks
        tasks, completions, skipped, overrides = await _fetch_all(
            store.fetch_calendar_tasks(window, scope),
            store.fetch_completions(window),
            store.fetch_skipped(window),
            store.fetch_instance_overrides(window),
        )
        done = completed_keys(completions)
        skipped_keys = {(s.task_id, s.skipped_date) for s in skipped}
        override_by_key = {(o.task_id, o.instance_date): o for o in overrides}

        occurrences = []
        for task in tasks:
            for day in expand_occurrences(task, window):
                key = (task.id, day)
                if task.is_recurring and key in skipped_keys:
                    continue
                occurrences.append(TaskOccurrence(
                    task=task,
                    instance_date=day,
                    status=effective_status(task, day, done),
                    override=override_by_key.get(key) if task.is_recurring else None,
                ))
        return normalize_all(SourceType.TASK, occurrences, ctx)

    async def _leave_events(self, window: DateWindow, scope: Optional[str], ctx: NormalizeContext) -> List[CalendarEvent]:
        leave = await self.stores.leave.fetch_leave(window, user_id=scope)
        return normalize_all(SourceType.LEAVE, leave, ctx)

    async def _log_events(self, window: DateWindow, categories, ctx: NormalizeContext) -> List[CalendarEvent]:
        logs = await self.stores.logs.fetch_logs(window, categories)
        return normalize_all(SourceType.LOG, logs, ctx)

    async def _important_date_events(self, window: DateWindow, ctx: NormalizeContext) -> List[CalendarEvent]:
        records = await self.stores.important_dates.fetch_important_dates()
        events = {}
        # Project once per calendar year the window touches
        for year in range(window.start.year, window.end.year + 1):
            anchor = max(window.start, date(year, 1, 1))
            yearly = NormalizeContext(today=ctx.today, anchor=anchor)
            for event in normalize_all(SourceType.IMPORTANT_DATE, records, yearly):
                if window.contains(event.start):
                    events[event.id] = event
        return list(events.values())

    async def _schedule_events(
        self,
        window: DateWindow,
        ctx: NormalizeContext,
        side_errors: List[SourceError],
    ) -> List[CalendarEvent]:
        """
        Shifts for the window, minus days their owner is on approved leave.

        Leave is read through its own guard; if it fails the shifts are
        shown unsuppressed and the failure is added to ``side_errors``.
        """
        store = self.stores.schedules
        (templates, overrides, one_offs), (leave, leave_error) = await _fetch_all(
            _fetch_all(store.fetch_templates(), store.fetch_overrides(window), store.fetch_one_offs(window)),
            self._guarded("leave", self.stores.leave.fetch_leave(window)),
        )
        if leave_error is not None:
            side_errors.append(leave_error)
        on_leave = {(request.user_id, day) for request in leave for day in leave_days(request)}

        records = []
        for template, occurrence in expand_shifts(templates, window, index_overrides(overrides)):
            if (template.user_id, occurrence.shift_date) in on_leave:
                continue
            records.append(ShiftRecord(
                occurrence=occurrence,
                user_id=template.user_id,
                user=template.user,
                day_of_week=template.day_of_week,
            ))

        for one_off in one_offs:
            if (one_off.user_id, one_off.schedule_date) in on_leave:
                continue
            records.append(ShiftRecord(
                occurrence=ShiftOccurrence(
                    schedule_id=one_off.id,
                    shift_date=one_off.schedule_date,
                    start=one_off.start_time,
                    end=one_off.end_time,
                ),
                user_id=one_off.user_id,
                user=one_off.user,
                one_off_id=one_off.id,
            ))
        return normalize_all(SourceType.SCHEDULE, records, ctx)

    # ------------------------------------------------------------------
    # Public operations
    # ------------------------------------------------------------------

    async def get_events(
        self,
        window: DateWindow,
        toggles: Optional[SourceToggles] = None,
        scope: Optional[str] = None,
        today: Optional[date] = None,
    ) -> CalendarResult:
        """
        Build the merged event list for ``window``.

        Args:
            window: Inclusive date range to render
            toggles: Which sources to include; disabled sources are not fetched
            scope: Optional user id; scoped calls never include important
                dates or schedules
            today: Reference date for yearly projection, defaults to the
                configured time zone's current date

        Returns:
            CalendarResult with events in a stable order and one error per
            failed source
        """
        toggles = toggles or SourceToggles()
        ctx = NormalizeContext(today=today or self.settings.today())

        jobs = []
        side_errors: List[SourceError] = []
        if toggles.tasks:
            jobs.append(("tasks", self._task_events(window, scope, ctx)))
        if toggles.leave:
            jobs.append(("leave", self._leave_events(window, scope, ctx)))
        categories = toggles.log_categories()
        if categories:
            jobs.append(("logs", self._log_events(window, categories, ctx)))
        if scope is None and toggles.important_dates:
            jobs.append(("important_dates", self._important_date_events(window, ctx)))
        if scope is None and toggles.schedules:
            jobs.append(("schedules", self._schedule_events(window, ctx, side_errors)))

        with self.metrics.time_operation("calendar_get_events_seconds"):
            events, errors = await self._gather(jobs)

        reported = {error.source for error in errors}
        errors.extend(error for error in side_errors if error.source not in reported)

        events.sort(key=_event_sort_key)
        self.metrics.events_emitted(len(events))
        logger.bind(window_start=str(window.start), window_end=str(window.end)).debug(
            "Calendar aggregated",
            sources=[name for name, _ in jobs],
            events=len(events),
            errors=len(errors),
        )
        return CalendarResult(events=events, errors=errors)

    async def _open_representatives(self, today: date, scope: Optional[str]) -> list:
        rows = await self.stores.tasks.list_tasks(statuses=OPEN_STATUSES, user_id=scope)
        return filter_repeat_batches(rows, today, status_filter=list(OPEN_STATUSES))

    async def _users_on_leave(self, today: date, scope: Optional[str]) -> list:
        leave = await self.stores.leave.fetch_leave(DateWindow(today, today), user_id=scope)
        return sorted({request.user_id for request in leave if today in leave_days(request)})

    async def get_counts(self, today: Optional[date] = None, scope: Optional[str] = None) -> DashboardCounts:
        """Dashboard summary: pending and overdue tasks, people on leave today."""
        today = today or self.settings.today()
        results = await asyncio.gather(
            self._guarded("tasks", self._open_representatives(today, scope)),
            self._guarded("leave", self._users_on_leave(today, scope)),
        )
        (open_rows, task_error), (on_leave, leave_error) = results

        return DashboardCounts(
            pending_tasks=len(open_rows),
            overdue_tasks=sum(1 for row in open_rows if row.due_date is not None and row.due_date < today),
            on_leave_today=len(on_leave),
            errors=[error for error in (task_error, leave_error) if error is not None],
        )

    async def upcoming_important_dates(self, days: int = 7, today: Optional[date] = None) -> List[UpcomingImportantDate]:
        """Important dates falling within the next ``days`` days, soonest first."""
        today = today or self.settings.today()
        horizon = today + timedelta(days=days)
        records = await self.stores.important_dates.fetch_important_dates()

        upcoming = []
        for record in records:
            occurs_on = project_next_occurrence(record.month, record.day, today)
            if occurs_on is None or occurs_on > horizon:
                continue
            upcoming.append(UpcomingImportantDate(
                label=record.label,
                employee_id=record.user_id,
                employee_name=record.user.full_name if record.user else None,
                occurs_on=occurs_on,
                days_until=(occurs_on - today).days,
            ))
        upcoming.sort(key=lambda item: (item.occurs_on, item.label, item.employee_id))
        return upcoming
