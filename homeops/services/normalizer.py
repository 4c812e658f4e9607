"""
Event Normalizer.

One pure function per source type turns a raw record into a
``CalendarEvent``. Consumers never inspect id prefixes; they read
``source_type``. A record whose data cannot produce a truthful event is
dropped (``None``) instead of being defaulted to a made-up date or time.
"""
from dataclasses import dataclass
from datetime import date, datetime, time, timedelta
from typing import Any, Callable, Dict, List, Optional, Tuple, Union
import logging

from homeops.errors import InvalidDateError
from homeops.models.child_log import ChildLog
from homeops.models.important_date import ImportantDate
from homeops.models.leave import LeaveRequest
from homeops.models.task import Task, TaskInstanceOverride
from homeops.models.user import User
from homeops.schemas.calendar import CalendarEvent, SourceType
from homeops.schemas.schedule import ShiftOccurrence
from homeops.utils.dates import combine, format_date, parse_local_date

logger = logging.getLogger(__name__)

DEFAULT_TASK_COLOR = "#60a5fa"
SCHEDULE_COLOR = "#94a3b8"
IMPORTANT_DATE_COLOR = "#f9a8d4"
FALLBACK_COLOR = "#6b7280"

LEAVE_COLORS = {
    "holiday": "#fbbf24",
    "vacation": "#67e8f9",
    "sick": "#fca5a5",
}

LOG_COLORS = {
    "sleep": "#c4b5fd",
    "food": "#fdba74",
    "poop": "#d6d3d1",
    "shower": "#6ee7b7",
}

HOLIDAY_PREFIX = "Holiday:"

# How many years ahead to look for Feb 29
_MAX_PROJECTION_YEARS = 8


@dataclass(frozen=True)
class NormalizeContext:
    today: date
    # Earliest date yearly records are projected onto; defaults to today
    anchor: Optional[date] = None

    @property
    def projection_start(self) -> date:
        return self.anchor or self.today


@dataclass(frozen=True)
class TaskOccurrence:
    """A task on one concrete date, with its per-date state resolved."""
    task: Task
    instance_date: Optional[date]
    status: str
    override: Optional[TaskInstanceOverride] = None


@dataclass(frozen=True)
class ShiftRecord:
    """A resolved shift plus the owner data needed to label it."""
    occurrence: ShiftOccurrence
    user_id: str
    user: Optional[User] = None
    day_of_week: Optional[int] = None
    one_off_id: Optional[str] = None


Span = Tuple[Union[datetime, date], Union[datetime, date], bool]


def _fmt_time(value: Optional[time]) -> Optional[str]:
    return value.strftime("%H:%M") if value is not None else None


def _all_day(day: date, last_day: Optional[date] = None) -> Span:
    return day, (last_day or day) + timedelta(days=1), True


def _point(day: date, at: time) -> Span:
    moment = combine(day, at)
    return moment, moment, False


def _timed_span(day: date, start: time, end: time) -> Span:
    """Span on ``day``; an end before the start runs past midnight."""
    start_at = combine(day, start)
    end_at = combine(day, end)
    if end_at < start_at:
        end_at += timedelta(days=1)
    return start_at, end_at, False


def _user_name(user: Optional[User]) -> Optional[str]:
    return user.full_name if user is not None else None


# ---------------------------------------------------------------------------
# Tasks
# ---------------------------------------------------------------------------


def _task_span(task: Task, day: date, override: Optional[TaskInstanceOverride]) -> Span:
    if task.is_all_day:
        return _all_day(day)

    if override is not None:
        if task.is_activity and override.override_start_time and override.override_end_time:
            return _timed_span(day, override.override_start_time, override.override_end_time)
        if override.override_time:
            return _point(day, override.override_time)

    if task.is_activity:
        if task.start_time and task.end_time:
            return _timed_span(day, task.start_time, task.end_time)
        if task.start_time or task.end_time:
            return _point(day, task.start_time or task.end_time)

    if task.due_time:
        return _point(day, task.due_time)

    return _all_day(day)


def normalize_task(record: TaskOccurrence, ctx: NormalizeContext) -> Optional[CalendarEvent]:
    task = record.task
    day = record.instance_date
    if day is None:
        logger.debug(f"Dropping task {task.id}: no date to place it on")
        return None

    start, end, all_day = _task_span(task, day, record.override)
    category = task.category

    event_id = f"task-{task.id}-{format_date(day)}" if task.is_recurring else f"task-{task.id}"
    return CalendarEvent(
        id=event_id,
        title=task.title,
        start=start,
        end=end,
        all_day=all_day,
        color=(category.color if category and category.color else DEFAULT_TASK_COLOR),
        source_type=SourceType.TASK,
        resource_id=task.id,
        extended_props={
            "status": record.status,
            "priority": task.priority,
            "category": category.name if category else None,
            "is_recurring": task.is_recurring,
            "is_activity": task.is_activity,
            "instance_date": format_date(day),
            "assigned_to": task.assigned_to,
            "has_time_override": record.override is not None,
            "original_due_time": _fmt_time(task.due_time),
            "original_start_time": _fmt_time(task.start_time),
            "original_end_time": _fmt_time(task.end_time),
        },
    )


# ---------------------------------------------------------------------------
# Leave
# ---------------------------------------------------------------------------


def _selected_dates(leave: LeaveRequest) -> List[date]:
    parsed = []
    for raw in leave.selected_dates or []:
        try:
            parsed.append(parse_local_date(raw))
        except InvalidDateError:
            logger.warning(f"Leave {leave.id} has unusable selected date {raw!r}; ignoring it")
    return sorted(set(parsed))


def leave_days(leave: LeaveRequest) -> List[date]:
    """Every calendar date a leave request covers."""
    selected = _selected_dates(leave)
    if selected:
        return selected
    if leave.start_date is None or leave.end_date is None or leave.start_date > leave.end_date:
        return []
    span = (leave.end_date - leave.start_date).days
    return [leave.start_date + timedelta(days=offset) for offset in range(span + 1)]


def is_holiday(leave: LeaveRequest) -> bool:
    return leave.leave_type == "holiday" or bool(leave.reason and leave.reason.startswith(HOLIDAY_PREFIX))


def normalize_leave(leave: LeaveRequest, ctx: NormalizeContext) -> Optional[CalendarEvent]:
    selected = _selected_dates(leave)
    if selected:
        first, last = selected[0], selected[-1]
    else:
        first, last = leave.start_date, leave.end_date
        if first is None or last is None:
            logger.warning(f"Dropping leave {leave.id}: missing start or end date")
            return None
        if first > last:
            logger.warning(f"Dropping leave {leave.id}: start {first} is after end {last}")
            return None

    holiday = is_holiday(leave)
    holiday_name = None
    if holiday and leave.reason:
        holiday_name = leave.reason[len(HOLIDAY_PREFIX):].strip() if leave.reason.startswith(HOLIDAY_PREFIX) else leave.reason

    if holiday:
        display_type, color_key = "Holiday", "holiday"
    elif leave.leave_type in ("vacation", "pto"):
        display_type, color_key = "Vacation", "vacation"
    else:
        display_type, color_key = "Sick", "sick"

    name = _user_name(leave.user) or "Employee"
    start, end, _ = _all_day(first, last)
    return CalendarEvent(
        id=f"leave-{leave.id}",
        title=f"{name} - {holiday_name or display_type}",
        start=start,
        end=end,
        all_day=True,
        color=LEAVE_COLORS[color_key],
        source_type=SourceType.LEAVE,
        resource_id=leave.id,
        extended_props={
            "leave_type": "holiday" if holiday else leave.leave_type,
            "user_id": leave.user_id,
            "user_name": _user_name(leave.user),
            "total_days": leave.total_days,
            "is_holiday": holiday,
            "holiday_name": holiday_name,
            "selected_dates": [format_date(d) for d in selected] or None,
        },
    )


# ---------------------------------------------------------------------------
# Child logs
# ---------------------------------------------------------------------------


def _log_span(log: ChildLog) -> Optional[Span]:
    day = log.log_date
    if log.category == "sleep":
        if log.start_time and log.end_time:
            return _timed_span(day, log.start_time, log.end_time)
        if log.start_time or log.end_time:
            return _point(day, log.start_time or log.end_time)
    if log.log_time:
        return _point(day, log.log_time)
    return None


def normalize_log(log: ChildLog, ctx: NormalizeContext) -> Optional[CalendarEvent]:
    if log.log_date is None:
        logger.warning(f"Dropping child log {log.id}: no log date")
        return None
    span = _log_span(log)
    if span is None:
        logger.warning(f"Dropping child log {log.id}: no time recorded")
        return None

    start, end, _ = span
    return CalendarEvent(
        id=f"log-{log.id}",
        title=f"{log.child} - {log.category.capitalize()}",
        start=start,
        end=end,
        all_day=False,
        color=LOG_COLORS.get(log.category, FALLBACK_COLOR),
        source_type=SourceType.LOG,
        resource_id=log.id,
        extended_props={
            "log_category": log.category,
            "child": log.child,
            "description": log.description,
            "logged_by": _user_name(log.logged_by_user),
            "start_time": _fmt_time(log.start_time),
            "end_time": _fmt_time(log.end_time),
        },
    )


# ---------------------------------------------------------------------------
# Important dates
# ---------------------------------------------------------------------------


def project_next_occurrence(month: int, day: int, today: date) -> Optional[date]:
    """Next date on or after ``today`` with this month/day; None if it never exists."""
    for year in range(today.year, today.year + _MAX_PROJECTION_YEARS + 1):
        try:
            candidate = date(year, month, day)
        except (TypeError, ValueError):
            continue
        if candidate >= today:
            return candidate
    return None


def normalize_important_date(record: ImportantDate, ctx: NormalizeContext) -> Optional[CalendarEvent]:
    occurs_on = project_next_occurrence(record.month, record.day, ctx.projection_start)
    if occurs_on is None:
        logger.warning(f"Dropping important date {record.id}: invalid month/day {record.month}/{record.day}")
        return None

    name = _user_name(record.user)
    start, end, _ = _all_day(occurs_on)
    return CalendarEvent(
        id=f"important-{record.id}-{occurs_on.year}",
        title=f"{record.label} ({name})" if name else record.label,
        start=start,
        end=end,
        all_day=True,
        color=IMPORTANT_DATE_COLOR,
        source_type=SourceType.IMPORTANT_DATE,
        resource_id=record.user_id,
        extended_props={
            "label": record.label,
            "employee_name": name,
            "employee_id": record.user_id,
            "month": record.month,
            "day": record.day,
            "days_until": (occurs_on - ctx.today).days,
        },
    )


# ---------------------------------------------------------------------------
# Schedules
# ---------------------------------------------------------------------------


def normalize_schedule(record: ShiftRecord, ctx: NormalizeContext) -> Optional[CalendarEvent]:
    occurrence = record.occurrence
    if occurrence.cancelled:
        return None
    if occurrence.start is None or occurrence.end is None:
        logger.warning(f"Dropping shift {occurrence.schedule_id} on {occurrence.shift_date}: missing times")
        return None
    if record.user is None:
        logger.warning(f"Dropping shift {occurrence.schedule_id}: owner {record.user_id} not found")
        return None

    start, end, _ = _timed_span(occurrence.shift_date, occurrence.start, occurrence.end)
    day = format_date(occurrence.shift_date)
    props: Dict[str, Any] = {
        "schedule_id": occurrence.schedule_id,
        "schedule_date": day,
        "user_id": record.user_id,
        "user_name": record.user.full_name,
        "avatar_url": record.user.avatar_url,
        "has_override": occurrence.has_override,
        "is_one_off": record.one_off_id is not None,
    }
    if record.day_of_week is not None:
        props["day_of_week"] = record.day_of_week
    if occurrence.has_override:
        props["original_start_time"] = _fmt_time(occurrence.original_start)
        props["original_end_time"] = _fmt_time(occurrence.original_end)
        props["override_notes"] = occurrence.notes

    if record.one_off_id is not None:
        event_id = f"schedule-oneoff-{record.one_off_id}"
    else:
        event_id = f"schedule-{occurrence.schedule_id}-{day}"

    return CalendarEvent(
        id=event_id,
        title=record.user.full_name,
        start=start,
        end=end,
        all_day=False,
        color=SCHEDULE_COLOR,
        source_type=SourceType.SCHEDULE,
        resource_id=record.one_off_id or occurrence.schedule_id,
        extended_props=props,
    )


Normalizer = Callable[[Any, NormalizeContext], Optional[CalendarEvent]]

NORMALIZERS: Dict[SourceType, Normalizer] = {
    SourceType.TASK: normalize_task,
    SourceType.LEAVE: normalize_leave,
    SourceType.LOG: normalize_log,
    SourceType.IMPORTANT_DATE: normalize_important_date,
    SourceType.SCHEDULE: normalize_schedule,
}


def normalize(source_type: SourceType, record: Any, ctx: NormalizeContext) -> Optional[CalendarEvent]:
    """Dispatch a raw record to the normalizer for its source type."""
    return NORMALIZERS[source_type](record, ctx)


def normalize_all(source_type: SourceType, records, ctx: NormalizeContext) -> List[CalendarEvent]:
    events = []
    for record in records:
        event = normalize(source_type, record, ctx)
        if event is not None:
            events.append(event)
    return events
