"""
Schedule Override Resolver.

Projects weekly shift templates onto concrete dates and layers per-date
overrides (cancellation or moved times) on top. Overrides never modify the
template row, only the derived occurrence.
"""
from datetime import date, time
from typing import Dict, Iterable, List, Mapping, Optional, Tuple
import logging

from homeops.errors import InvalidOverrideError
from homeops.models.schedule import EmployeeSchedule, ScheduleOverride
from homeops.schemas.calendar import DateWindow
from homeops.schemas.schedule import ShiftOccurrence
from homeops.utils.dates import iter_days, sunday_weekday

logger = logging.getLogger(__name__)

OverrideKey = Tuple[str, date]


def index_overrides(overrides: Iterable[ScheduleOverride]) -> Dict[OverrideKey, ScheduleOverride]:
    """Map overrides by ``(schedule_id, override_date)``; the last one read wins."""
    return {(o.schedule_id, o.override_date): o for o in overrides}


def resolve_shift_occurrence(
    template: EmployeeSchedule,
    target_date: date,
    overrides: Mapping[OverrideKey, ScheduleOverride],
) -> Optional[ShiftOccurrence]:
    """
    Resolve one template onto one date.

    Returns None when the template does not run on that weekday. A
    cancelled override yields ``cancelled=True`` and callers omit the shift.
    """
    if sunday_weekday(target_date) != template.day_of_week:
        return None

    override = overrides.get((template.id, target_date))
    if override is None:
        return ShiftOccurrence(
            schedule_id=template.id,
            shift_date=target_date,
            start=template.start_time,
            end=template.end_time,
        )

    if override.is_cancelled:
        return ShiftOccurrence(
            schedule_id=template.id,
            shift_date=target_date,
            cancelled=True,
            has_override=True,
            original_start=template.start_time,
            original_end=template.end_time,
            notes=override.notes,
        )

    return ShiftOccurrence(
        schedule_id=template.id,
        shift_date=target_date,
        start=override.start_time or template.start_time,
        end=override.end_time or template.end_time,
        has_override=True,
        original_start=template.start_time,
        original_end=template.end_time,
        notes=override.notes,
    )


def expand_shifts(
    templates: Iterable[EmployeeSchedule],
    window: DateWindow,
    overrides: Mapping[OverrideKey, ScheduleOverride],
) -> List[Tuple[EmployeeSchedule, ShiftOccurrence]]:
    """Every non-cancelled shift of active templates inside ``window``."""
    shifts = []
    for template in templates:
        if not template.is_active:
            continue
        for day in iter_days(window.start, window.end):
            occurrence = resolve_shift_occurrence(template, day, overrides)
            if occurrence is None or occurrence.cancelled:
                continue
            shifts.append((template, occurrence))
    return shifts


def validate_override(start_time: Optional[time], end_time: Optional[time], is_cancelled: bool) -> None:
    """
    A live override needs at least one time; a missing side keeps the
    template's. An end before the start runs past midnight.
    """
    if is_cancelled:
        return
    if start_time is None and end_time is None:
        raise InvalidOverrideError(
            "Override must either cancel the shift or provide a start or end time",
            details={"start_time": None, "end_time": None}
        )
    if start_time is not None and start_time == end_time:
        raise InvalidOverrideError(
            f"Override start and end time are both {start_time}",
            details={"start_time": str(start_time), "end_time": str(end_time)}
        )


class ScheduleOverrideService:
    """Write side for schedule overrides; keyed, idempotent, last write wins."""

    def __init__(self, store):
        self.store = store

    async def upsert_override(
        self,
        schedule_id: str,
        override_date: date,
        start_time: Optional[time] = None,
        end_time: Optional[time] = None,
        is_cancelled: bool = False,
        notes: Optional[str] = None,
        created_by: Optional[str] = None,
    ) -> ScheduleOverride:
        """Create or replace the override for ``(schedule_id, override_date)``."""
        validate_override(start_time, end_time, is_cancelled)
        if is_cancelled:
            start_time = end_time = None

        override = await self.store.upsert_override(
            schedule_id=schedule_id,
            override_date=override_date,
            start_time=start_time,
            end_time=end_time,
            is_cancelled=is_cancelled,
            notes=notes,
            created_by=created_by,
        )
        logger.info(
            f"Saved override for schedule {schedule_id} on {override_date} "
            f"(cancelled={is_cancelled})"
        )
        return override

    async def delete_override(self, schedule_id: str, override_date: date) -> bool:
        """Remove an override, restoring the template. Missing overrides are a no-op."""
        deleted = await self.store.delete_override(schedule_id, override_date)
        if deleted:
            logger.info(f"Deleted override for schedule {schedule_id} on {override_date}")
        else:
            logger.debug(f"No override for schedule {schedule_id} on {override_date}; nothing to delete")
        return deleted
