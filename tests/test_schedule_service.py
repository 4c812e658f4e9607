"""Tests for weekly shift resolution and override writes."""

from __future__ import annotations

from datetime import date, time

import pytest

from homeops.errors import InvalidOverrideError
from homeops.models import ScheduleOverride
from homeops.schemas.calendar import DateWindow
from homeops.services.schedule_service import (
    ScheduleOverrideService,
    expand_shifts,
    index_overrides,
    resolve_shift_occurrence,
)
from homeops.stores.memory import InMemoryStores
from tests.factories import make_template, make_user

pytestmark = pytest.mark.unit

MONDAY = date(2025, 3, 10)


@pytest.fixture
def monday_template():
    return make_template(make_user(), day_of_week=1, start=time(9), end=time(17))


class TestResolveShiftOccurrence:
    def test_template_times_without_override(self, monday_template):
        occurrence = resolve_shift_occurrence(monday_template, MONDAY, {})
        assert (occurrence.start, occurrence.end) == (time(9), time(17))
        assert occurrence.has_override is False

    def test_other_weekday_returns_none(self, monday_template):
        assert resolve_shift_occurrence(monday_template, date(2025, 3, 11), {}) is None

    def test_sunday_is_day_zero(self):
        template = make_template(make_user(), day_of_week=0)
        assert resolve_shift_occurrence(template, date(2025, 3, 9), {}) is not None

    def test_cancelled_override(self, monday_template):
        override = ScheduleOverride(schedule_id=monday_template.id, override_date=MONDAY, is_cancelled=True)
        occurrence = resolve_shift_occurrence(monday_template, MONDAY, index_overrides([override]))
        assert occurrence.cancelled is True
        assert occurrence.has_override is True

    def test_moved_override_keeps_original_times(self, monday_template):
        override = ScheduleOverride(
            schedule_id=monday_template.id, override_date=MONDAY,
            start_time=time(12), end_time=time(20), notes="Late start",
        )
        occurrence = resolve_shift_occurrence(monday_template, MONDAY, index_overrides([override]))
        assert (occurrence.start, occurrence.end) == (time(12), time(20))
        assert (occurrence.original_start, occurrence.original_end) == (time(9), time(17))
        assert occurrence.notes == "Late start"

    def test_override_for_other_date_is_ignored(self, monday_template):
        override = ScheduleOverride(schedule_id=monday_template.id, override_date=date(2025, 3, 17), is_cancelled=True)
        occurrence = resolve_shift_occurrence(monday_template, MONDAY, index_overrides([override]))
        assert occurrence.cancelled is False


def test_expand_shifts_skips_cancelled_and_inactive(monday_template):
    inactive = make_template(make_user(), day_of_week=2, is_active=False)
    override = ScheduleOverride(schedule_id=monday_template.id, override_date=MONDAY, is_cancelled=True)
    window = DateWindow(date(2025, 3, 3), date(2025, 3, 16))
    shifts = expand_shifts([monday_template, inactive], window, index_overrides([override]))
    assert [occurrence.shift_date for _, occurrence in shifts] == [date(2025, 3, 3)]


class TestScheduleOverrideService:
    @pytest.mark.asyncio
    async def test_cancel_then_delete_restores_template(self, monday_template):
        store = InMemoryStores(templates=[monday_template])
        service = ScheduleOverrideService(store)

        await service.upsert_override(monday_template.id, MONDAY, is_cancelled=True)
        overrides = index_overrides(await store.fetch_overrides(DateWindow(MONDAY, MONDAY)))
        assert resolve_shift_occurrence(monday_template, MONDAY, overrides).cancelled is True

        assert await service.delete_override(monday_template.id, MONDAY) is True
        overrides = index_overrides(await store.fetch_overrides(DateWindow(MONDAY, MONDAY)))
        occurrence = resolve_shift_occurrence(monday_template, MONDAY, overrides)
        assert occurrence.cancelled is False
        assert (occurrence.start, occurrence.end) == (time(9), time(17))

    @pytest.mark.asyncio
    async def test_upsert_is_idempotent_and_last_write_wins(self, monday_template):
        store = InMemoryStores()
        service = ScheduleOverrideService(store)
        await service.upsert_override(monday_template.id, MONDAY, start_time=time(10), end_time=time(18))
        await service.upsert_override(monday_template.id, MONDAY, start_time=time(11), end_time=time(19))
        assert len(store.schedule_overrides) == 1
        saved = store.schedule_overrides[(monday_template.id, MONDAY)]
        assert (saved.start_time, saved.end_time) == (time(11), time(19))

    @pytest.mark.asyncio
    async def test_cancelling_clears_times(self, monday_template):
        store = InMemoryStores()
        service = ScheduleOverrideService(store)
        await service.upsert_override(monday_template.id, MONDAY, start_time=time(10), end_time=time(18))
        saved = await service.upsert_override(monday_template.id, MONDAY, start_time=time(10), is_cancelled=True)
        assert saved.is_cancelled is True
        assert saved.start_time is None and saved.end_time is None

    @pytest.mark.asyncio
    async def test_delete_missing_override_is_noop(self):
        service = ScheduleOverrideService(InMemoryStores())
        assert await service.delete_override("nope", MONDAY) is False

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "start,end",
        [(None, None), (time(9), time(9))],
    )
    async def test_invalid_live_override_is_rejected(self, monday_template, start, end):
        service = ScheduleOverrideService(InMemoryStores())
        with pytest.raises(InvalidOverrideError):
            await service.upsert_override(monday_template.id, MONDAY, start_time=start, end_time=end)

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "start,end,effective",
        [
            (time(10), None, (time(10), time(17))),
            (None, time(15), (time(9), time(15))),
            (time(22), time(6), (time(22), time(6))),
        ],
    )
    async def test_partial_and_overnight_overrides_are_saved(self, monday_template, start, end, effective):
        store = InMemoryStores(templates=[monday_template])
        service = ScheduleOverrideService(store)
        saved = await service.upsert_override(monday_template.id, MONDAY, start_time=start, end_time=end)

        occurrence = resolve_shift_occurrence(monday_template, MONDAY, index_overrides([saved]))
        assert (occurrence.start, occurrence.end) == effective
