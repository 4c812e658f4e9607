"""Tests for per-source event normalization."""

from __future__ import annotations

from datetime import date, datetime, time

import pytest

from homeops.models import TaskCategory, TaskInstanceOverride
from homeops.schemas.calendar import SourceType
from homeops.schemas.schedule import ShiftOccurrence
from homeops.services.normalizer import (
    DEFAULT_TASK_COLOR,
    LEAVE_COLORS,
    NORMALIZERS,
    NormalizeContext,
    ShiftRecord,
    TaskOccurrence,
    leave_days,
    normalize,
    normalize_important_date,
    normalize_leave,
    normalize_log,
    normalize_schedule,
    normalize_task,
    project_next_occurrence,
)
from tests.factories import (
    make_important_date,
    make_leave,
    make_log,
    make_recurring,
    make_task,
    make_user,
)

pytestmark = pytest.mark.unit

CTX = NormalizeContext(today=date(2025, 3, 15))


def test_every_source_type_has_a_normalizer():
    assert set(NORMALIZERS) == set(SourceType)


# ---------------------------------------------------------------------------
# Tasks
# ---------------------------------------------------------------------------


class TestNormalizeTask:
    def test_timed_single_task(self):
        task = make_task(due_date=date(2025, 3, 10), due_time=time(8, 30))
        event = normalize_task(TaskOccurrence(task, task.due_date, "pending"), CTX)
        assert event.id == f"task-{task.id}"
        assert event.start == datetime(2025, 3, 10, 8, 30)
        assert event.all_day is False
        assert event.color == DEFAULT_TASK_COLOR
        assert event.source_type is SourceType.TASK

    def test_task_without_time_is_all_day_with_exclusive_end(self):
        task = make_task(due_date=date(2025, 3, 10))
        event = normalize_task(TaskOccurrence(task, task.due_date, "pending"), CTX)
        assert event.all_day is True
        assert event.start == date(2025, 3, 10)
        assert event.end == date(2025, 3, 11)

    def test_recurring_instance_id_and_category_color(self):
        chores = TaskCategory(name="Chores", color="#22c55e")
        task = make_recurring("FREQ=DAILY", date(2025, 3, 1), category=chores, due_time=time(7))
        event = normalize_task(TaskOccurrence(task, date(2025, 3, 12), "completed"), CTX)
        assert event.id == f"task-{task.id}-2025-03-12"
        assert event.color == "#22c55e"
        assert event.extended_props["status"] == "completed"
        assert event.extended_props["category"] == "Chores"
        assert event.extended_props["instance_date"] == "2025-03-12"

    def test_extended_props_are_read_only(self):
        task = make_task(due_date=date(2025, 3, 10))
        event = normalize_task(TaskOccurrence(task, task.due_date, "pending"), CTX)
        with pytest.raises(TypeError):
            event.extended_props["status"] = "completed"
        assert event.model_dump()["extended_props"]["status"] == "pending"

    def test_activity_spans_start_to_end(self):
        task = make_task(is_activity=True, start_time=time(15), end_time=time(16, 30))
        event = normalize_task(TaskOccurrence(task, task.due_date, "pending"), CTX)
        assert event.start == datetime(2025, 1, 1, 15)
        assert event.end == datetime(2025, 1, 1, 16, 30)

    def test_instance_override_moves_the_time(self):
        task = make_recurring("FREQ=DAILY", date(2025, 3, 1), due_time=time(7))
        override = TaskInstanceOverride(task_id=task.id, instance_date=date(2025, 3, 5), override_time=time(9, 45))
        event = normalize_task(TaskOccurrence(task, date(2025, 3, 5), "pending", override), CTX)
        assert event.start == datetime(2025, 3, 5, 9, 45)
        assert event.extended_props["has_time_override"] is True
        assert event.extended_props["original_due_time"] == "07:00"

    def test_task_without_date_is_dropped(self):
        task = make_task(due_date=None)
        assert normalize_task(TaskOccurrence(task, None, "pending"), CTX) is None


# ---------------------------------------------------------------------------
# Leave
# ---------------------------------------------------------------------------


class TestNormalizeLeave:
    def test_range_becomes_single_all_day_event(self):
        maria = make_user("Maria Lopez")
        leave = make_leave(maria, date(2025, 3, 10), date(2025, 3, 12))
        event = normalize_leave(leave, CTX)
        assert event.id == f"leave-{leave.id}"
        assert event.title == "Maria Lopez - Vacation"
        assert (event.start, event.end) == (date(2025, 3, 10), date(2025, 3, 13))
        assert event.color == LEAVE_COLORS["vacation"]
        assert event.extended_props["total_days"] == 3.0

    def test_selected_dates_define_the_span(self):
        maria = make_user()
        leave = make_leave(
            maria, date(2025, 3, 1), date(2025, 3, 31),
            selected_dates=["2025-03-14", "2025-03-11"],
        )
        event = normalize_leave(leave, CTX)
        assert (event.start, event.end) == (date(2025, 3, 11), date(2025, 3, 15))
        assert event.extended_props["selected_dates"] == ["2025-03-11", "2025-03-14"]
        assert leave_days(leave) == [date(2025, 3, 11), date(2025, 3, 14)]

    @pytest.mark.parametrize(
        "leave_type,reason,name",
        [("holiday", "Christmas", "Christmas"), ("vacation", "Holiday: New Year", "New Year")],
    )
    def test_holidays(self, leave_type, reason, name):
        leave = make_leave(make_user("Ana"), date(2025, 12, 25), date(2025, 12, 25), leave_type=leave_type, reason=reason)
        event = normalize_leave(leave, CTX)
        assert event.color == LEAVE_COLORS["holiday"]
        assert event.title == f"Ana - {name}"
        assert event.extended_props["is_holiday"] is True
        assert event.extended_props["holiday_name"] == name

    def test_sick_leave_color(self):
        leave = make_leave(make_user(), date(2025, 3, 3), date(2025, 3, 3), leave_type="sick")
        assert normalize_leave(leave, CTX).color == LEAVE_COLORS["sick"]

    def test_inverted_range_is_dropped(self):
        leave = make_leave(make_user(), date(2025, 3, 12), date(2025, 3, 10))
        assert normalize_leave(leave, CTX) is None

    def test_missing_user_falls_back_to_generic_name(self):
        leave = make_leave(make_user(), date(2025, 3, 12), date(2025, 3, 12))
        leave.user = None
        assert normalize_leave(leave, CTX).title.startswith("Employee - ")


# ---------------------------------------------------------------------------
# Child logs
# ---------------------------------------------------------------------------


class TestNormalizeLog:
    def test_point_event(self):
        event = normalize_log(make_log("food", date(2025, 3, 11), log_time=time(12, 15)), CTX)
        assert event.start == event.end == datetime(2025, 3, 11, 12, 15)
        assert event.title == "Sam - Food"
        assert event.extended_props["log_category"] == "food"

    def test_overnight_sleep_rolls_to_next_day(self):
        log = make_log("sleep", date(2025, 3, 11), start_time=time(20, 30), end_time=time(6, 45))
        event = normalize_log(log, CTX)
        assert event.start == datetime(2025, 3, 11, 20, 30)
        assert event.end == datetime(2025, 3, 12, 6, 45)

    def test_sleep_with_one_bound_is_a_point(self):
        log = make_log("sleep", date(2025, 3, 11), end_time=time(7))
        event = normalize_log(log, CTX)
        assert event.start == event.end == datetime(2025, 3, 11, 7)

    def test_log_without_time_is_dropped(self):
        assert normalize_log(make_log("poop", date(2025, 3, 11)), CTX) is None


# ---------------------------------------------------------------------------
# Important dates
# ---------------------------------------------------------------------------


class TestImportantDates:
    def test_projects_to_this_year_when_still_ahead(self):
        assert project_next_occurrence(3, 20, date(2025, 3, 15)) == date(2025, 3, 20)

    def test_today_counts(self):
        assert project_next_occurrence(3, 15, date(2025, 3, 15)) == date(2025, 3, 15)

    def test_passed_date_moves_to_next_year(self):
        assert project_next_occurrence(1, 2, date(2025, 3, 15)) == date(2026, 1, 2)

    def test_feb_29_waits_for_leap_year(self):
        assert project_next_occurrence(2, 29, date(2025, 3, 15)) == date(2028, 2, 29)

    def test_impossible_date(self):
        assert project_next_occurrence(2, 30, date(2025, 3, 15)) is None

    def test_event_shape(self):
        maria = make_user("Maria Lopez")
        record = make_important_date(maria, 3, 20)
        event = normalize_important_date(record, CTX)
        assert event.id == f"important-{record.id}-2025"
        assert event.title == "Birthday (Maria Lopez)"
        assert event.all_day is True
        assert event.extended_props["days_until"] == 5

    def test_anchor_projects_from_another_date(self):
        maria = make_user()
        ctx = NormalizeContext(today=date(2025, 3, 15), anchor=date(2024, 1, 1))
        event = normalize_important_date(make_important_date(maria, 2, 29), ctx)
        assert event.start == date(2024, 2, 29)


# ---------------------------------------------------------------------------
# Schedules
# ---------------------------------------------------------------------------


class TestNormalizeSchedule:
    def test_weekly_shift(self):
        maria = make_user("Maria Lopez")
        occurrence = ShiftOccurrence(schedule_id="s1", shift_date=date(2025, 3, 10), start=time(9), end=time(17))
        event = normalize_schedule(ShiftRecord(occurrence, maria.id, maria, day_of_week=1), CTX)
        assert event.id == "schedule-s1-2025-03-10"
        assert event.start == datetime(2025, 3, 10, 9)
        assert event.end == datetime(2025, 3, 10, 17)
        assert event.extended_props["has_override"] is False
        assert "original_start_time" not in event.extended_props

    def test_overridden_shift_carries_original_times(self):
        maria = make_user()
        occurrence = ShiftOccurrence(
            schedule_id="s1", shift_date=date(2025, 3, 10), start=time(12), end=time(18),
            has_override=True, original_start=time(9), original_end=time(17), notes="Dentist",
        )
        event = normalize_schedule(ShiftRecord(occurrence, maria.id, maria), CTX)
        assert event.extended_props["original_start_time"] == "09:00"
        assert event.extended_props["override_notes"] == "Dentist"

    def test_one_off_id(self):
        maria = make_user()
        occurrence = ShiftOccurrence(schedule_id="o1", shift_date=date(2025, 3, 9), start=time(10), end=time(14))
        event = normalize(SourceType.SCHEDULE, ShiftRecord(occurrence, maria.id, maria, one_off_id="o1"), CTX)
        assert event.id == "schedule-oneoff-o1"
        assert event.extended_props["is_one_off"] is True

    def test_cancelled_shift_is_dropped(self):
        maria = make_user()
        occurrence = ShiftOccurrence(schedule_id="s1", shift_date=date(2025, 3, 10), cancelled=True, has_override=True)
        assert normalize_schedule(ShiftRecord(occurrence, maria.id, maria), CTX) is None

    def test_shift_without_owner_is_dropped(self):
        occurrence = ShiftOccurrence(schedule_id="s1", shift_date=date(2025, 3, 10), start=time(9), end=time(17))
        assert normalize_schedule(ShiftRecord(occurrence, "ghost"), CTX) is None
