"""Tests for recurrence rule parsing and due-date evaluation."""

from __future__ import annotations

from datetime import date, timedelta

import pytest

from homeops.schemas.calendar import DateWindow
from homeops.schemas.recurrence import RecurrenceRule
from homeops.services.recurrence import (
    RecurrenceValidator,
    completed_keys,
    effective_status,
    expand_occurrences,
    is_due_on,
    parse_rule,
    rule_matches,
)
from homeops.models import TaskCompletion
from tests.factories import make_recurring, make_task

pytestmark = pytest.mark.unit


# ---------------------------------------------------------------------------
# parse_rule
# ---------------------------------------------------------------------------


class TestParseRule:
    def test_full_rule(self):
        rule = parse_rule("FREQ=WEEKLY;INTERVAL=2;BYDAY=MO,WE")
        assert rule == RecurrenceRule(frequency="WEEKLY", interval=2, by_day=frozenset({"MO", "WE"}))

    def test_interval_defaults_to_one(self):
        assert parse_rule("FREQ=DAILY").interval == 1

    def test_rrule_prefix_and_case_are_ignored(self):
        rule = parse_rule("RRULE:freq=weekly;byday=fr")
        assert rule.frequency == "WEEKLY"
        assert rule.weekdays() == frozenset({4})

    @pytest.mark.parametrize(
        "text",
        [None, "", "   ", "INTERVAL=2", "FREQ=DAILY;INTERVAL=x", "FREQ=WEEKLY;BYDAY=XX", "FREQ=DAILY;garbage"],
    )
    def test_malformed_rules_parse_to_none(self, text):
        assert parse_rule(text) is None

    def test_to_string_orders_weekdays(self):
        rule = RecurrenceRule(frequency="WEEKLY", interval=1, by_day=frozenset({"FR", "MO"}))
        assert rule.to_string() == "FREQ=WEEKLY;INTERVAL=1;BYDAY=MO,FR"


# ---------------------------------------------------------------------------
# is_due_on
# ---------------------------------------------------------------------------


class TestIsDueOn:
    def test_weekly_byday_example(self):
        task = make_recurring("FREQ=WEEKLY;INTERVAL=1;BYDAY=MO,WE,FR", date(2025, 1, 6))
        assert is_due_on(task, date(2025, 1, 8)) is True  # Wednesday
        assert is_due_on(task, date(2025, 1, 13)) is True  # Monday, week 2
        assert is_due_on(task, date(2025, 1, 7)) is False  # Tuesday

    def test_never_due_before_start(self):
        task = make_recurring("FREQ=DAILY", date(2025, 1, 6))
        assert is_due_on(task, date(2025, 1, 5)) is False
        assert is_due_on(task, date(2025, 1, 6)) is True

    @pytest.mark.parametrize("interval", [1, 2, 3, 7])
    def test_daily_interval_hits_exact_multiples(self, interval):
        start = date(2025, 2, 20)
        task = make_recurring(f"FREQ=DAILY;INTERVAL={interval}", start)
        for offset in range(60):
            expected = offset % interval == 0
            assert is_due_on(task, start + timedelta(days=offset)) is expected

    def test_weekly_mo_we_interval_two_alternates_weeks(self):
        start = date(2025, 1, 6)  # Monday
        task = make_recurring("FREQ=WEEKLY;INTERVAL=2;BYDAY=MO,WE", start)
        due = [start + timedelta(days=d) for d in range(42) if is_due_on(task, start + timedelta(days=d))]
        assert due == [
            date(2025, 1, 6), date(2025, 1, 8),
            date(2025, 1, 20), date(2025, 1, 22),
            date(2025, 2, 3), date(2025, 2, 5),
        ]
        assert all(day.weekday() in (0, 2) for day in due)

    def test_weekly_without_byday_repeats_on_start_weekday(self):
        task = make_recurring("FREQ=WEEKLY;INTERVAL=3", date(2025, 1, 1))
        assert is_due_on(task, date(2025, 1, 22)) is True
        assert is_due_on(task, date(2025, 1, 8)) is False
        assert is_due_on(task, date(2025, 1, 15)) is False

    def test_weeks_are_counted_from_start_not_calendar_weeks(self):
        # Starting on a Wednesday, the following Monday is still week zero
        task = make_recurring("FREQ=WEEKLY;INTERVAL=2;BYDAY=MO,WE", date(2025, 1, 8))
        assert is_due_on(task, date(2025, 1, 13)) is True
        assert is_due_on(task, date(2025, 1, 15)) is False

    def test_monthly_keeps_day_of_month(self):
        task = make_recurring("FREQ=MONTHLY;INTERVAL=2", date(2025, 1, 15))
        assert is_due_on(task, date(2025, 3, 15)) is True
        assert is_due_on(task, date(2025, 2, 15)) is False
        assert is_due_on(task, date(2025, 3, 16)) is False

    def test_monthly_on_31st_skips_short_months(self):
        task = make_recurring("FREQ=MONTHLY", date(2025, 1, 31))
        assert is_due_on(task, date(2025, 2, 28)) is False
        assert is_due_on(task, date(2025, 3, 31)) is True

    def test_yearly(self):
        task = make_recurring("FREQ=YEARLY", date(2024, 7, 4))
        assert is_due_on(task, date(2026, 7, 4)) is True
        assert is_due_on(task, date(2026, 7, 5)) is False

    def test_dst_week_does_not_shift_occurrences(self):
        # US DST starts 2025-03-09; plain date arithmetic is unaffected
        task = make_recurring("FREQ=DAILY;INTERVAL=7", date(2025, 3, 2))
        assert is_due_on(task, date(2025, 3, 9)) is True
        assert is_due_on(task, date(2025, 3, 16)) is True

    @pytest.mark.parametrize("rule", ["FREQ=HOURLY", "FREQ=DAILY;INTERVAL=0", "FREQ=DAILY;INTERVAL=-2", "nonsense"])
    def test_unusable_rules_are_never_due(self, rule):
        task = make_recurring(rule, date(2025, 1, 1))
        assert is_due_on(task, date(2025, 1, 1)) is False
        assert is_due_on(task, date(2025, 1, 2)) is False

    def test_recurring_without_start_is_never_due(self, caplog):
        task = make_recurring("FREQ=DAILY", None)
        with caplog.at_level("WARNING"):
            assert is_due_on(task, date(2025, 1, 1)) is False
        assert "no start date" in caplog.text

    def test_non_recurring_due_on_its_date_only(self):
        task = make_task(due_date=date(2025, 4, 1))
        assert is_due_on(task, date(2025, 4, 1)) is True
        assert is_due_on(task, date(2025, 4, 2)) is False


def test_rule_matches_is_pure():
    rule = parse_rule("FREQ=DAILY;INTERVAL=2")
    assert rule_matches(rule, date(2025, 1, 1), date(2025, 1, 3)) is True
    assert rule_matches(rule, date(2025, 1, 1), date(2025, 1, 3)) is True


# ---------------------------------------------------------------------------
# expand_occurrences / effective_status
# ---------------------------------------------------------------------------


def test_expand_occurrences_clips_to_window():
    task = make_recurring("FREQ=WEEKLY;BYDAY=TU,TH", date(2025, 1, 1))
    window = DateWindow(date(2025, 1, 6), date(2025, 1, 12))
    assert expand_occurrences(task, window) == [date(2025, 1, 7), date(2025, 1, 9)]


def test_expand_occurrences_starting_after_window_is_empty():
    task = make_recurring("FREQ=DAILY", date(2025, 2, 1))
    assert expand_occurrences(task, DateWindow(date(2025, 1, 1), date(2025, 1, 31))) == []


def test_expand_occurrences_for_single_task():
    task = make_task(due_date=date(2025, 1, 10))
    assert expand_occurrences(task, DateWindow(date(2025, 1, 1), date(2025, 1, 31))) == [date(2025, 1, 10)]
    assert expand_occurrences(task, DateWindow(date(2025, 2, 1), date(2025, 2, 28))) == []


def test_effective_status_uses_completion_per_date():
    task = make_recurring("FREQ=DAILY", date(2025, 1, 1))
    done = completed_keys([TaskCompletion(task_id=task.id, completion_date=date(2025, 1, 2))])
    assert effective_status(task, date(2025, 1, 2), done) == "completed"
    assert effective_status(task, date(2025, 1, 3), done) == "pending"


def test_effective_status_of_single_task_is_its_own():
    task = make_task(status="in_progress")
    assert effective_status(task, task.due_date, set()) == "in_progress"


# ---------------------------------------------------------------------------
# RecurrenceValidator
# ---------------------------------------------------------------------------


class TestRecurrenceValidator:
    def test_valid_rule(self):
        result = RecurrenceValidator.validate_rule("FREQ=WEEKLY;INTERVAL=1;BYDAY=MO")
        assert result == {"valid": True, "errors": [], "warnings": []}

    def test_unknown_frequency_and_bad_interval(self):
        result = RecurrenceValidator.validate_rule("FREQ=HOURLY;INTERVAL=0")
        assert result["valid"] is False
        assert len(result["errors"]) == 2

    def test_byday_on_monthly_warns(self):
        result = RecurrenceValidator.validate_rule("FREQ=MONTHLY;BYDAY=MO")
        assert result["valid"] is True
        assert result["warnings"]

    def test_recurring_task_needs_start_and_rule(self):
        result = RecurrenceValidator.validate_task(make_recurring(None, None))
        assert result["valid"] is False
        assert "Recurring task requires a start date" in result["errors"]
        assert "Recurring task requires a recurrence rule" in result["errors"]

    def test_single_task_must_not_carry_rule(self):
        result = RecurrenceValidator.validate_task(make_task(recurrence_rule="FREQ=DAILY"))
        assert result["valid"] is False
