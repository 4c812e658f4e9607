"""
Recurrence Evaluator.

Decides whether a recurring task is due on a given calendar date. All
arithmetic runs on ordinal day numbers of naive dates, never on zoned
timestamps, so interval maths stays exact across DST changes.
"""
from datetime import date
from functools import lru_cache
from typing import Any, Collection, Dict, List, Optional, Set, Tuple
import logging

from homeops.models.task import Task
from homeops.schemas.calendar import DateWindow
from homeops.schemas.recurrence import Frequency, RecurrenceRule, WEEKDAY_CODES
from homeops.utils.dates import days_between, iter_days

logger = logging.getLogger(__name__)

_KNOWN_FREQUENCIES = {f.value for f in Frequency}


@lru_cache(maxsize=512)
def parse_rule(text: Optional[str]) -> Optional[RecurrenceRule]:
    """
    Parse a ``FREQ=WEEKLY;INTERVAL=2;BYDAY=MO,WE`` rule string.

    Returns None for empty or malformed text. Unknown frequencies and
    non-positive intervals are kept so the evaluator can fail closed on
    them; the validator reports them as errors.
    """
    if not text or not text.strip():
        return None

    body = text.strip()
    if body.upper().startswith("RRULE:"):
        body = body[len("RRULE:"):]

    parts: Dict[str, str] = {}
    for chunk in body.split(";"):
        if not chunk.strip():
            continue
        key, sep, value = chunk.partition("=")
        if not sep:
            logger.warning(f"Malformed recurrence rule segment {chunk!r} in {text!r}")
            return None
        parts[key.strip().upper()] = value.strip().upper()

    frequency = parts.get("FREQ")
    if not frequency:
        logger.warning(f"Recurrence rule without FREQ: {text!r}")
        return None

    interval = 1
    if "INTERVAL" in parts:
        try:
            interval = int(parts["INTERVAL"])
        except ValueError:
            logger.warning(f"Recurrence rule with non-numeric INTERVAL: {text!r}")
            return None

    by_day = None
    if parts.get("BYDAY"):
        codes = [code.strip() for code in parts["BYDAY"].split(",") if code.strip()]
        unknown = [code for code in codes if code not in WEEKDAY_CODES]
        if unknown:
            logger.warning(f"Recurrence rule with unknown BYDAY codes {unknown}: {text!r}")
            return None
        by_day = frozenset(codes)

    return RecurrenceRule(frequency=frequency, interval=interval, by_day=by_day)


def rule_matches(rule: RecurrenceRule, start: date, target: date) -> bool:
    """True when ``target`` is an occurrence of ``rule`` anchored at ``start``."""
    if target < start:
        return False
    interval = rule.interval
    if interval is None or interval < 1:
        return False

    diff = days_between(start, target)

    if rule.frequency == Frequency.DAILY.value:
        return diff % interval == 0

    if rule.frequency == Frequency.WEEKLY.value:
        allowed = rule.weekdays()
        if not allowed:
            return diff % (7 * interval) == 0
        if target.weekday() not in allowed:
            return False
        # Whole weeks elapsed since start, not calendar-week boundaries
        return (diff // 7) % interval == 0

    if rule.frequency == Frequency.MONTHLY.value:
        if target.day != start.day:
            return False
        months = (target.year - start.year) * 12 + (target.month - start.month)
        return months % interval == 0

    if rule.frequency == Frequency.YEARLY.value:
        if (target.month, target.day) != (start.month, start.day):
            return False
        return (target.year - start.year) % interval == 0

    return False


def is_due_on(definition: Task, target_date: date) -> bool:
    """
    Decide whether a task is due on ``target_date``.

    Non-recurring tasks are due on their own due date only. Recurring
    definitions with a missing start date or an unusable rule are never
    due; they are logged rather than raised so one bad row cannot break a
    whole calendar render.
    """
    start = definition.due_date
    if not definition.is_recurring:
        return start is not None and start == target_date

    if start is None:
        logger.warning(f"Recurring task {definition.id} has no start date; treating as never due")
        return False

    rule = parse_rule(definition.recurrence_rule)
    if rule is None:
        return False
    return rule_matches(rule, start, target_date)


def expand_occurrences(definition: Task, window: DateWindow) -> List[date]:
    """All dates in ``window`` (inclusive) on which ``definition`` is due."""
    if not definition.is_recurring:
        if definition.due_date and window.contains(definition.due_date):
            return [definition.due_date]
        return []

    start = definition.due_date
    rule = parse_rule(definition.recurrence_rule)
    if start is None or rule is None:
        if start is None:
            logger.warning(f"Recurring task {definition.id} has no start date; no occurrences")
        return []

    first = max(start, window.start)
    if first > window.end:
        return []
    return [day for day in iter_days(first, window.end) if rule_matches(rule, start, day)]


def effective_status(task: Task, on_date: date, completed: Collection[Tuple[str, date]]) -> str:
    """
    Status of one occurrence.

    Recurring tasks share a single definition row, so per-date completion
    lives in the completion table keyed by ``(task_id, date)``.
    """
    if not task.is_recurring:
        return task.status
    return "completed" if (task.id, on_date) in completed else "pending"


class RecurrenceValidator:
    """Validate recurrence rules before they are written."""

    @staticmethod
    def validate_rule(recurrence_rule: Optional[str]) -> Dict[str, Any]:
        """
        Validate a recurrence rule string.

        Args:
            recurrence_rule: Rule text such as ``FREQ=DAILY;INTERVAL=2``

        Returns:
            Dict with validation result
        """
        result = {
            "valid": True,
            "errors": [],
            "warnings": []
        }

        rule = parse_rule(recurrence_rule)
        if rule is None:
            result["valid"] = False
            result["errors"].append(f"Invalid recurrence rule format: {recurrence_rule!r}")
            return result

        if rule.frequency not in _KNOWN_FREQUENCIES:
            result["valid"] = False
            result["errors"].append(
                f"Frequency must be one of: {', '.join(sorted(_KNOWN_FREQUENCIES))}, got: {rule.frequency}"
            )

        if rule.interval < 1:
            result["valid"] = False
            result["errors"].append(f"Interval must be a positive integer, got: {rule.interval}")

        if rule.by_day and rule.frequency != Frequency.WEEKLY.value:
            result["warnings"].append("BYDAY is only applied to WEEKLY rules and will be ignored")

        return result

    @staticmethod
    def validate_task(task: Task) -> Dict[str, Any]:
        """
        Validate the recurring/non-recurring invariants of a task row.

        Args:
            task: Task row to check

        Returns:
            Dict with validation result
        """
        result = {
            "valid": True,
            "errors": [],
            "warnings": []
        }

        if not task.is_recurring:
            if task.recurrence_rule:
                result["valid"] = False
                result["errors"].append("Non-recurring task must not carry a recurrence rule")
            return result

        if task.due_date is None:
            result["valid"] = False
            result["errors"].append("Recurring task requires a start date")

        if not task.recurrence_rule:
            result["valid"] = False
            result["errors"].append("Recurring task requires a recurrence rule")
            return result

        validation = RecurrenceValidator.validate_rule(task.recurrence_rule)
        result["errors"].extend(validation["errors"])
        result["warnings"].extend(validation["warnings"])
        if not validation["valid"]:
            result["valid"] = False

        return result


def completed_keys(completions) -> Set[Tuple[str, date]]:
    """Lookup set of ``(task_id, completion_date)`` pairs."""
    return {(c.task_id, c.completion_date) for c in completions}
