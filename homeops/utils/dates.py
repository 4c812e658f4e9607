"""
Calendar date helpers.

All recurrence arithmetic works on naive ``date`` objects and their
ordinal day numbers. Nothing here touches zoned timestamps, so DST
transitions cannot shift a date by one.
"""
from datetime import date, datetime, time, timedelta
from typing import Any, Iterator, Optional
import re

from homeops.errors import InvalidDateError

_ISO_DATE = re.compile(r"^(\d{4})-(\d{2})-(\d{2})")


def parse_local_date(value: Any) -> date:
    """
    Parse a value into a calendar date.

    Accepts ``date`` and ``datetime`` objects and ISO strings that start
    with ``YYYY-MM-DD`` (a trailing time part is discarded, as with
    ``created_at`` timestamps truncated to the day).

    Raises:
        InvalidDateError: for None, empty strings and anything else.
    """
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if not isinstance(value, str):
        raise InvalidDateError(value, "unsupported type")

    text = value.strip()
    if not text:
        raise InvalidDateError(value, "empty string")

    match = _ISO_DATE.match(text)
    if not match:
        raise InvalidDateError(value)
    rest = text[match.end():]
    if rest and rest[0] not in "T ":
        raise InvalidDateError(value)

    year, month, day = (int(part) for part in match.groups())
    try:
        return date(year, month, day)
    except ValueError as e:
        raise InvalidDateError(value, str(e)) from e


def parse_optional_date(value: Any) -> Optional[date]:
    """Like parse_local_date, but None maps to None."""
    if value is None:
        return None
    return parse_local_date(value)


def day_number(value: date) -> int:
    """Days since 0001-01-01; exact integer arithmetic for intervals."""
    return value.toordinal()


def days_between(start: date, end: date) -> int:
    return day_number(end) - day_number(start)


def sunday_weekday(value: date) -> int:
    """Weekday with 0=Sunday .. 6=Saturday, as stored for schedules."""
    return (value.weekday() + 1) % 7


def iter_days(start: date, end: date) -> Iterator[date]:
    """Yield every date in the inclusive range [start, end]."""
    current = start
    while current <= end:
        yield current
        current += timedelta(days=1)


def combine(day: date, at: time) -> datetime:
    """Naive wall-clock datetime for a date and time."""
    return datetime.combine(day, at)


def format_date(value: date) -> str:
    return value.strftime("%Y-%m-%d")
