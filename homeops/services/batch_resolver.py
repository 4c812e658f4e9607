"""
Batch Identity Resolver.

Repeating tasks are materialized as many independent rows with no foreign
key back to a shared definition. Rows created together share a title, a
creator and a creation day; that triple is treated as the batch identity.
Two unrelated tasks with the same title, creator and creation day will be
merged, which is a known limitation of the heuristic.
"""
from datetime import date, timedelta
from typing import Dict, Iterable, List, Optional, Sequence, TypeVar
import logging

from homeops.errors import InvalidDateError
from homeops.schemas.task import ExpiringBatch
from homeops.utils.dates import format_date, parse_local_date

logger = logging.getLogger(__name__)

Row = TypeVar("Row")

COMPLETED = "completed"


def _created_day(row) -> str:
    created_at = getattr(row, "created_at", None)
    if created_at is None:
        return ""
    try:
        return format_date(parse_local_date(created_at))
    except InvalidDateError:
        logger.warning(f"Task {getattr(row, 'id', '?')} has unparsable created_at {created_at!r}")
        return ""


def batch_key(row) -> str:
    """``title|created_by|YYYY-MM-DD`` of the row's creation day."""
    return f"{row.title}|{row.created_by or ''}|{_created_day(row)}"


def resolve_batches(rows: Iterable[Row]) -> Dict[str, List[Row]]:
    """Group rows by batch key, keeping first-seen order."""
    batches: Dict[str, List[Row]] = {}
    for row in rows:
        batches.setdefault(batch_key(row), []).append(row)
    return batches


def _due_sort_key(row):
    # Undated rows sort last
    due = row.due_date
    return (due is None, due or date.min)


def sort_by_due_date(rows: Iterable[Row]) -> List[Row]:
    return sorted(rows, key=_due_sort_key)


def pick_representative(rows: Sequence[Row], today: date) -> Optional[Row]:
    """
    Choose the single pending row to show for a batch.

    The earliest row due today or later wins; undated rows count as
    upcoming but lose to any dated one. When everything is past due the
    most recent past-due row is shown, so an overdue batch never vanishes.
    """
    if not rows:
        return None

    upcoming = [row for row in rows if row.due_date is None or row.due_date >= today]
    if upcoming:
        return min(upcoming, key=_due_sort_key)

    return max(rows, key=lambda row: row.due_date)


def filter_repeat_batches(
    rows: Iterable[Row],
    today: date,
    status_filter: Optional[Sequence[str]] = None,
) -> List[Row]:
    """
    Collapse repeat batches so only the relevant occurrence is surfaced.

    Args:
        rows: Materialized task rows
        today: The caller's current calendar date
        status_filter: Statuses the caller asked for; a completed-only
            view is returned untouched, since history must stay visible

    Returns:
        Rows sorted ascending by due date, undated last
    """
    rows = list(rows)
    if status_filter is not None and list(status_filter) == [COMPLETED]:
        return sort_by_due_date(rows)

    kept: List[Row] = []
    for batch in resolve_batches(rows).values():
        if len(batch) == 1:
            kept.append(batch[0])
            continue

        completed = [row for row in batch if row.status == COMPLETED]
        open_rows = [row for row in batch if row.status != COMPLETED]
        kept.extend(completed)

        representative = pick_representative(open_rows, today)
        if representative is not None:
            kept.append(representative)

    return sort_by_due_date(kept)


def find_expiring_batches(
    all_rows: Iterable[Row],
    open_rows: Iterable[Row],
    today: date,
    horizon_days: int = 30,
) -> List[ExpiringBatch]:
    """
    Repeat batches that are about to run out of scheduled occurrences.

    Args:
        all_rows: Every task row, completed included, used for batch sizes
        open_rows: Pending and in-progress rows
        today: Current calendar date
        horizon_days: How far ahead a last occurrence counts as expiring

    Returns:
        Expiring batches, soonest last occurrence first
    """
    sizes: Dict[str, int] = {}
    for row in all_rows:
        key = batch_key(row)
        sizes[key] = sizes.get(key, 0) + 1

    horizon = today + timedelta(days=horizon_days)
    expiring: List[ExpiringBatch] = []
    for key, batch in resolve_batches(open_rows).items():
        total = sizes.get(key, 0)
        if total <= 1:
            continue

        dated = [row for row in batch if row.due_date is not None]
        if not dated:
            continue
        last = max(dated, key=lambda row: row.due_date)

        if today <= last.due_date <= horizon:
            expiring.append(ExpiringBatch(
                batch_key=key,
                title=last.title,
                last_due_date=last.due_date,
                task_count=total,
                created_by=last.created_by,
                first_task_id=batch[0].id,
            ))

    expiring.sort(key=lambda item: item.last_due_date)
    return expiring
