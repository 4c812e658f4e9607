"""Calendar router: merged events, dashboard counts and upcoming dates."""
from fastapi import APIRouter, Depends, Query
from typing import List, Optional

from homeops.errors import HomeOpsError
from homeops.routers.deps import get_aggregator, to_http_error
from homeops.schemas.calendar import (
    CalendarResult,
    DashboardCounts,
    DateWindow,
    SourceToggles,
    UpcomingImportantDate,
)
from homeops.services.calendar_service import CalendarAggregator
from homeops.utils.dates import parse_local_date

router = APIRouter(tags=["Calendar"])  # No prefix since main.py adds /api prefix


@router.get("/calendar/events", response_model=CalendarResult)
async def get_calendar_events(
    start: str = Query(..., description="First day of the window (YYYY-MM-DD)"),
    end: str = Query(..., description="Last day of the window, inclusive (YYYY-MM-DD)"),
    user_id: Optional[str] = Query(None, description="Restrict to one user's tasks and leave"),
    show_tasks: bool = Query(True),
    show_leave: bool = Query(True),
    show_sleep: bool = Query(True),
    show_food: bool = Query(True),
    show_poop: bool = Query(True),
    show_shower: bool = Query(True),
    show_important_dates: bool = Query(True),
    show_schedules: bool = Query(True),
    aggregator: CalendarAggregator = Depends(get_aggregator),
):
    """Merged, normalized events for a date window. Failed sources are listed in ``errors``."""
    try:
        window = DateWindow(parse_local_date(start), parse_local_date(end))
    except HomeOpsError as e:
        raise to_http_error(e)

    toggles = SourceToggles(
        tasks=show_tasks,
        leave=show_leave,
        sleep=show_sleep,
        food=show_food,
        poop=show_poop,
        shower=show_shower,
        important_dates=show_important_dates,
        schedules=show_schedules,
    )
    return await aggregator.get_events(window, toggles, scope=user_id)


@router.get("/dashboard/counts", response_model=DashboardCounts)
async def get_dashboard_counts(
    user_id: Optional[str] = Query(None),
    aggregator: CalendarAggregator = Depends(get_aggregator),
):
    return await aggregator.get_counts(scope=user_id)


@router.get("/important-dates/upcoming", response_model=List[UpcomingImportantDate])
async def get_upcoming_important_dates(
    days: int = Query(7, ge=0, le=366, description="How many days ahead to look"),
    aggregator: CalendarAggregator = Depends(get_aggregator),
):
    return await aggregator.upcoming_important_dates(days=days)
