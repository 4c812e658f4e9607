"""Shared FastAPI dependencies and error mapping for the routers."""
from fastapi import Depends, HTTPException, status

from homeops.config import Settings, get_settings
from homeops.errors import HomeOpsError, SourceFetchError, TaskNotFoundError
from homeops.services.calendar_service import CalendarAggregator
from homeops.services.schedule_service import ScheduleOverrideService
from homeops.services.task_service import TaskInstanceService
from homeops.stores.base import CalendarStores
from homeops.stores.sql import sql_stores


def get_calendar_stores() -> CalendarStores:
    """Dependency for getting the SQL-backed stores."""
    from homeops.db.config import engine
    return sql_stores(engine)


def get_aggregator(
    stores: CalendarStores = Depends(get_calendar_stores),
    settings: Settings = Depends(get_settings),
) -> CalendarAggregator:
    return CalendarAggregator(stores, settings=settings)


def get_schedule_service(stores: CalendarStores = Depends(get_calendar_stores)) -> ScheduleOverrideService:
    return ScheduleOverrideService(stores.schedules)


def get_task_service(stores: CalendarStores = Depends(get_calendar_stores)) -> TaskInstanceService:
    return TaskInstanceService(stores.tasks)


def to_http_error(error: HomeOpsError) -> HTTPException:
    """Map an engine error onto an HTTP error with the same code and message."""
    if isinstance(error, TaskNotFoundError):
        status_code = status.HTTP_404_NOT_FOUND
    elif isinstance(error, SourceFetchError):
        status_code = status.HTTP_503_SERVICE_UNAVAILABLE
    else:
        status_code = status.HTTP_400_BAD_REQUEST
    return HTTPException(status_code=status_code, detail=error.to_dict())
