"""Storage backends behind the store protocols."""
from homeops.stores.base import (
    CalendarStores,
    ChildLogStore,
    ImportantDateStore,
    LeaveStore,
    ScheduleStore,
    TaskStore,
)

__all__ = [
    "CalendarStores",
    "ChildLogStore",
    "ImportantDateStore",
    "LeaveStore",
    "ScheduleStore",
    "TaskStore",
]
