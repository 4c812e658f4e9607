"""Calendar schemas: the only shapes the presentation layer consumes."""
from dataclasses import dataclass
from datetime import date, datetime
from enum import Enum
from types import MappingProxyType
from typing import Any, Dict, List, Mapping, Optional, Tuple, Union

from pydantic import BaseModel, ConfigDict, Field, field_serializer, field_validator

from homeops.errors import InvalidWindowError


class SourceType(str, Enum):
    """Discriminant for CalendarEvent; also the event id prefix."""
    TASK = "task"
    LEAVE = "leave"
    LOG = "log"
    IMPORTANT_DATE = "important"
    SCHEDULE = "schedule"


class CalendarEvent(BaseModel):
    """
    One normalized calendar entry.

    Timed events carry naive wall-clock datetimes. All-day events carry
    dates and an exclusive ``end`` (the day after the last covered day).
    ``extended_props`` is a read-only mapping once the event is built.
    """
    model_config = ConfigDict(frozen=True)

    id: str
    title: str
    start: Union[datetime, date]
    end: Union[datetime, date]
    all_day: bool
    color: str
    source_type: SourceType
    resource_id: Optional[str] = None
    extended_props: Mapping[str, Any] = Field(default_factory=dict, validate_default=True)

    @field_validator("extended_props", mode="after")
    @classmethod
    def _read_only_props(cls, value: Mapping[str, Any]) -> Mapping[str, Any]:
        return MappingProxyType(dict(value))

    @field_serializer("extended_props")
    def _plain_props(self, value: Mapping[str, Any]) -> Dict[str, Any]:
        return dict(value)


@dataclass(frozen=True)
class DateWindow:
    """Inclusive [start, end] calendar-date range."""
    start: date
    end: date

    def __post_init__(self):
        if self.start > self.end:
            raise InvalidWindowError(self.start, self.end)

    def contains(self, day: date) -> bool:
        return self.start <= day <= self.end

    def overlaps(self, start: date, end: date) -> bool:
        return start <= self.end and end >= self.start


class SourceToggles(BaseModel):
    """
    Per-source switches for one aggregation call.

    Callers persist user preferences however they like and pass them in
    here; the engine keeps no state between calls.
    """
    tasks: bool = True
    leave: bool = True
    sleep: bool = True
    food: bool = True
    poop: bool = True
    shower: bool = True
    important_dates: bool = True
    schedules: bool = True

    def log_categories(self) -> Tuple[str, ...]:
        flags = (("sleep", self.sleep), ("food", self.food), ("poop", self.poop), ("shower", self.shower))
        return tuple(name for name, enabled in flags if enabled)

    @classmethod
    def none(cls) -> "SourceToggles":
        return cls(**{name: False for name in cls.model_fields})


class SourceError(BaseModel):
    """A source that failed during aggregation and contributed no events."""
    source: str
    code: str
    message: str


class CalendarResult(BaseModel):
    events: List[CalendarEvent] = Field(default_factory=list)
    errors: List[SourceError] = Field(default_factory=list)


class DashboardCounts(BaseModel):
    pending_tasks: int = 0
    overdue_tasks: int = 0
    on_leave_today: int = 0
    errors: List[SourceError] = Field(default_factory=list)


class UpcomingImportantDate(BaseModel):
    label: str
    employee_id: str
    employee_name: Optional[str] = None
    occurs_on: date
    days_until: int
