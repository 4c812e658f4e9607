"""Schedule schemas."""
from datetime import date, time
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class ShiftOccurrence(BaseModel):
    """A weekly template resolved onto one date, after overrides."""
    model_config = ConfigDict(frozen=True)

    schedule_id: str
    shift_date: date
    start: Optional[time] = None
    end: Optional[time] = None
    cancelled: bool = False
    has_override: bool = False
    original_start: Optional[time] = None
    original_end: Optional[time] = None
    notes: Optional[str] = None


class ScheduleOverrideRequest(BaseModel):
    """Body for creating or replacing an override."""
    start_time: Optional[time] = Field(None)
    end_time: Optional[time] = Field(None)
    is_cancelled: bool = False
    notes: Optional[str] = Field(None, max_length=500)


class ScheduleOverrideResponse(BaseModel):
    id: str
    schedule_id: str
    override_date: date
    start_time: Optional[time] = None
    end_time: Optional[time] = None
    is_cancelled: bool
    notes: Optional[str] = None

    class Config:
        from_attributes = True
