"""Work schedule models for SQLModel."""
from sqlmodel import SQLModel, Field, Relationship
from sqlalchemy import UniqueConstraint
from datetime import date, datetime, time
from typing import Optional

from homeops.models.user import User, new_id, timestamp_field


class EmployeeSchedule(SQLModel, table=True):
    """Weekly recurring shift template."""

    id: str = Field(default_factory=new_id, primary_key=True)
    user_id: str = Field(foreign_key="user.id", index=True)
    day_of_week: int = Field(ge=0, le=6, index=True)  # 0=Sunday, 6=Saturday
    start_time: time
    end_time: time
    is_active: bool = Field(default=True)
    created_at: datetime = timestamp_field()
    updated_at: datetime = timestamp_field()

    user: Optional[User] = Relationship()


class ScheduleOverride(SQLModel, table=True):
    """Per-date exception to a weekly shift: cancelled or moved."""

    __table_args__ = (UniqueConstraint("schedule_id", "override_date"),)

    id: str = Field(default_factory=new_id, primary_key=True)
    schedule_id: str = Field(foreign_key="employeeschedule.id", index=True)
    override_date: date = Field(index=True)
    start_time: Optional[time] = Field(default=None)
    end_time: Optional[time] = Field(default=None)
    is_cancelled: bool = Field(default=False)
    notes: str | None = Field(default=None, max_length=500)
    created_by: str | None = Field(default=None)
    created_at: datetime = timestamp_field()
    updated_at: datetime = timestamp_field()


class ScheduleOneOff(SQLModel, table=True):
    """A single-day shift outside the weekly template."""

    __table_args__ = (UniqueConstraint("user_id", "schedule_date"),)

    id: str = Field(default_factory=new_id, primary_key=True)
    user_id: str = Field(foreign_key="user.id", index=True)
    schedule_date: date = Field(index=True)
    start_time: time
    end_time: time
    created_by: str | None = Field(default=None)
    created_at: datetime = timestamp_field()

    user: Optional[User] = Relationship()
