"""Child activity log model for SQLModel."""
from sqlmodel import SQLModel, Field, Relationship
from datetime import date, datetime, time
from typing import Optional

from homeops.models.user import User, new_id, timestamp_field

LOG_CATEGORIES = ("sleep", "food", "poop", "shower")


class ChildLog(SQLModel, table=True):
    """One logged activity for a child; sleep logs may carry a start/end span."""

    id: str = Field(default_factory=new_id, primary_key=True)
    child: str = Field(max_length=100, index=True)
    category: str = Field(max_length=20, index=True)  # sleep, food, poop, shower
    log_date: Optional[date] = Field(default=None, index=True)
    log_time: Optional[time] = Field(default=None)
    start_time: Optional[time] = Field(default=None)
    end_time: Optional[time] = Field(default=None)
    description: str | None = Field(default=None, max_length=1000)
    logged_by: str | None = Field(default=None, foreign_key="user.id")
    created_at: datetime = timestamp_field()

    logged_by_user: Optional[User] = Relationship()
