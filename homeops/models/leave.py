"""Leave request model for SQLModel."""
from sqlmodel import SQLModel, Field, Relationship
from sqlalchemy import Column, JSON
from datetime import date, datetime
from typing import List, Optional

from homeops.models.user import User, new_id, timestamp_field

LEAVE_TYPES = ("vacation", "sick", "holiday")
LEAVE_STATUSES = ("pending", "approved", "denied", "cancelled")


class LeaveRequest(SQLModel, table=True):
    """Time off for one employee, either a contiguous range or hand-picked dates."""

    id: str = Field(default_factory=new_id, primary_key=True)
    user_id: str = Field(foreign_key="user.id", index=True)
    leave_type: str = Field(default="vacation", max_length=20)
    status: str = Field(default="pending", max_length=20, index=True)
    start_date: Optional[date] = Field(default=None, index=True)
    end_date: Optional[date] = Field(default=None, index=True)
    selected_dates: Optional[List[str]] = Field(default=None, sa_column=Column(JSON))  # ISO dates
    total_days: Optional[float] = Field(default=None)
    reason: str | None = Field(default=None, max_length=500)
    created_at: datetime = timestamp_field()

    user: Optional[User] = Relationship()
