"""Task models for SQLModel."""
from sqlmodel import SQLModel, Field, Relationship
from sqlalchemy import UniqueConstraint
from datetime import date, datetime, time
from typing import Optional

from homeops.models.user import new_id, timestamp_field

TASK_STATUSES = ("pending", "in_progress", "completed")
TASK_PRIORITIES = ("low", "medium", "high", "urgent")


class TaskCategory(SQLModel, table=True):
    """Category used to color task events."""

    id: str = Field(default_factory=new_id, primary_key=True)
    name: str = Field(max_length=100)
    color: str = Field(default="#60a5fa", max_length=20)


class Task(SQLModel, table=True):
    """
    A task row.

    A row is either a standalone task, one materialized instance of a
    repeating batch, or a recurring definition (``is_recurring``) whose
    ``due_date`` is the first possible occurrence.
    """

    id: str = Field(default_factory=new_id, primary_key=True)
    title: str = Field(max_length=200, min_length=1)
    description: str | None = Field(default=None, max_length=2000)
    created_by: str | None = Field(default=None, index=True)
    assigned_to: str | None = Field(default=None, index=True)  # None means everyone
    created_at: datetime = timestamp_field()
    updated_at: datetime = timestamp_field()

    status: str = Field(default="pending", max_length=20)  # pending, in_progress, completed
    priority: str = Field(default="medium", max_length=20)
    category_id: str | None = Field(default=None, foreign_key="taskcategory.id")

    due_date: Optional[date] = Field(default=None, index=True)
    due_time: Optional[time] = Field(default=None)
    is_all_day: bool = Field(default=False)
    is_activity: bool = Field(default=False)  # activities span start_time..end_time
    start_time: Optional[time] = Field(default=None)
    end_time: Optional[time] = Field(default=None)

    is_recurring: bool = Field(default=False, index=True)
    recurrence_rule: str | None = Field(default=None, max_length=200)  # FREQ=WEEKLY;INTERVAL=1;BYDAY=MO

    category: Optional[TaskCategory] = Relationship()

    @property
    def start_date(self) -> Optional[date]:
        """First possible occurrence of a recurring definition."""
        return self.due_date


class TaskCompletion(SQLModel, table=True):
    """Completion of one occurrence of a recurring task."""

    __table_args__ = (UniqueConstraint("task_id", "completion_date"),)

    id: str = Field(default_factory=new_id, primary_key=True)
    task_id: str = Field(foreign_key="task.id", index=True)
    completion_date: date = Field(index=True)
    completed_by: str | None = Field(default=None)
    completed_at: datetime = timestamp_field()


class TaskSkippedInstance(SQLModel, table=True):
    """An occurrence of a recurring task that should not be shown."""

    __table_args__ = (UniqueConstraint("task_id", "skipped_date"),)

    id: str = Field(default_factory=new_id, primary_key=True)
    task_id: str = Field(foreign_key="task.id", index=True)
    skipped_date: date = Field(index=True)
    skipped_by: str | None = Field(default=None)
    skipped_at: datetime = timestamp_field()


class TaskInstanceOverride(SQLModel, table=True):
    """Time change for a single occurrence of a recurring task."""

    __table_args__ = (UniqueConstraint("task_id", "instance_date"),)

    id: str = Field(default_factory=new_id, primary_key=True)
    task_id: str = Field(foreign_key="task.id", index=True)
    instance_date: date = Field(index=True)
    override_time: Optional[time] = Field(default=None)
    override_start_time: Optional[time] = Field(default=None)
    override_end_time: Optional[time] = Field(default=None)
    created_by: str | None = Field(default=None)
    created_at: datetime = timestamp_field()
