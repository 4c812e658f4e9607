"""Task schemas for repeat-batch views and per-occurrence state."""
from pydantic import BaseModel, Field
from datetime import date, datetime, time
from typing import Optional


class TaskResponse(BaseModel):
    """Schema for task API responses."""
    id: str
    title: str
    description: Optional[str] = None
    status: str
    priority: Optional[str] = "medium"
    created_by: Optional[str] = None
    assigned_to: Optional[str] = None
    created_at: datetime
    due_date: Optional[date] = None
    due_time: Optional[time] = None
    is_recurring: bool = False
    recurrence_rule: Optional[str] = None

    class Config:
        from_attributes = True


class TaskListResponse(BaseModel):
    tasks: list[TaskResponse]
    count: int


class InstanceTimeOverride(BaseModel):
    """Schema for moving one occurrence of a recurring task."""
    override_time: Optional[time] = Field(None)
    override_start_time: Optional[time] = Field(None)
    override_end_time: Optional[time] = Field(None)


class ExpiringBatch(BaseModel):
    """A repeat batch whose last pending occurrence is coming up soon."""
    batch_key: str
    title: str
    last_due_date: date
    task_count: int
    created_by: Optional[str] = None
    first_task_id: str
