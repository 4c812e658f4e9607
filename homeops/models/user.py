"""User model for SQLModel."""
from sqlmodel import SQLModel, Field
from sqlalchemy import Column, DateTime
from datetime import datetime, timezone
import uuid


def utcnow() -> datetime:
    """Timezone-aware UTC timestamp."""
    return datetime.now(timezone.utc)


def timestamp_field():
    """Audit timestamp column, defaulting to now (UTC)."""
    return Field(default_factory=utcnow, sa_column=Column(DateTime(timezone=True), nullable=False))


def new_id() -> str:
    return str(uuid.uuid4())


class User(SQLModel, table=True):
    """Household member or employee; only used for display names and ownership."""

    id: str = Field(
        default_factory=new_id,
        primary_key=True,
        index=True
    )
    full_name: str = Field(max_length=255)
    role: str = Field(default="employee", max_length=20)  # admin, employee
    avatar_url: str | None = Field(default=None, max_length=500)
    created_at: datetime = timestamp_field()
