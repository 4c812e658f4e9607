"""Important date model for SQLModel."""
from sqlmodel import SQLModel, Field, Relationship
from typing import Optional

from homeops.models.user import User, new_id


class ImportantDate(SQLModel, table=True):
    """A yearly date worth remembering (birthday, work anniversary)."""

    id: str = Field(default_factory=new_id, primary_key=True)
    user_id: str = Field(foreign_key="user.id", index=True)
    label: str = Field(max_length=200)
    month: int = Field(ge=1, le=12)
    day: int = Field(ge=1, le=31)

    user: Optional[User] = Relationship()
