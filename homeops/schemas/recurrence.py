"""Recurrence rule value object."""
from enum import Enum
from typing import FrozenSet, Optional

from pydantic import BaseModel, ConfigDict, Field


class Frequency(str, Enum):
    DAILY = "DAILY"
    WEEKLY = "WEEKLY"
    MONTHLY = "MONTHLY"
    YEARLY = "YEARLY"


# Python weekday() numbering: Monday=0 .. Sunday=6
WEEKDAY_CODES = {"MO": 0, "TU": 1, "WE": 2, "TH": 3, "FR": 4, "SA": 5, "SU": 6}


class RecurrenceRule(BaseModel):
    """Compact recurrence descriptor attached to a recurring task."""
    model_config = ConfigDict(frozen=True)

    frequency: Optional[str] = None  # a Frequency value; unknown strings are kept and never match
    interval: int = 1
    by_day: Optional[FrozenSet[str]] = Field(default=None)  # MO..SU, WEEKLY only

    def weekdays(self) -> Optional[FrozenSet[int]]:
        """Allowed Python weekday numbers, or None when no BYDAY was given."""
        if not self.by_day:
            return None
        return frozenset(WEEKDAY_CODES[code] for code in self.by_day if code in WEEKDAY_CODES)

    def to_string(self) -> str:
        parts = [f"FREQ={self.frequency}", f"INTERVAL={self.interval}"]
        if self.by_day:
            ordered = sorted(self.by_day, key=lambda code: WEEKDAY_CODES.get(code, 7))
            parts.append("BYDAY=" + ",".join(ordered))
        return ";".join(parts)
