"""
Error types for the HomeOps calendar engine.

Every error carries a machine-readable code, a human message and an
optional details dict, so routers and the aggregator can surface them
without string matching.
"""

from typing import Any, Dict, Optional


class HomeOpsError(Exception):
    """Base exception for engine errors"""
    def __init__(self, code: str, message: str, details: Optional[Dict[str, Any]] = None):
        self.code = code
        self.message = message
        self.details = details or {}
        super().__init__(self.message)

    def to_dict(self) -> Dict[str, Any]:
        return {"code": self.code, "message": self.message, "details": self.details}


class InvalidDateError(HomeOpsError, ValueError):
    """Raised when a date string is empty, ambiguous or not ISO formatted."""
    def __init__(self, value: Any, reason: str = "expected YYYY-MM-DD"):
        super().__init__(
            code="INVALID_DATE",
            message=f"Invalid date {value!r}: {reason}",
            details={"value": repr(value)}
        )


class InvalidWindowError(HomeOpsError, ValueError):
    """Raised when a calendar window ends before it starts."""
    def __init__(self, start: Any, end: Any):
        super().__init__(
            code="INVALID_WINDOW",
            message=f"Window start {start} is after end {end}",
            details={"start": str(start), "end": str(end)}
        )


class InvalidOverrideError(HomeOpsError, ValueError):
    """Raised when a schedule override would produce an unusable shift."""
    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(code="INVALID_OVERRIDE", message=message, details=details)


class SourceFetchError(HomeOpsError):
    """Raised by a store when one event source cannot be read."""
    def __init__(self, source: str, message: str):
        super().__init__(
            code="SOURCE_UNAVAILABLE",
            message=message,
            details={"source": source}
        )


class TaskNotFoundError(HomeOpsError):
    """Raised when a task id does not exist."""
    def __init__(self, task_id: str):
        super().__init__(
            code="TASK_NOT_FOUND",
            message=f"Task {task_id} not found",
            details={"task_id": task_id}
        )


class InvalidInstanceError(HomeOpsError, ValueError):
    """Raised when a per-date action targets a date the task does not occur on."""
    def __init__(self, task_id: str, instance_date: Any, reason: str):
        super().__init__(
            code="INVALID_INSTANCE",
            message=f"Task {task_id} on {instance_date}: {reason}",
            details={"task_id": task_id, "instance_date": str(instance_date)}
        )
