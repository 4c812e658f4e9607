"""
Structured logging for the calendar engine.

Each record is one JSON object per line so source failures and
aggregation summaries can be filtered by field (``source``, ``code``)
instead of by message text.
"""

import json
import logging
import sys
from datetime import datetime, timezone
from typing import Any, Dict, Optional


class StructuredLogger:
    """JSON-line logger carrying fixed context fields on every record."""

    def __init__(self, name: str, level: int = logging.INFO, context: Optional[Dict[str, Any]] = None):
        """
        Args:
            name: Logger name, reported as ``component``
            level: Logging level
            context: Fields merged into every record
        """
        self.logger = logging.getLogger(name)
        self.logger.setLevel(level)
        self.context = dict(context or {})

        # Prevent adding handlers multiple times
        if not self.logger.handlers:
            handler = logging.StreamHandler(sys.stdout)
            handler.setFormatter(logging.Formatter('%(asctime)s - %(name)s - %(levelname)s - %(message)s'))
            self.logger.addHandler(handler)

    def bind(self, **fields) -> "StructuredLogger":
        """Child logger with extra context fields; shares the underlying handler."""
        child = StructuredLogger.__new__(StructuredLogger)
        child.logger = self.logger
        child.context = {**self.context, **fields}
        return child

    def _emit(self, level: int, message: str, fields: Dict[str, Any]):
        if not self.logger.isEnabledFor(level):
            return
        record = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "level": logging.getLevelName(level),
            "component": self.logger.name,
            "message": message,
            **self.context,
            **fields,
        }
        self.logger.log(level, json.dumps(record, default=str))

    def debug(self, message: str, **fields):
        self._emit(logging.DEBUG, message, fields)

    def info(self, message: str, **fields):
        self._emit(logging.INFO, message, fields)

    def warning(self, message: str, **fields):
        self._emit(logging.WARNING, message, fields)

    def error(self, message: str, **fields):
        self._emit(logging.ERROR, message, fields)


def get_logger(component: str, level: int = logging.INFO) -> StructuredLogger:
    """Structured logger for one engine component."""
    return StructuredLogger(component, level=level)
