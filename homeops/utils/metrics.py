"""
Metrics Collection for the calendar aggregator.

Counts source fetches, source failures and emitted events, and records
how long aggregation calls take.
"""

import time
from typing import Dict, Any
from collections import defaultdict
from contextlib import contextmanager
from datetime import datetime, timezone
import threading


class MetricsCollector:
    """Collects and manages metrics for calendar aggregation."""

    def __init__(self):
        """Initialize metrics collector."""
        self.metrics = defaultdict(int)
        self.timers = defaultdict(float)
        self.timer_counts = defaultdict(int)
        self.lock = threading.Lock()

        self.metrics["calendar_source_fetch_total"] = 0
        self.metrics["calendar_source_errors_total"] = 0
        self.metrics["calendar_events_emitted_total"] = 0

    def increment_counter(self, metric_name: str, value: int = 1):
        """Increment a counter metric."""
        with self.lock:
            self.metrics[metric_name] += value

    def record_timer(self, metric_name: str, duration: float):
        """Record a timing metric."""
        with self.lock:
            self.timers[metric_name] += duration
            self.timer_counts[metric_name] += 1

    def get_metrics(self) -> Dict[str, Any]:
        """Get current metrics values."""
        with self.lock:
            return {
                "counters": dict(self.metrics),
                "timers": {
                    name: {"count": self.timer_counts[name], "total_seconds": total}
                    for name, total in self.timers.items()
                },
                "timestamp": datetime.now(timezone.utc).isoformat()
            }

    def source_fetched(self, source: str):
        """Record that one event source was queried."""
        self.increment_counter("calendar_source_fetch_total")
        self.increment_counter(f"calendar_source_fetch_total:{source}")

    def source_failed(self, source: str):
        """Record that one event source failed and contributed nothing."""
        self.increment_counter("calendar_source_errors_total")
        self.increment_counter(f"calendar_source_errors_total:{source}")

    def events_emitted(self, count: int):
        self.increment_counter("calendar_events_emitted_total", count)

    @contextmanager
    def time_operation(self, metric_name: str):
        """Context manager to time an operation."""
        start_time = time.perf_counter()
        try:
            yield
        finally:
            self.record_timer(metric_name, time.perf_counter() - start_time)


# Global metrics instance
metrics_collector = MetricsCollector()
