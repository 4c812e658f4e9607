"""Shared fixtures for the calendar engine tests."""

from __future__ import annotations

from datetime import date, time

import pytest

from homeops.config import Settings
from homeops.models import TaskCategory, User
from homeops.stores.memory import InMemoryStores
from homeops.utils.metrics import MetricsCollector
from tests.factories import (
    make_important_date,
    make_leave,
    make_log,
    make_recurring,
    make_task,
    make_template,
    make_user,
)


@pytest.fixture
def settings() -> Settings:
    return Settings(timezone="UTC", source_timeout_seconds=0.5)


@pytest.fixture
def metrics() -> MetricsCollector:
    return MetricsCollector()


@pytest.fixture
def maria() -> User:
    return make_user("Maria Lopez")


@pytest.fixture
def household(maria) -> InMemoryStores:
    """A small household with one row in every source."""
    chores = TaskCategory(name="Chores", color="#22c55e")
    return InMemoryStores(
        tasks=[
            make_task(title="Pay rent", due_date=date(2025, 3, 10), due_time=time(8, 0)),
            make_recurring("FREQ=WEEKLY;BYDAY=MO", date(2025, 3, 3), title="Take out trash", category=chores),
        ],
        leave=[make_leave(maria, date(2025, 3, 12), date(2025, 3, 12))],
        logs=[
            make_log("food", date(2025, 3, 11), log_time=time(12, 15)),
            make_log("sleep", date(2025, 3, 11), start_time=time(20, 30), end_time=time(6, 45)),
        ],
        important_dates=[make_important_date(maria, 3, 14)],
        templates=[
            make_template(maria, day_of_week=1),  # Monday
            make_template(maria, day_of_week=3),  # Wednesday
        ],
    )
