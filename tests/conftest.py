"""Shared test fixtures for FocusLog tests.

This module provides common fixtures used across all test modules:
- Database isolation with temporary files
- A controllable clock and a no-op sleep
- An activity record factory
- A scripted fake text generator

Usage:
    def test_something(temp_db, make_record):
        record = make_record(datetime(2024, 5, 6, 9), 60, "Deep Work")
        ...
"""

import os
import tempfile
from collections.abc import Callable, Generator
from datetime import datetime, timedelta
from pathlib import Path

import pytest

from focuslog.insights.models import ActivityRecord, Category
from focuslog.storage.sqlite_store import SQLiteRecordStore


# ─────────────────────────────────────────────────────────────────────────────
# Path Constants
# ─────────────────────────────────────────────────────────────────────────────

PROJECT_ROOT = Path(__file__).parent.parent
PACKAGE_DIR = PROJECT_ROOT / "focuslog"

# Monday
BASE_DAY = datetime(2024, 5, 6)


# ─────────────────────────────────────────────────────────────────────────────
# Test Doubles
# ─────────────────────────────────────────────────────────────────────────────


class FakeTextGenerator:
    """TextGenerator that replays scripted responses.

    Each call pops the next response; once exhausted it returns None.
    If ``error`` is set, every call raises it instead.
    """

    def __init__(self, responses: list[str | None] | None = None, error: Exception | None = None):
        self.responses = list(responses or [])
        self.error = error
        self.prompts: list[str] = []

    @property
    def calls(self) -> int:
        return len(self.prompts)

    async def generate(self, prompt: str, json_mode: bool = True) -> str | None:
        self.prompts.append(prompt)
        if self.error is not None:
            raise self.error
        if self.responses:
            return self.responses.pop(0)
        return None


class FixedClock:
    """Callable clock that only moves when told to."""

    def __init__(self, now: datetime):
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> None:
        self.now = self.now + timedelta(**kwargs)


class RecordingSleep:
    """Async sleep replacement that records requested delays."""

    def __init__(self):
        self.delays: list[float] = []

    async def __call__(self, delay: float) -> None:
        self.delays.append(delay)


# ─────────────────────────────────────────────────────────────────────────────
# Database Fixtures
# ─────────────────────────────────────────────────────────────────────────────


@pytest.fixture
def temp_db() -> Generator[Path, None, None]:
    """Create a temporary database file for testing.

    The database file is automatically deleted after the test completes.

    Yields:
        Path to the temporary database file
    """
    with tempfile.NamedTemporaryFile(suffix=".db", delete=False) as f:
        db_path = Path(f.name)

    yield db_path

    # Cleanup
    if db_path.exists():
        os.unlink(db_path)


@pytest.fixture
def store(temp_db: Path) -> SQLiteRecordStore:
    """SQLite store with the schema created."""
    return SQLiteRecordStore(temp_db)


# ─────────────────────────────────────────────────────────────────────────────
# User Fixtures
# ─────────────────────────────────────────────────────────────────────────────


@pytest.fixture
def mock_user_id() -> str:
    """Standard test user ID."""
    return "test_user_123"


# ─────────────────────────────────────────────────────────────────────────────
# Record Fixtures
# ─────────────────────────────────────────────────────────────────────────────


@pytest.fixture
def make_record() -> Callable[..., ActivityRecord]:
    """Factory for activity records.

    Usage:
        make_record(start, minutes, category="Work", activity="Task")
        make_record(start, None)  # open record
    """

    def _make(
        start: datetime,
        minutes: int | None,
        category: str | None = "Work",
        activity: str = "Task",
    ) -> ActivityRecord:
        return ActivityRecord(
            activity=activity,
            start_time=start,
            end_time=start + timedelta(minutes=minutes) if minutes is not None else None,
            category=Category(name=category) if category else None,
        )

    return _make


@pytest.fixture
def deep_work_week(make_record) -> list[ActivityRecord]:
    """Seven days with one 09:00-11:00 Deep Work block each, nothing else."""
    return [
        make_record(BASE_DAY + timedelta(days=i, hours=9), 120, "Deep Work", "Focus block")
        for i in range(7)
    ]


# ─────────────────────────────────────────────────────────────────────────────
# Clock / AI Fixtures
# ─────────────────────────────────────────────────────────────────────────────


@pytest.fixture
def clock() -> FixedClock:
    """Clock fixed at 18:00 on the last day of the deep-work week."""
    return FixedClock(BASE_DAY + timedelta(days=6, hours=18))


@pytest.fixture
def no_sleep() -> RecordingSleep:
    return RecordingSleep()


@pytest.fixture
def fake_generator() -> FakeTextGenerator:
    """Generator that returns None (model produced nothing)."""
    return FakeTextGenerator()
