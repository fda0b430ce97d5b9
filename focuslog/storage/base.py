"""
Record Store Base Classes

Abstract interface for everything the services persist or read:
activity records, cached summaries and the generation log used for
rate limiting.

Design Principles:
- Async-first so a network-backed store can drop in
- Rows are validated into dataclasses at this boundary
- Errors distinguish "schema not there" from "schema cache stale"
  from genuine failures, because the services treat them differently
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import date, datetime
from enum import StrEnum
from typing import Any

from focuslog.insights.models import ActivityRecord


class StorageError(Exception):
    """A genuine storage failure. Surfaces to the caller."""


class SchemaMissingError(StorageError):
    """A table the store needs does not exist (not migrated)."""


class SchemaCacheError(StorageError):
    """Transient schema-cache drift or lock contention. Worth one retry."""


class CacheKind(StrEnum):
    """What a cached summary row holds."""

    ROUTINE = "routine"
    DAILY = "daily"
    WEEKLY = "weekly"
    MONTHLY = "monthly"


@dataclass
class CachedSummary:
    """One cached result per (user, kind, date). Regeneration replaces it."""

    user_id: str
    kind: CacheKind
    date: date
    payload: dict[str, Any] = field(default_factory=dict)
    created_at: datetime | None = None
    updated_at: datetime | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "user_id": self.user_id,
            "kind": self.kind.value,
            "date": self.date.isoformat(),
            "payload": self.payload,
            "created_at": self.created_at.isoformat() if self.created_at else None,
            "updated_at": self.updated_at.isoformat() if self.updated_at else None,
        }


class RecordStore(ABC):
    """
    Abstract base class for record stores.

    Timestamps are compared as given; callers use one convention
    (naive local time in this project) throughout.
    """

    name: str = "abstract"

    # -------------------------------------------------------------------------
    # Activity records
    # -------------------------------------------------------------------------

    @abstractmethod
    async def fetch_records(
        self, user_id: str, start: datetime, end: datetime
    ) -> list[ActivityRecord]:
        """
        Records whose start_time falls in [start, end), ascending.

        Raises:
            SchemaMissingError: If the records table does not exist
            SchemaCacheError: On transient schema or lock errors
        """
        pass

    @abstractmethod
    async def add_record(self, user_id: str, record: ActivityRecord) -> ActivityRecord:
        """Persist a record and return it with its assigned id."""
        pass

    # -------------------------------------------------------------------------
    # Cached summaries
    # -------------------------------------------------------------------------

    @abstractmethod
    async def get_cache(self, user_id: str, kind: CacheKind, day: date) -> CachedSummary | None:
        pass

    @abstractmethod
    async def get_latest_cache(
        self, user_id: str, kind: CacheKind, since: datetime
    ) -> CachedSummary | None:
        """Most recently written row of ``kind`` updated at or after ``since``."""
        pass

    @abstractmethod
    async def list_caches(
        self, user_id: str, kind: CacheKind, start: date, end: date
    ) -> list[CachedSummary]:
        """Rows with date in [start, end), ascending by date."""
        pass

    @abstractmethod
    async def upsert_cache(
        self,
        user_id: str,
        kind: CacheKind,
        day: date,
        payload: dict[str, Any],
        now: datetime | None = None,
    ) -> CachedSummary:
        """Insert or replace the single row for (user, kind, day)."""
        pass

    # -------------------------------------------------------------------------
    # Generation log
    # -------------------------------------------------------------------------

    @abstractmethod
    async def record_generation(self, user_id: str, kind: CacheKind, at: datetime) -> None:
        pass

    @abstractmethod
    async def count_generations(self, user_id: str, kind: CacheKind, since: datetime) -> int:
        pass

    async def earliest_generation(
        self, user_id: str, kind: CacheKind, since: datetime
    ) -> datetime | None:
        """Oldest generation at or after ``since``. Used to compute Retry-After."""
        return None
