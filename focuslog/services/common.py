"""
Store access shared by the services.

Schema-cache errors get one retry. After that, reads degrade to "no
cache", activity fetches to "no records", and writes report failure.
A missing activity table is a deployment problem and is raised as
StorageMisconfiguredError.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable
from datetime import date, datetime
from typing import Any

from focuslog.insights.models import ActivityRecord
from focuslog.storage.base import (
    CachedSummary,
    CacheKind,
    RecordStore,
    SchemaCacheError,
    SchemaMissingError,
    StorageError,
)
from focuslog.storage.retry import SCHEMA_RETRY_DELAY_SECONDS, with_schema_retry

logger = logging.getLogger(__name__)


class StorageMisconfiguredError(Exception):
    """The activity store is not set up (missing tables)."""


class StoreAccess:
    def __init__(
        self,
        store: RecordStore,
        retry_delay: float = SCHEMA_RETRY_DELAY_SECONDS,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ):
        self.store = store
        self.retry_delay = retry_delay
        self.sleep = sleep

    async def retrying(self, operation):
        return await with_schema_retry(operation, delay=self.retry_delay, sleep=self.sleep)

    async def read_cache(self, operation) -> CachedSummary | None:
        try:
            return await self.retrying(operation)
        except (SchemaMissingError, SchemaCacheError) as e:
            logger.warning(f"Summary cache unavailable, treating as empty: {e}")
            return None

    async def get_cache(self, user_id: str, kind: CacheKind, day: date) -> CachedSummary | None:
        return await self.read_cache(lambda: self.store.get_cache(user_id, kind, day))

    async def list_caches(
        self, user_id: str, kind: CacheKind, start: date, end: date
    ) -> list[CachedSummary]:
        try:
            return await self.retrying(lambda: self.store.list_caches(user_id, kind, start, end))
        except (SchemaMissingError, SchemaCacheError) as e:
            logger.warning(f"Summary cache unavailable, treating as empty: {e}")
            return []

    async def save_cache(
        self, user_id: str, kind: CacheKind, day: date, payload: dict[str, Any], now: datetime
    ) -> bool:
        """Best-effort upsert. Returns whether the row was written."""
        try:
            await self.retrying(lambda: self.store.upsert_cache(user_id, kind, day, payload, now=now))
            return True
        except StorageError as e:
            logger.warning(f"Failed to cache {kind} summary for {user_id}: {e}")
            return False

    async def fetch_records(
        self, user_id: str, start: datetime, end: datetime
    ) -> list[ActivityRecord]:
        """
        Raises:
            StorageMisconfiguredError: If the activity table does not exist
        """
        try:
            return await self.retrying(lambda: self.store.fetch_records(user_id, start, end))
        except SchemaMissingError as e:
            logger.error(f"Activity store is not set up: {e}")
            raise StorageMisconfiguredError("Database tables not set up") from e
        except SchemaCacheError as e:
            logger.warning(f"Activity fetch failed after retry, treating as empty: {e}")
            return []
