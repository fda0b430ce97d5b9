"""
SQLite Record Store

Tables:
- activity_logs: Raw activity records per user
- summaries: Cached results, one row per (user_id, kind, date)
- generation_log: Generation attempts, for the rolling rate limit

Each call opens its own connection. Timestamps are stored as ISO-8601
text and compared lexically, so callers must use one timestamp convention.
"""

from __future__ import annotations

import json
import logging
import sqlite3
from collections.abc import Iterator
from contextlib import contextmanager
from datetime import date, datetime
from pathlib import Path
from typing import Any

from focuslog.insights.models import ActivityRecord, Category
from focuslog.storage.base import (
    CachedSummary,
    CacheKind,
    RecordStore,
    SchemaCacheError,
    SchemaMissingError,
    StorageError,
)

logger = logging.getLogger(__name__)


SCHEMA = """
CREATE TABLE IF NOT EXISTS activity_logs (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    user_id TEXT NOT NULL,
    activity TEXT NOT NULL,
    start_time TEXT NOT NULL,
    end_time TEXT,
    category_name TEXT
);
CREATE INDEX IF NOT EXISTS idx_activity_logs_user_start
    ON activity_logs(user_id, start_time);

CREATE TABLE IF NOT EXISTS summaries (
    user_id TEXT NOT NULL,
    kind TEXT NOT NULL,
    date TEXT NOT NULL,
    payload TEXT NOT NULL,
    created_at TEXT NOT NULL,
    updated_at TEXT NOT NULL,
    PRIMARY KEY (user_id, kind, date)
);

CREATE TABLE IF NOT EXISTS generation_log (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    user_id TEXT NOT NULL,
    kind TEXT NOT NULL,
    created_at TEXT NOT NULL
);
CREATE INDEX IF NOT EXISTS idx_generation_log_user
    ON generation_log(user_id, kind, created_at);
"""

_TRANSIENT_MARKERS = ("database is locked", "database schema has changed", "database table is locked")


def translate_error(error: sqlite3.Error) -> StorageError:
    """Map a sqlite3 error onto the storage error taxonomy."""
    message = str(error).lower()
    if "no such table" in message:
        return SchemaMissingError(str(error))
    if any(marker in message for marker in _TRANSIENT_MARKERS):
        return SchemaCacheError(str(error))
    return StorageError(str(error))


class SQLiteRecordStore(RecordStore):
    name = "sqlite"

    def __init__(self, db_path: Path | str, init_schema: bool = True):
        self.db_path = Path(db_path)
        if init_schema:
            self.init_schema()

    @contextmanager
    def _connect(self) -> Iterator[sqlite3.Connection]:
        conn = None
        try:
            conn = sqlite3.connect(str(self.db_path))
            conn.row_factory = sqlite3.Row
            yield conn
            conn.commit()
        except sqlite3.Error as e:
            raise translate_error(e) from e
        finally:
            if conn is not None:
                conn.close()

    def init_schema(self) -> None:
        self.db_path.parent.mkdir(parents=True, exist_ok=True)
        with self._connect() as conn:
            conn.executescript(SCHEMA)
        logger.debug(f"SQLite schema ready at {self.db_path}")

    # -------------------------------------------------------------------------
    # Activity records
    # -------------------------------------------------------------------------

    async def fetch_records(
        self, user_id: str, start: datetime, end: datetime
    ) -> list[ActivityRecord]:
        with self._connect() as conn:
            rows = conn.execute(
                """
                SELECT id, activity, start_time, end_time, category_name
                FROM activity_logs
                WHERE user_id = ? AND start_time >= ? AND start_time < ?
                ORDER BY start_time ASC
                """,
                (user_id, start.isoformat(), end.isoformat()),
            ).fetchall()

        records = []
        for row in rows:
            try:
                records.append(ActivityRecord.from_dict(dict(row)))
            except ValueError as e:
                logger.warning(f"Skipping malformed activity row {row['id']}: {e}")
        return records

    async def add_record(self, user_id: str, record: ActivityRecord) -> ActivityRecord:
        with self._connect() as conn:
            cursor = conn.execute(
                """
                INSERT INTO activity_logs (user_id, activity, start_time, end_time, category_name)
                VALUES (?, ?, ?, ?, ?)
                """,
                (
                    user_id,
                    record.activity,
                    record.start_time.isoformat(),
                    record.end_time.isoformat() if record.end_time else None,
                    record.category.name if record.category else None,
                ),
            )
            record_id = cursor.lastrowid

        return ActivityRecord(
            activity=record.activity,
            start_time=record.start_time,
            end_time=record.end_time,
            category=Category(name=record.category.name) if record.category else None,
            id=str(record_id),
        )

    # -------------------------------------------------------------------------
    # Cached summaries
    # -------------------------------------------------------------------------

    @staticmethod
    def _row_to_cache(row: sqlite3.Row) -> CachedSummary:
        return CachedSummary(
            user_id=row["user_id"],
            kind=CacheKind(row["kind"]),
            date=date.fromisoformat(row["date"]),
            payload=json.loads(row["payload"]),
            created_at=datetime.fromisoformat(row["created_at"]),
            updated_at=datetime.fromisoformat(row["updated_at"]),
        )

    async def get_cache(self, user_id: str, kind: CacheKind, day: date) -> CachedSummary | None:
        with self._connect() as conn:
            row = conn.execute(
                "SELECT * FROM summaries WHERE user_id = ? AND kind = ? AND date = ?",
                (user_id, kind.value, day.isoformat()),
            ).fetchone()
        return self._row_to_cache(row) if row else None

    async def get_latest_cache(
        self, user_id: str, kind: CacheKind, since: datetime
    ) -> CachedSummary | None:
        with self._connect() as conn:
            row = conn.execute(
                """
                SELECT * FROM summaries
                WHERE user_id = ? AND kind = ? AND updated_at >= ?
                ORDER BY updated_at DESC
                LIMIT 1
                """,
                (user_id, kind.value, since.isoformat()),
            ).fetchone()
        return self._row_to_cache(row) if row else None

    async def list_caches(
        self, user_id: str, kind: CacheKind, start: date, end: date
    ) -> list[CachedSummary]:
        with self._connect() as conn:
            rows = conn.execute(
                """
                SELECT * FROM summaries
                WHERE user_id = ? AND kind = ? AND date >= ? AND date < ?
                ORDER BY date ASC
                """,
                (user_id, kind.value, start.isoformat(), end.isoformat()),
            ).fetchall()
        return [self._row_to_cache(row) for row in rows]

    async def upsert_cache(
        self,
        user_id: str,
        kind: CacheKind,
        day: date,
        payload: dict[str, Any],
        now: datetime | None = None,
    ) -> CachedSummary:
        stamp = (now or datetime.now()).isoformat()
        with self._connect() as conn:
            conn.execute(
                """
                INSERT INTO summaries (user_id, kind, date, payload, created_at, updated_at)
                VALUES (?, ?, ?, ?, ?, ?)
                ON CONFLICT(user_id, kind, date) DO UPDATE SET
                    payload = excluded.payload,
                    updated_at = excluded.updated_at
                """,
                (user_id, kind.value, day.isoformat(), json.dumps(payload), stamp, stamp),
            )
            row = conn.execute(
                "SELECT * FROM summaries WHERE user_id = ? AND kind = ? AND date = ?",
                (user_id, kind.value, day.isoformat()),
            ).fetchone()
        return self._row_to_cache(row)

    # -------------------------------------------------------------------------
    # Generation log
    # -------------------------------------------------------------------------

    async def record_generation(self, user_id: str, kind: CacheKind, at: datetime) -> None:
        with self._connect() as conn:
            conn.execute(
                "INSERT INTO generation_log (user_id, kind, created_at) VALUES (?, ?, ?)",
                (user_id, kind.value, at.isoformat()),
            )

    async def count_generations(self, user_id: str, kind: CacheKind, since: datetime) -> int:
        with self._connect() as conn:
            row = conn.execute(
                """
                SELECT COUNT(*) AS n FROM generation_log
                WHERE user_id = ? AND kind = ? AND created_at >= ?
                """,
                (user_id, kind.value, since.isoformat()),
            ).fetchone()
        return int(row["n"])

    async def earliest_generation(
        self, user_id: str, kind: CacheKind, since: datetime
    ) -> datetime | None:
        with self._connect() as conn:
            row = conn.execute(
                """
                SELECT MIN(created_at) AS first FROM generation_log
                WHERE user_id = ? AND kind = ? AND created_at >= ?
                """,
                (user_id, kind.value, since.isoformat()),
            ).fetchone()
        return datetime.fromisoformat(row["first"]) if row and row["first"] else None
