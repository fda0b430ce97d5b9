"""Tests for focuslog/storage/sqlite_store.py

Covers records, the summary cache (one row per user/kind/date), the
generation log and the error taxonomy.
"""

import sqlite3
from datetime import date, datetime, timedelta

import pytest

from focuslog.storage.base import CacheKind, SchemaCacheError, SchemaMissingError, StorageError
from focuslog.storage.sqlite_store import SQLiteRecordStore, translate_error


DAY = datetime(2024, 5, 6)


# ─────────────────────────────────────────────────────────────────────────────
# Activity Records
# ─────────────────────────────────────────────────────────────────────────────


class TestRecords:
    """Tests for storing and fetching activity records."""

    @pytest.mark.asyncio
    async def test_add_assigns_id(self, store, make_record, mock_user_id):
        saved = await store.add_record(mock_user_id, make_record(DAY.replace(hour=9), 60, "Deep Work"))

        assert saved.id is not None
        assert saved.category_name == "Deep Work"

    @pytest.mark.asyncio
    async def test_fetch_is_half_open_and_sorted(self, store, make_record, mock_user_id):
        for hour in (14, 9, 0):
            await store.add_record(mock_user_id, make_record(DAY.replace(hour=hour), 30))
        await store.add_record(mock_user_id, make_record(DAY + timedelta(days=1), 30))

        records = await store.fetch_records(mock_user_id, DAY, DAY + timedelta(days=1))

        assert [r.start_time.hour for r in records] == [0, 9, 14]

    @pytest.mark.asyncio
    async def test_fetch_is_per_user(self, store, make_record, mock_user_id):
        await store.add_record("someone_else", make_record(DAY.replace(hour=9), 30))

        assert await store.fetch_records(mock_user_id, DAY, DAY + timedelta(days=1)) == []

    @pytest.mark.asyncio
    async def test_open_and_uncategorized_records_round_trip(self, store, make_record, mock_user_id):
        await store.add_record(mock_user_id, make_record(DAY.replace(hour=9), None, None, "Ongoing"))

        [record] = await store.fetch_records(mock_user_id, DAY, DAY + timedelta(days=1))

        assert record.is_open
        assert record.category is None
        assert record.category_name == "Other"

    @pytest.mark.asyncio
    async def test_malformed_rows_are_skipped(self, store, make_record, mock_user_id, temp_db):
        await store.add_record(mock_user_id, make_record(DAY.replace(hour=9), 30))
        with sqlite3.connect(temp_db) as conn:
            conn.execute(
                "INSERT INTO activity_logs (user_id, activity, start_time) VALUES (?, ?, ?)",
                (mock_user_id, "Broken", "2024-05-06Tgarbage"),
            )

        records = await store.fetch_records(mock_user_id, DAY, DAY + timedelta(days=1))

        assert [r.activity for r in records] == ["Task"]


# ─────────────────────────────────────────────────────────────────────────────
# Summary Cache
# ─────────────────────────────────────────────────────────────────────────────


class TestCache:
    """Tests for the summaries table."""

    @pytest.mark.asyncio
    async def test_upsert_replaces_single_row(self, store, mock_user_id):
        first = await store.upsert_cache(
            mock_user_id, CacheKind.ROUTINE, date(2024, 5, 6), {"v": 1}, now=DAY.replace(hour=9)
        )
        second = await store.upsert_cache(
            mock_user_id, CacheKind.ROUTINE, date(2024, 5, 6), {"v": 2}, now=DAY.replace(hour=10)
        )

        rows = await store.list_caches(mock_user_id, CacheKind.ROUTINE, date(2024, 5, 1), date(2024, 6, 1))
        assert len(rows) == 1
        assert second.payload == {"v": 2}
        assert second.created_at == first.created_at
        assert second.updated_at == DAY.replace(hour=10)

    @pytest.mark.asyncio
    async def test_get_cache_by_kind_and_day(self, store, mock_user_id):
        await store.upsert_cache(mock_user_id, CacheKind.DAILY, date(2024, 5, 6), {"summary": "x"})

        assert await store.get_cache(mock_user_id, CacheKind.ROUTINE, date(2024, 5, 6)) is None
        cached = await store.get_cache(mock_user_id, CacheKind.DAILY, date(2024, 5, 6))
        assert cached.payload == {"summary": "x"}
        assert cached.to_dict()["kind"] == "daily"

    @pytest.mark.asyncio
    async def test_get_latest_cache_since(self, store, mock_user_id):
        await store.upsert_cache(mock_user_id, CacheKind.ROUTINE, date(2024, 5, 5), {"v": "old"}, now=DAY)
        await store.upsert_cache(
            mock_user_id, CacheKind.ROUTINE, date(2024, 5, 6), {"v": "new"}, now=DAY.replace(hour=9)
        )

        latest = await store.get_latest_cache(mock_user_id, CacheKind.ROUTINE, DAY.replace(hour=8))
        assert latest.payload == {"v": "new"}
        assert await store.get_latest_cache(mock_user_id, CacheKind.ROUTINE, DAY.replace(hour=10)) is None

    @pytest.mark.asyncio
    async def test_list_caches_half_open(self, store, mock_user_id):
        for day in (6, 7, 13):
            await store.upsert_cache(mock_user_id, CacheKind.DAILY, date(2024, 5, day), {"day": day})

        rows = await store.list_caches(mock_user_id, CacheKind.DAILY, date(2024, 5, 6), date(2024, 5, 13))

        assert [r.payload["day"] for r in rows] == [6, 7]


# ─────────────────────────────────────────────────────────────────────────────
# Generation Log
# ─────────────────────────────────────────────────────────────────────────────


class TestGenerationLog:
    """Tests for rate-limit bookkeeping."""

    @pytest.mark.asyncio
    async def test_count_and_earliest(self, store, mock_user_id):
        for minute in (0, 20, 40):
            await store.record_generation(mock_user_id, CacheKind.ROUTINE, DAY.replace(hour=9, minute=minute))

        since = DAY.replace(hour=9, minute=10)
        assert await store.count_generations(mock_user_id, CacheKind.ROUTINE, since) == 2
        assert await store.count_generations(mock_user_id, CacheKind.DAILY, since) == 0
        assert await store.earliest_generation(mock_user_id, CacheKind.ROUTINE, since) == DAY.replace(
            hour=9, minute=20
        )

    @pytest.mark.asyncio
    async def test_earliest_without_rows(self, store, mock_user_id):
        assert await store.earliest_generation(mock_user_id, CacheKind.ROUTINE, DAY) is None


# ─────────────────────────────────────────────────────────────────────────────
# Errors
# ─────────────────────────────────────────────────────────────────────────────


class TestErrors:
    """Tests for the storage error taxonomy."""

    @pytest.mark.asyncio
    async def test_missing_tables(self, temp_db, mock_user_id):
        store = SQLiteRecordStore(temp_db, init_schema=False)

        with pytest.raises(SchemaMissingError):
            await store.fetch_records(mock_user_id, DAY, DAY + timedelta(days=1))
        with pytest.raises(SchemaMissingError):
            await store.get_cache(mock_user_id, CacheKind.ROUTINE, DAY.date())

    @pytest.mark.parametrize(
        "message,expected",
        [
            ("no such table: summaries", SchemaMissingError),
            ("database is locked", SchemaCacheError),
            ("database schema has changed", SchemaCacheError),
            ("disk I/O error", StorageError),
        ],
    )
    def test_translate_error(self, message, expected):
        error = translate_error(sqlite3.OperationalError(message))

        assert type(error) is expected
        assert message in str(error)
