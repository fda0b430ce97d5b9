"""Storage - Record store interface and SQLite implementation

Database: data/focuslog.db (override with FOCUSLOG_DB_PATH)
    - activity_logs: Raw activity records
    - summaries: Cached routine / daily / weekly / monthly results
    - generation_log: Generation attempts for rate limiting
"""

from focuslog.storage.base import (
    CachedSummary,
    CacheKind,
    RecordStore,
    SchemaCacheError,
    SchemaMissingError,
    StorageError,
)
from focuslog.storage.retry import with_schema_retry
from focuslog.storage.sqlite_store import SQLiteRecordStore


__all__ = [
    "CacheKind",
    "CachedSummary",
    "RecordStore",
    "SQLiteRecordStore",
    "SchemaCacheError",
    "SchemaMissingError",
    "StorageError",
    "with_schema_retry",
]
