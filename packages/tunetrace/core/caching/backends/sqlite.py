"""SQLite cache store backend.

Persists fingerprint, metadata, lyrics and album art lookups across sessions
in a single local SQLite file. Each namespace is its own table holding a JSON
payload and a creation timestamp; a NULL payload is an explicit negative entry.

Usage::

    from tunetrace.core.caching.backends.sqlite import SQLiteCacheStore
    from tunetrace.core.caching.models import CacheNamespace, CacheStoreConfig
    from pathlib import Path

    store = SQLiteCacheStore(CacheStoreConfig(db_path=Path("cache.db")))
    store.initialize()
    try:
        store.set(CacheNamespace.METADATA, "rec-1", {"title": "Yesterday"})
    finally:
        store.close()
"""

from __future__ import annotations

import json
import logging
import sqlite3
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

from tunetrace.core.caching.bootstrap.schema import SchemaBootstrapper
from tunetrace.core.caching.models import (
    HIT_ABSENT,
    MISS,
    CacheNamespace,
    CacheNotInitializedError,
    CacheSchemaError,
    CacheStats,
    CacheStoreConfig,
    CacheStoreError,
    Hit,
    LookupResult,
)

logger = logging.getLogger(__name__)

MEMORY_DB = ":memory:"

# namespace -> (table, key column)
_TABLES: dict[CacheNamespace, tuple[str, str]] = {
    CacheNamespace.FINGERPRINTS: ("fingerprints", "content_hash"),
    CacheNamespace.METADATA: ("metadata", "recording_id"),
    CacheNamespace.LYRICS: ("lyrics", "cache_key"),
    CacheNamespace.ALBUM_ART: ("album_art", "cache_key"),
}


def _utc_now() -> str:
    return datetime.now(timezone.utc).strftime("%Y-%m-%d %H:%M:%S")


class SQLiteCacheStore:
    """SQLite-backed persistent cache store.

    One store object owns the connection; every reader and writer in the
    process goes through it. Not meant for several processes writing the
    same file at once.

    Args:
        config: Store configuration.
    """

    def __init__(self, config: CacheStoreConfig) -> None:
        if not config.in_memory and config.db_path is None:
            raise CacheStoreError("CacheStoreConfig.db_path is required unless in_memory=True")
        self._config = config
        self._conn: sqlite3.Connection | None = None

    @property
    def path(self) -> str:
        """Database location (``:memory:`` for in-memory stores)."""
        if self._config.in_memory:
            return MEMORY_DB
        return str(self._config.db_path)

    @property
    def is_open(self) -> bool:
        return self._conn is not None

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def initialize(self) -> None:
        """Open the SQLite connection and bootstrap the schema.

        Raises:
            CacheSchemaError: If the database was written with a different
                schema version.
            CacheStoreError: If the database file cannot be opened.
        """
        if self._conn is not None:
            return

        if not self._config.in_memory:
            db_path: Path = self._config.db_path  # type: ignore[assignment]
            db_path.parent.mkdir(parents=True, exist_ok=True)

        try:
            conn = sqlite3.connect(self.path)
        except sqlite3.Error as e:
            raise CacheStoreError(f"Cannot open cache database at {self.path}: {e}") from e
        conn.row_factory = sqlite3.Row

        if self._config.enable_wal and not self._config.in_memory:
            conn.execute("PRAGMA journal_mode=WAL")
        conn.execute("PRAGMA synchronous=NORMAL")

        bootstrapper = SchemaBootstrapper(conn, self._config.schema_dir)
        stored = bootstrapper.get_version()
        if stored is not None and stored != self._config.schema_version:
            conn.close()
            raise CacheSchemaError(
                f"Schema version mismatch: stored={stored!r}, "
                f"expected={self._config.schema_version!r}. "
                "Clear the cache file or run a migration."
            )
        bootstrapper.bootstrap(self._config.schema_version)

        self._conn = conn
        logger.debug(f"Opened cache store at {self.path}")

    def close(self) -> None:
        """Close the SQLite connection. Safe to call multiple times."""
        if self._conn is not None:
            self._conn.close()
            self._conn = None

    def get_schema_version(self) -> str | None:
        return SchemaBootstrapper(self._require_conn(), self._config.schema_dir).get_version()

    # ------------------------------------------------------------------
    # Entry access
    # ------------------------------------------------------------------

    def get(self, namespace: CacheNamespace, key: str) -> LookupResult:
        """Look up one entry.

        Returns:
            Hit(decoded JSON), HIT_ABSENT for a NULL payload, MISS otherwise.
            A payload that no longer decodes is reported as MISS.
        """
        table, key_col = _TABLES[namespace]
        row = (
            self._require_conn()
            .execute(f"SELECT data_json FROM {table} WHERE {key_col} = ?", (key,))
            .fetchone()
        )
        if row is None:
            return MISS
        if row["data_json"] is None:
            return HIT_ABSENT
        try:
            return Hit(value=json.loads(row["data_json"]))
        except json.JSONDecodeError:
            logger.warning(f"Ignoring unreadable {namespace.value} cache entry for {key!r}")
            return MISS

    def has(self, namespace: CacheNamespace, key: str) -> bool:
        table, key_col = _TABLES[namespace]
        row = (
            self._require_conn()
            .execute(f"SELECT 1 FROM {table} WHERE {key_col} = ?", (key,))
            .fetchone()
        )
        return row is not None

    def set(self, namespace: CacheNamespace, key: str, value: Any | None) -> None:
        """Insert or replace one entry; ``None`` stores an explicit absence."""
        table, key_col = _TABLES[namespace]
        data_json = None if value is None else json.dumps(value)
        conn = self._require_conn()
        with conn:
            conn.execute(
                f"INSERT OR REPLACE INTO {table} ({key_col}, data_json, created_at) "
                "VALUES (?, ?, ?)",
                (key, data_json, _utc_now()),
            )

    def delete(self, namespace: CacheNamespace, key: str) -> bool:
        table, key_col = _TABLES[namespace]
        conn = self._require_conn()
        with conn:
            cursor = conn.execute(f"DELETE FROM {table} WHERE {key_col} = ?", (key,))
        return cursor.rowcount > 0

    def get_created_at(self, namespace: CacheNamespace, key: str) -> str | None:
        """Creation timestamp (UTC, ``YYYY-MM-DD HH:MM:SS``) of an entry."""
        table, key_col = _TABLES[namespace]
        row = (
            self._require_conn()
            .execute(f"SELECT created_at FROM {table} WHERE {key_col} = ?", (key,))
            .fetchone()
        )
        return None if row is None else str(row["created_at"])

    # ------------------------------------------------------------------
    # Management
    # ------------------------------------------------------------------

    def count(self, namespace: CacheNamespace) -> int:
        table, _ = _TABLES[namespace]
        row = self._require_conn().execute(f"SELECT COUNT(*) FROM {table}").fetchone()
        return int(row[0]) if row else 0

    def clear(self, namespace: CacheNamespace | None = None) -> None:
        """Delete every entry of one namespace, or of all namespaces when None."""
        namespaces = list(_TABLES) if namespace is None else [namespace]
        conn = self._require_conn()
        with conn:
            for ns in namespaces:
                table, _ = _TABLES[ns]
                conn.execute(f"DELETE FROM {table}")
        cleared = ", ".join(ns.value for ns in namespaces)
        logger.info(f"Cleared cache namespaces: {cleared}")

    def size_bytes(self) -> int:
        """Database file size in bytes (0 for in-memory stores or a missing file)."""
        if self._config.in_memory:
            return 0
        try:
            return Path(self.path).stat().st_size
        except OSError:
            return 0

    def stats(self) -> CacheStats:
        """Per-namespace counts, total, on-disk size."""
        counts = {ns: self.count(ns) for ns in _TABLES}
        return CacheStats(
            fingerprints=counts[CacheNamespace.FINGERPRINTS],
            metadata=counts[CacheNamespace.METADATA],
            lyrics=counts[CacheNamespace.LYRICS],
            album_art=counts[CacheNamespace.ALBUM_ART],
            total_entries=sum(counts.values()),
            size_bytes=self.size_bytes(),
            is_persistent=True,
        )

    # ------------------------------------------------------------------
    # Private helpers
    # ------------------------------------------------------------------

    def _require_conn(self) -> sqlite3.Connection:
        if self._conn is None:
            raise CacheNotInitializedError(
                "SQLiteCacheStore is not initialized. Call initialize() first."
            )
        return self._conn
