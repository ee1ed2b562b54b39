"""Models for the cache system.

Provides the three-valued lookup result, namespaces, store configuration,
statistics, and cache errors.
"""

from __future__ import annotations

from enum import Enum
from pathlib import Path
from typing import Any, Generic, TypeAlias, TypeVar, Union

from pydantic import BaseModel, ConfigDict, Field

V = TypeVar("V")


class Hit(BaseModel, Generic[V]):
    """Cached value found."""

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    value: V


class HitAbsent(BaseModel):
    """Cached record saying the value was looked up and does not exist."""

    model_config = ConfigDict(frozen=True)


class Miss(BaseModel):
    """Nothing cached for the key."""

    model_config = ConfigDict(frozen=True)


HIT_ABSENT = HitAbsent()
MISS = Miss()

LookupResult: TypeAlias = Union[Hit[Any], HitAbsent, Miss]


class CacheNamespace(str, Enum):
    """Independent logical tables of the cache."""

    FINGERPRINTS = "fingerprints"
    METADATA = "metadata"
    LYRICS = "lyrics"
    ALBUM_ART = "album_art"


class CacheStoreConfig(BaseModel):
    """Configuration for the SQLite cache store.

    Args:
        db_path: Path to the SQLite database file. Ignored when ``in_memory``.
        in_memory: Use a private ``:memory:`` database (tests, dry runs).
        enable_wal: Enable SQLite WAL journal mode.
        schema_version: Expected schema version string for the store.
        schema_dir: Directory containing ``tables.json``; defaults to the
            package's bundled ``schemas/`` directory.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    db_path: Path | None = None
    in_memory: bool = False
    enable_wal: bool = True
    schema_version: str = "1.0.0"
    schema_dir: Path | None = None


class CacheStats(BaseModel):
    """Cache statistics.

    All counts default to zero so callers can safely read any field
    even on an empty cache.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    fingerprints: int = 0
    metadata: int = 0
    lyrics: int = 0
    album_art: int = 0
    total_entries: int = 0
    size_bytes: int = Field(default=0, ge=0, description="On-disk size (0 when not persistent)")
    is_persistent: bool = False

    @property
    def counts(self) -> dict[CacheNamespace, int]:
        """Row count per namespace."""
        return {
            CacheNamespace.FINGERPRINTS: self.fingerprints,
            CacheNamespace.METADATA: self.metadata,
            CacheNamespace.LYRICS: self.lyrics,
            CacheNamespace.ALBUM_ART: self.album_art,
        }


class CacheStoreError(Exception):
    """Base exception for persistent cache store errors."""


class CacheSchemaError(CacheStoreError):
    """Raised when the stored schema version is incompatible."""


class CacheNotInitializedError(CacheStoreError):
    """Raised when the store is used before ``initialize()`` or after ``close()``."""
