"""Caching for the resolution pipeline.

Key features:
- One ``Cache`` protocol, two backends (session memory, persistent SQLite)
- Three-valued lookups: ``Hit(value)``, ``HIT_ABSENT``, ``MISS``
- Canonical keys (absolute paths, recording IDs, ``artist|title``)
- Namespace-level clearing and statistics

``tunetrace.core.caching.factory`` assembles the caches for a run.
"""

from tunetrace.core.caching.backends.memory import MemoryCache
from tunetrace.core.caching.backends.sqlite import SQLiteCacheStore
from tunetrace.core.caching.keys import lyrics_key, make_lyrics_key, path_key, recording_key
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
    HitAbsent,
    LookupResult,
    Miss,
)
from tunetrace.core.caching.persistent import PersistentCache, PersistentFingerprintCache
from tunetrace.core.caching.protocols import Cache

__all__ = [
    # Core
    "Cache",
    "CacheNamespace",
    "CacheStats",
    "CacheStoreConfig",
    "Hit",
    "HitAbsent",
    "Miss",
    "HIT_ABSENT",
    "MISS",
    "LookupResult",
    # Backends
    "MemoryCache",
    "SQLiteCacheStore",
    "PersistentCache",
    "PersistentFingerprintCache",
    # Keys
    "lyrics_key",
    "make_lyrics_key",
    "path_key",
    "recording_key",
    # Errors
    "CacheStoreError",
    "CacheSchemaError",
    "CacheNotInitializedError",
]
