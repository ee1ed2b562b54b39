"""Cache factory: builds the session or persistent cache set for a run.

Usage::

    from tunetrace.core.caching.factory import create_cache_set
    from tunetrace.core.caching.models import CacheStoreConfig

    caches = create_cache_set(CacheStoreConfig(db_path=Path("cache.db")))
    try:
        ...
    finally:
        caches.close()
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

from tunetrace.core.audio.metadata.content_identity import compute_content_identity
from tunetrace.core.audio.models import (
    AlbumArt,
    FingerprintRecord,
    LyricsResult,
    RecordingMetadata,
)
from tunetrace.core.caching.backends.memory import MemoryCache
from tunetrace.core.caching.backends.sqlite import SQLiteCacheStore
from tunetrace.core.caching.keys import album_art_key, lyrics_key, path_key, recording_key
from tunetrace.core.caching.models import CacheNamespace, CacheStats, CacheStoreConfig
from tunetrace.core.caching.persistent import PersistentCache, PersistentFingerprintCache
from tunetrace.core.caching.protocols import Cache

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CacheSet:
    """The caches one pipeline run uses.

    Fingerprints have two layers: a session cache keyed by absolute path and,
    when persistent, a store-backed cache keyed by content identity. Metadata,
    lyrics and album art use exactly one cache each.
    """

    fingerprints_session: MemoryCache
    fingerprints_persistent: PersistentFingerprintCache | None
    metadata: Cache
    lyrics: Cache
    album_art: Cache
    store: SQLiteCacheStore | None = None

    @property
    def is_persistent(self) -> bool:
        return self.store is not None

    def clear_namespace(self, namespace: CacheNamespace) -> None:
        """Empty one namespace in every layer."""
        if namespace is CacheNamespace.FINGERPRINTS:
            self.fingerprints_session.clear()
            if self.fingerprints_persistent is not None:
                self.fingerprints_persistent.clear()
        elif namespace is CacheNamespace.METADATA:
            self.metadata.clear()
        elif namespace is CacheNamespace.LYRICS:
            self.lyrics.clear()
        elif namespace is CacheNamespace.ALBUM_ART:
            self.album_art.clear()
        logger.info(f"Cleared {namespace.value} cache")

    def clear_all(self) -> None:
        for namespace in CacheNamespace:
            self.clear_namespace(namespace)

    def stats(self) -> CacheStats:
        if self.store is not None:
            return self.store.stats()
        fingerprints = self.fingerprints_session.size
        metadata = self.metadata.size
        lyrics = self.lyrics.size
        album_art = self.album_art.size
        return CacheStats(
            fingerprints=fingerprints,
            metadata=metadata,
            lyrics=lyrics,
            album_art=album_art,
            total_entries=fingerprints + metadata + lyrics + album_art,
            size_bytes=0,
            is_persistent=False,
        )

    def close(self) -> None:
        if self.store is not None:
            self.store.close()


def create_session_cache_set() -> CacheSet:
    """In-memory caches that live for the current run only."""
    return CacheSet(
        fingerprints_session=MemoryCache(path_key, name="fingerprints"),
        fingerprints_persistent=None,
        metadata=MemoryCache(recording_key, name="metadata"),
        lyrics=MemoryCache(lyrics_key, name="lyrics"),
        album_art=MemoryCache(album_art_key, name="album_art"),
    )


def create_cache_set(config: CacheStoreConfig | None) -> CacheSet:
    """Construct the cache set for *config*.

    Args:
        config: Store configuration, or None for session-only caches.

    Returns:
        A ``CacheSet``; when persistent, its store is already initialized.

    Raises:
        CacheStoreError: If the store cannot be opened.
        CacheSchemaError: If the store was written with another schema version.
    """
    if config is None:
        return create_session_cache_set()

    store = SQLiteCacheStore(config)
    store.initialize()
    logger.info(f"Using persistent cache at {store.path}")

    return CacheSet(
        fingerprints_session=MemoryCache(path_key, name="fingerprints"),
        fingerprints_persistent=PersistentFingerprintCache(
            store, FingerprintRecord, compute_content_identity
        ),
        metadata=PersistentCache(store, CacheNamespace.METADATA, RecordingMetadata, recording_key),
        lyrics=PersistentCache(store, CacheNamespace.LYRICS, LyricsResult, lyrics_key),
        album_art=PersistentCache(store, CacheNamespace.ALBUM_ART, AlbumArt, album_art_key),
        store=store,
    )
