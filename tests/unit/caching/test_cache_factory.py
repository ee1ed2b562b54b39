"""Tests for cache set construction."""

from tunetrace.core.audio.models import (
    AlbumArt,
    AlbumArtSource,
    FingerprintRecord,
    LyricsResult,
    LyricsSource,
    RecordingMetadata,
)
from tunetrace.core.caching.backends.memory import MemoryCache
from tunetrace.core.caching.factory import create_cache_set, create_session_cache_set
from tunetrace.core.caching.keys import make_album_art_key
from tunetrace.core.caching.models import HIT_ABSENT, MISS, CacheNamespace, Hit
from tunetrace.core.caching.persistent import PersistentCache


def _fill(caches, audio_file) -> None:
    record = FingerprintRecord(duration_s=10.0)
    caches.fingerprints_session.set(audio_file, record)
    if caches.fingerprints_persistent is not None:
        caches.fingerprints_persistent.set(audio_file, record)
    caches.metadata.set("rec-1", RecordingMetadata(recording_id="rec-1", title="Song"))
    caches.lyrics.set(
        ("Artist", "Song"), LyricsResult(text="la la", source=LyricsSource.GENIUS, validated=True)
    )


class TestSessionCacheSet:
    def test_session_only(self):
        caches = create_session_cache_set()

        assert not caches.is_persistent
        assert caches.fingerprints_persistent is None
        assert isinstance(caches.metadata, MemoryCache)

    def test_stats_and_clear(self, audio_file):
        caches = create_cache_set(None)
        _fill(caches, audio_file)

        stats = caches.stats()
        assert (stats.fingerprints, stats.metadata, stats.lyrics) == (1, 1, 1)
        assert stats.total_entries == 3
        assert stats.size_bytes == 0
        assert not stats.is_persistent

        caches.clear_namespace(CacheNamespace.LYRICS)
        assert caches.stats().lyrics == 0
        assert caches.stats().metadata == 1

        caches.clear_all()
        assert caches.stats().total_entries == 0


class TestPersistentCacheSet:
    def test_persistent(self, store_config, audio_file):
        caches = create_cache_set(store_config)
        try:
            assert caches.is_persistent
            assert isinstance(caches.metadata, PersistentCache)
            _fill(caches, audio_file)

            stats = caches.stats()
            assert (stats.fingerprints, stats.metadata, stats.lyrics) == (1, 1, 1)
            assert stats.is_persistent

            caches.clear_namespace(CacheNamespace.FINGERPRINTS)
            assert caches.fingerprints_session.get(audio_file) is MISS
            assert caches.stats().fingerprints == 0
        finally:
            caches.close()

    def test_values_survive_new_session(self, store_config):
        first = create_cache_set(store_config)
        first.metadata.set("rec-1", RecordingMetadata(recording_id="rec-1", title="Song"))
        first.close()

        second = create_cache_set(store_config)
        try:
            assert second.metadata.get("rec-1") == Hit(
                value=RecordingMetadata(recording_id="rec-1", title="Song")
            )
        finally:
            second.close()


class TestAlbumArtCache:
    ART = AlbumArt(url="https://caa.test/front.jpg", source=AlbumArtSource.COVER_ART_ARCHIVE)

    def test_key_prefers_release_id(self):
        assert make_album_art_key(" rel-1 ", "Queen", "Jazz", "Mustapha") == "rel-1"
        assert make_album_art_key(None, " Queen", "Jazz ", "Mustapha") == "queen|jazz"
        assert make_album_art_key("", "Queen", None, "Mustapha") == "queen|mustapha"

    def test_session_namespace(self):
        caches = create_session_cache_set()
        caches.album_art.set(("rel-1", "", None, ""), self.ART)
        caches.album_art.set((None, "Queen", "Jazz", ""), None)

        assert caches.stats().album_art == 2
        assert caches.stats().total_entries == 2

        caches.clear_namespace(CacheNamespace("album_art"))
        assert caches.stats().album_art == 0

    def test_persistent_namespace(self, store_config):
        first = create_cache_set(store_config)
        first.album_art.set(("rel-1", "", None, ""), self.ART)
        first.album_art.set((None, "Queen", "Jazz", "Mustapha"), None)
        first.close()

        second = create_cache_set(store_config)
        try:
            assert second.album_art.get(("rel-1", "Other", None, "")) == Hit(value=self.ART)
            assert second.album_art.get((None, "queen", "jazz", "")) is HIT_ABSENT
            assert second.stats().album_art == 2
        finally:
            second.close()
