"""Tests for the MusicBrainz metadata stage."""

from unittest.mock import AsyncMock

import pytest

from tunetrace.core.api.audio.models import MusicBrainzArtistCredit, MusicBrainzRecording
from tunetrace.core.api.http.errors import NotFoundError, RetryExhaustedError, ServerError
from tunetrace.core.audio.metadata.recording import MetadataStage
from tunetrace.core.caching.backends.memory import MemoryCache
from tunetrace.core.caching.keys import recording_key
from tunetrace.core.caching.models import MISS


def _not_found(mbid: str) -> NotFoundError:
    return NotFoundError(
        message="musicbrainz returned HTTP 404",
        method="GET",
        url=f"https://musicbrainz.org/ws/2/recording/{mbid}",
        service="musicbrainz",
        status_code=404,
    )


def _exhausted() -> RetryExhaustedError:
    cause = ServerError(message="503", method="GET", url="https://x", status_code=503)
    return RetryExhaustedError(
        message="musicbrainz request failed after 4 attempts",
        method="GET",
        url="https://x",
        service="musicbrainz",
        status_code=503,
        attempts=4,
        cause=cause,
    )


def _recording(mbid: str, title: str = "Yesterday") -> MusicBrainzRecording:
    return MusicBrainzRecording(
        id=mbid, title=title, artist_credits=[MusicBrainzArtistCredit(name="The Beatles")]
    )


@pytest.fixture
def musicbrainz():
    return AsyncMock()


@pytest.fixture
def stage(musicbrainz):
    return MetadataStage(musicbrainz=musicbrainz, cache=MemoryCache(recording_key, name="metadata"))


class TestFetchRecording:
    @pytest.mark.asyncio
    async def test_cached_after_first_fetch(self, stage, musicbrainz):
        musicbrainz.lookup_recording.return_value = _recording("rec-1")

        first = await stage.fetch_recording("rec-1")
        second = await stage.fetch_recording(" rec-1 ")

        assert first == second
        assert first.artist == "The Beatles"
        musicbrainz.lookup_recording.assert_awaited_once_with(mbid="rec-1")

    @pytest.mark.asyncio
    async def test_not_found_is_not_cached(self, stage, musicbrainz):
        musicbrainz.lookup_recording.side_effect = _not_found("gone")

        with pytest.raises(NotFoundError):
            await stage.fetch_recording("gone")

        assert stage.cache.get("gone") is MISS


class TestFetchMetadata:
    @pytest.mark.asyncio
    async def test_first_resolvable_id_wins(self, stage, musicbrainz):
        async def lookup(*, mbid):
            if mbid == "rec-404":
                raise _not_found(mbid)
            return _recording(mbid, title=f"Song {mbid}")

        musicbrainz.lookup_recording.side_effect = lookup

        metadata = await stage.fetch_metadata(["rec-404", "rec-2", "rec-3"])

        assert metadata.recording_id == "rec-2"
        assert musicbrainz.lookup_recording.await_count == 2

    @pytest.mark.asyncio
    async def test_duplicates_tried_once(self, stage, musicbrainz):
        musicbrainz.lookup_recording.side_effect = _not_found("rec-1")

        assert await stage.fetch_metadata(["rec-1", "rec-1"]) is None
        assert musicbrainz.lookup_recording.await_count == 1

    @pytest.mark.asyncio
    async def test_all_not_found_returns_none(self, stage, musicbrainz):
        musicbrainz.lookup_recording.side_effect = _not_found("x")

        assert await stage.fetch_metadata(["a", "b"]) is None

    @pytest.mark.asyncio
    async def test_empty_ids(self, stage, musicbrainz):
        assert await stage.fetch_metadata([]) is None
        musicbrainz.lookup_recording.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_later_id_recovers_from_failure(self, stage, musicbrainz):
        async def lookup(*, mbid):
            if mbid == "flaky":
                raise _exhausted()
            return _recording(mbid)

        musicbrainz.lookup_recording.side_effect = lookup

        metadata = await stage.fetch_metadata(["flaky", "rec-ok"])

        assert metadata.recording_id == "rec-ok"

    @pytest.mark.asyncio
    async def test_failure_raised_when_nothing_resolves(self, stage, musicbrainz):
        async def lookup(*, mbid):
            if mbid == "flaky":
                raise _exhausted()
            raise _not_found(mbid)

        musicbrainz.lookup_recording.side_effect = lookup

        with pytest.raises(RetryExhaustedError) as exc_info:
            await stage.fetch_metadata(["flaky", "missing"])

        assert exc_info.value.attempts == 4


class TestFetchRecordings:
    @pytest.mark.asyncio
    async def test_outcomes_per_id(self, stage, musicbrainz):
        async def lookup(*, mbid):
            if mbid == "missing":
                raise _not_found(mbid)
            if mbid == "flaky":
                raise _exhausted()
            return _recording(mbid)

        musicbrainz.lookup_recording.side_effect = lookup

        ok, missing, flaky = await stage.fetch_recordings(["rec-1", "missing", "flaky"])

        assert ok.ok and ok.value.recording_id == "rec-1"
        assert missing.ok and missing.value is None
        assert not flaky.ok
        assert isinstance(flaky.error, RetryExhaustedError)
