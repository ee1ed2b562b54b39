"""Tests for MusicBrainz API client."""

from unittest.mock import AsyncMock

import pytest

from tunetrace.core.api.audio.models import MusicBrainzRecording
from tunetrace.core.api.audio.musicbrainz import MusicBrainzClient, MusicBrainzError
from tunetrace.core.api.http.errors import DecodeError, NotFoundError

RECORDING = {
    "id": "b1a9c0e9-d987-4042-ae91-78d6a3267d69",
    "title": "Bohemian Rhapsody",
    "length": 354947,
    "artist-credit": [
        {"name": "Queen", "joinphrase": "", "artist": {"id": "0383dadf", "name": "Queen"}}
    ],
    "releases": [
        {
            "id": "rel-1",
            "title": "A Night at the Opera",
            "status": "Official",
            "date": "1975-11-21",
            "country": "GB",
            "release-group": {"primary-type": "Album"},
        },
        {"id": "rel-2", "title": "Greatest Hits", "status": "Official"},
    ],
    "tags": [{"name": "rock", "count": 12}, {"name": "progressive rock", "count": "3"}],
}


class TestMusicBrainzClient:
    """Test MusicBrainzClient."""

    @pytest.fixture
    def mock_http_client(self):
        return AsyncMock()

    @pytest.fixture
    def client(self, mock_http_client):
        return MusicBrainzClient(http_client=mock_http_client, user_agent="tunetrace-tests/1.0")

    def test_init_requires_user_agent(self, mock_http_client):
        with pytest.raises(ValueError, match="user agent is required"):
            MusicBrainzClient(http_client=mock_http_client, user_agent="")

    @pytest.mark.asyncio
    async def test_lookup_recording(self, client, mock_http_client):
        mock_http_client.get_json.return_value = RECORDING

        recording = await client.lookup_recording(mbid=RECORDING["id"])

        path = mock_http_client.get_json.call_args[0][0]
        kwargs = mock_http_client.get_json.call_args[1]
        assert path == f"/recording/{RECORDING['id']}"
        assert kwargs["params"]["inc"] == "releases+artist-credits+tags+release-groups"
        assert kwargs["params"]["fmt"] == "json"
        assert kwargs["headers"]["User-Agent"] == "tunetrace-tests/1.0"

        assert isinstance(recording, MusicBrainzRecording)
        assert recording.title == "Bohemian Rhapsody"
        assert recording.length_ms == 354947
        assert [c.name for c in recording.artist_credits] == ["Queen"]
        assert recording.artist_credits[0].artist_id == "0383dadf"
        first, second = recording.releases
        assert first.primary_type == "Album"
        assert first.date == "1975-11-21"
        assert second.primary_type is None
        assert second.date is None
        assert [(t.name, t.count) for t in recording.tags] == [
            ("rock", 12),
            ("progressive rock", 3),
        ]

    @pytest.mark.asyncio
    async def test_missing_length_becomes_none(self, client, mock_http_client):
        mock_http_client.get_json.return_value = {"id": "x", "title": "Untimed", "length": None}

        recording = await client.lookup_recording(mbid="x")

        assert recording.length_ms is None
        assert recording.releases == []
        assert recording.artist_credits == []

    @pytest.mark.asyncio
    async def test_credit_name_falls_back_to_artist_name(self, client, mock_http_client):
        mock_http_client.get_json.return_value = {
            "id": "x",
            "title": "Duet",
            "artist-credit": [
                {"artist": {"id": "a1", "name": "First"}, "joinphrase": " feat. "},
                {"name": "Second"},
                {"joinphrase": "&"},
            ],
        }

        recording = await client.lookup_recording(mbid="x")

        assert [c.name for c in recording.artist_credits] == ["First", "Second"]
        assert recording.artist_credits[0].joinphrase == " feat. "

    @pytest.mark.asyncio
    async def test_invalid_body_raises(self, client, mock_http_client):
        mock_http_client.get_json.return_value = {"title": "no id"}

        with pytest.raises(MusicBrainzError, match="missing 'id' or 'title'"):
            await client.lookup_recording(mbid="x")

    @pytest.mark.asyncio
    async def test_not_found_propagates(self, client, mock_http_client):
        mock_http_client.get_json.side_effect = NotFoundError(
            message="musicbrainz returned HTTP 404",
            method="GET",
            url="https://musicbrainz.org/ws/2/recording/x",
            status_code=404,
        )

        with pytest.raises(NotFoundError):
            await client.lookup_recording(mbid="x")

    @pytest.mark.asyncio
    async def test_search_releases(self, client, mock_http_client):
        mock_http_client.get_json.return_value = {
            "count": 3,
            "releases": [
                {
                    "id": "rel-1",
                    "title": "A Night at the Opera",
                    "score": 100,
                    "status": "Official",
                    "release-group": {"primary-type": "Album"},
                },
                {"id": "", "title": "no id", "score": 90},
                {"id": "rel-2", "title": "A Night at the Opera", "score": "bad"},
                "junk",
            ],
        }

        matches = await client.search_releases(artist='Queen "UK"', album="A Night at the Opera")

        kwargs = mock_http_client.get_json.call_args[1]
        assert mock_http_client.get_json.call_args[0][0] == "/release"
        assert kwargs["params"]["query"] == (
            'artist:"Queen \\"UK\\"" AND release:"A Night at the Opera"'
        )
        assert kwargs["params"]["limit"] == "5"
        assert [(m.id, m.score, m.primary_type) for m in matches] == [("rel-1", 100, "Album")]

    @pytest.mark.asyncio
    async def test_search_releases_without_list_is_decode_error(self, client, mock_http_client):
        mock_http_client.get_json.return_value = {"error": "busy"}

        with pytest.raises(DecodeError) as excinfo:
            await client.search_releases(artist="Queen", album="Jazz")

        assert excinfo.value.service == "musicbrainz"
