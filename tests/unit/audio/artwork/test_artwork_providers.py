"""Tests for the album art provider clients."""

import httpx
import pytest

from tunetrace.core.api.http.errors import DecodeError, RetryExhaustedError
from tunetrace.core.audio.artwork.providers.audiodb import AudioDBClient
from tunetrace.core.audio.artwork.providers.coverartarchive import CoverArtArchiveClient
from tunetrace.core.audio.artwork.providers.deezer import DeezerClient, artist_matches

CAA_URL = "https://coverartarchive.org"
DEEZER_URL = "https://api.deezer.com"
AUDIODB_URL = "https://www.theaudiodb.com/api/v1/json/2"
RELEASE_ID = "1f9f8d7c-6b5a-4e3d-9c2b-1a0f9e8d7c6b"


class TestCoverArtArchive:
    @pytest.mark.asyncio
    async def test_front_cover(self, make_http_client, json_response) -> None:
        seen = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            return json_response(
                200,
                {
                    "images": [
                        {"front": False, "image": "https://caa.test/back.jpg"},
                        {"front": True, "approved": False, "image": "https://caa.test/pending.jpg"},
                        {"front": True, "approved": True, "image": "https://caa.test/front.jpg"},
                    ],
                    "release": f"https://musicbrainz.org/release/{RELEASE_ID}",
                },
            )

        async with make_http_client(handler, base_url=CAA_URL) as http:
            url = await CoverArtArchiveClient(http_client=http).front_cover(RELEASE_ID)

        assert url == "https://caa.test/front.jpg"
        assert seen[0].url.path == f"/release/{RELEASE_ID}"

    @pytest.mark.asyncio
    async def test_release_without_art(self, make_http_client) -> None:
        async with make_http_client(lambda r: httpx.Response(404), base_url=CAA_URL) as http:
            assert await CoverArtArchiveClient(http_client=http).front_cover(RELEASE_ID) is None

    @pytest.mark.asyncio
    async def test_no_front_image(self, make_http_client, json_response) -> None:
        def handler(request):
            return json_response(200, {"images": [{"front": False, "image": "https://x/b.jpg"}]})

        async with make_http_client(handler, base_url=CAA_URL) as http:
            assert await CoverArtArchiveClient(http_client=http).front_cover(RELEASE_ID) is None

    @pytest.mark.asyncio
    async def test_malformed_listing_is_decode_error(self, make_http_client, json_response) -> None:
        async with make_http_client(
            lambda r: json_response(200, {"images": "none"}), base_url=CAA_URL
        ) as http:
            with pytest.raises(DecodeError) as excinfo:
                await CoverArtArchiveClient(http_client=http).front_cover(RELEASE_ID)

        assert excinfo.value.service == "coverartarchive"


class TestDeezer:
    @pytest.mark.parametrize(
        "expected, actual, matches",
        [
            ("Queen", "Queen", True),
            ("AC/DC", "ACDC", True),
            ("Daft Punk", "Daft Punk feat. Pharrell Williams", True),
            ("Queen", "Muse", False),
            ("", "Queen", False),
        ],
    )
    def test_artist_matches(self, expected, actual, matches) -> None:
        assert artist_matches(expected, actual) is matches

    @pytest.mark.asyncio
    async def test_album_search_first(self, make_http_client, json_response) -> None:
        seen = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            return json_response(
                200,
                {"data": [{"title": "Jazz", "cover_big": "big.jpg", "cover": "small.jpg"}]},
            )

        async with make_http_client(handler, base_url=DEEZER_URL) as http:
            url = await DeezerClient(http_client=http).find_cover(
                artist="Queen", title="Mustapha", album="Jazz"
            )

        assert url == "big.jpg"
        assert [r.url.path for r in seen] == ["/search/album"]
        assert seen[0].url.params["q"] == "Queen Jazz"

    @pytest.mark.asyncio
    async def test_track_search_skips_other_artists(self, make_http_client, json_response) -> None:
        seen = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request.url.path)
            if request.url.path == "/search/album":
                return json_response(200, {"data": []})
            return json_response(
                200,
                {
                    "data": [
                        {"artist": {"name": "Cover Band"}, "album": {"cover_xl": "cover.jpg"}},
                        {"artist": {"name": "Queen"}, "album": {"cover_xl": "queen.jpg"}},
                    ]
                },
            )

        async with make_http_client(handler, base_url=DEEZER_URL) as http:
            url = await DeezerClient(http_client=http).find_cover(
                artist="Queen", title="Mustapha", album="Jazz"
            )

        assert url == "queen.jpg"
        assert seen == ["/search/album", "/search"]

    @pytest.mark.asyncio
    async def test_no_matching_artist(self, make_http_client, json_response) -> None:
        def handler(request):
            return json_response(
                200, {"data": [{"artist": {"name": "Muse"}, "album": {"cover": "m.jpg"}}]}
            )

        async with make_http_client(handler, base_url=DEEZER_URL) as http:
            client = DeezerClient(http_client=http)
            assert await client.find_cover(artist="Queen", title="Mustapha") is None

    @pytest.mark.asyncio
    async def test_error_body_is_no_result(self, make_http_client, json_response) -> None:
        def handler(request):
            return json_response(200, {"error": {"type": "Exception", "code": 4}})

        async with make_http_client(handler, base_url=DEEZER_URL) as http:
            client = DeezerClient(http_client=http)
            assert await client.find_cover(artist="Queen", title="Mustapha") is None

    @pytest.mark.asyncio
    async def test_malformed_body_is_decode_error(self, make_http_client, json_response) -> None:
        async with make_http_client(
            lambda r: json_response(200, {"data": [{"album": "oops"}]}), base_url=DEEZER_URL
        ) as http:
            with pytest.raises(DecodeError):
                await DeezerClient(http_client=http).find_cover(artist="Queen", title="Mustapha")

    @pytest.mark.asyncio
    async def test_missing_names_skip_network(self, make_http_client) -> None:
        calls = []

        def handler(request):
            calls.append(request)
            return httpx.Response(404)

        async with make_http_client(handler, base_url=DEEZER_URL) as http:
            assert await DeezerClient(http_client=http).find_cover(artist="", title="X") is None
        assert calls == []


class TestAudioDB:
    @pytest.mark.asyncio
    async def test_find_cover(self, make_http_client, json_response) -> None:
        seen = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            return json_response(
                200,
                {
                    "album": [
                        {"strAlbum": "Jazz", "strArtist": "Queen", "strAlbumThumb": None},
                        {"strAlbum": "Jazz", "strArtist": "Queen", "strAlbumThumb": "thumb.jpg"},
                    ]
                },
            )

        async with make_http_client(handler, base_url=AUDIODB_URL) as http:
            url = await AudioDBClient(http_client=http).find_cover(artist="Queen", album="Jazz")

        assert url == "thumb.jpg"
        assert seen[0].url.path == "/api/v1/json/2/searchalbum.php"
        assert seen[0].url.params["s"] == "Queen"
        assert seen[0].url.params["a"] == "Jazz"

    @pytest.mark.asyncio
    async def test_null_album_list(self, make_http_client, json_response) -> None:
        async with make_http_client(
            lambda r: json_response(200, {"album": None}), base_url=AUDIODB_URL
        ) as http:
            assert await AudioDBClient(http_client=http).find_cover(artist="A", album="B") is None

    @pytest.mark.asyncio
    async def test_needs_album(self, make_http_client) -> None:
        async with make_http_client(lambda r: httpx.Response(500), base_url=AUDIODB_URL) as http:
            assert await AudioDBClient(http_client=http).find_cover(artist="A", album=None) is None

    @pytest.mark.asyncio
    async def test_server_errors_propagate(self, make_http_client) -> None:
        async with make_http_client(lambda r: httpx.Response(500), base_url=AUDIODB_URL) as http:
            with pytest.raises(RetryExhaustedError):
                await AudioDBClient(http_client=http).find_cover(artist="A", album="B")
