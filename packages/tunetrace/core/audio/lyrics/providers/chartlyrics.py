"""ChartLyrics API client (async).

ChartLyrics is a free SOAP/REST service. Fetching lyrics takes two calls:

1. ``SearchLyric`` (artist, song) → candidates with ``LyricId``/``LyricChecksum``
2. ``GetLyric`` (lyricId, lyricCheckSum) → the lyric text

Responses are XML; JSON bodies are accepted too when the server sends them.
"""

from __future__ import annotations

import logging
import xml.etree.ElementTree as ET
from typing import Any

import httpx

from tunetrace.core.api.http.errors import DecodeError, NotFoundError
from tunetrace.core.audio.lyrics.cleanup import validate_lyrics_match
from tunetrace.core.audio.lyrics.providers.models import ProviderLyrics

logger = logging.getLogger(__name__)


def _local_name(tag: str) -> str:
    return tag.rsplit("}", 1)[-1]


def _element_fields(element: ET.Element) -> dict[str, str]:
    return {_local_name(child.tag): (child.text or "").strip() for child in element}


class ChartLyricsClient:
    """ChartLyrics client for plain lyrics.

    Args:
        http_client: AsyncApiClient configured for the ChartLyrics service
    """

    BASE_URL = "http://api.chartlyrics.com/apiv1.asmx"
    SEARCH_PATH = "/SearchLyric"
    LYRIC_PATH = "/GetLyric"

    def __init__(self, *, http_client: Any):
        self.http_client = http_client

    def _records(self, response: httpx.Response) -> list[dict[str, str]]:
        """Flatten a response into a list of field dicts.

        Raises:
            DecodeError: If the body is neither JSON nor well-formed XML
        """
        if not response.content:
            return []

        if "json" in response.headers.get("content-type", ""):
            data = self.http_client.json(response)
            if isinstance(data, dict):
                data = [data]
            if not isinstance(data, list):
                return []
            return [
                {k: "" if v is None else str(v).strip() for k, v in item.items()}
                for item in data
                if isinstance(item, dict)
            ]

        try:
            root = ET.fromstring(response.content)
        except ET.ParseError as e:
            raise DecodeError(
                message=f"Malformed XML from ChartLyrics: {e}",
                method=response.request.method,
                url=str(response.request.url),
                service="chartlyrics",
                status_code=response.status_code,
                cause=e,
            ) from e

        if _local_name(root.tag).startswith("ArrayOf"):
            # Empty trailing entries come back as <SearchLyricResult xsi:nil="true"/>
            return [_element_fields(child) for child in root if len(child)]
        return [_element_fields(root)]

    async def search(self, *, artist: str, title: str) -> list[dict[str, str]]:
        """Search candidates that can be fetched with ``GetLyric``."""
        try:
            response = await self.http_client.get(
                self.SEARCH_PATH, params={"artist": artist, "song": title}
            )
        except NotFoundError:
            return []

        return [
            record
            for record in self._records(response)
            if record.get("LyricId", "0") not in ("", "0") and record.get("LyricChecksum")
        ]

    async def get_lyric(self, *, lyric_id: str, checksum: str) -> ProviderLyrics | None:
        try:
            response = await self.http_client.get(
                self.LYRIC_PATH, params={"lyricId": lyric_id, "lyricCheckSum": checksum}
            )
        except NotFoundError:
            return None

        records = self._records(response)
        if not records:
            return None
        record = records[0]
        return ProviderLyrics(
            text=record.get("Lyric", ""),
            artist=record.get("LyricArtist", ""),
            title=record.get("LyricSong", ""),
        )

    async def fetch(self, *, artist: str, title: str) -> ProviderLyrics | None:
        """Search, then fetch the best candidate's lyric.

        The first candidate whose artist/song matches the query is preferred;
        otherwise the first candidate is used.

        Raises:
            ApiError: Transport/HTTP failures other than 404
        """
        candidates = await self.search(artist=artist, title=title)
        logger.debug(f"ChartLyrics search returned {len(candidates)} candidates")
        if not candidates:
            return None

        best = next(
            (
                c
                for c in candidates
                if validate_lyrics_match(artist, title, c.get("Artist"), c.get("Song"))
            ),
            candidates[0],
        )
        lyrics = await self.get_lyric(lyric_id=best["LyricId"], checksum=best["LyricChecksum"])
        if lyrics is None:
            return None

        # GetLyric sometimes omits artist/song; fall back to the search entry
        return ProviderLyrics(
            text=lyrics.text,
            artist=lyrics.artist or best.get("Artist", ""),
            title=lyrics.title or best.get("Song", ""),
        )
