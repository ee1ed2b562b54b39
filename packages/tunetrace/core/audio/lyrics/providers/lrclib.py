"""LRCLib API client (async).

LRCLib is free and needs no authentication. Two lookups are offered: an
exact ``/get`` by artist and title, and a fuzzy ``/search``.

API Docs: https://lrclib.net/docs
"""

import logging
from typing import Any

from pydantic import ValidationError

from tunetrace.core.api.http.errors import NotFoundError, malformed_response
from tunetrace.core.audio.lyrics.cleanup import validate_lyrics_match
from tunetrace.core.audio.lyrics.providers.models import LRCLibTrack, ProviderLyrics

logger = logging.getLogger(__name__)


class LRCLibClient:
    """LRCLib client for plain lyrics.

    Args:
        http_client: AsyncApiClient configured for the LRCLib service
    """

    BASE_URL = "https://lrclib.net/api"

    def __init__(self, *, http_client: Any):
        self.http_client = http_client

    @staticmethod
    def _params(artist: str, title: str) -> dict[str, str]:
        return {"track_name": title, "artist_name": artist}

    async def get(self, *, artist: str, title: str) -> ProviderLyrics | None:
        """Exact-match lookup.

        Returns:
            The matched track, or None if LRCLib has no such track

        Raises:
            DecodeError: If the body is not a track record
            ApiError: Any other failure except 404
        """
        try:
            data = await self.http_client.get_json("/get", params=self._params(artist, title))
        except NotFoundError:
            logger.debug(f"LRCLib has no exact match for '{artist} - {title}'")
            return None

        try:
            return LRCLibTrack.model_validate(data).to_lyrics()
        except ValidationError as e:
            raise malformed_response("lrclib", "/get", e) from e

    async def search(self, *, artist: str, title: str) -> ProviderLyrics | None:
        """Fuzzy search.

        Only non-instrumental results with plain lyrics are considered. The
        first one whose artist/title matches the query wins; otherwise the
        first usable result is returned unvalidated. Malformed entries are
        skipped.

        Raises:
            DecodeError: If the body is not a list
            ApiError: Any other failure except 404
        """
        try:
            data = await self.http_client.get_json("/search", params=self._params(artist, title))
        except NotFoundError:
            return None

        if not isinstance(data, list):
            raise malformed_response(
                "lrclib", "/search", TypeError(f"expected a list, got {type(data).__name__}")
            )

        usable: list[LRCLibTrack] = []
        for item in data:
            try:
                track = LRCLibTrack.model_validate(item)
            except ValidationError as e:
                logger.debug(f"Skipping malformed LRCLib search entry: {e}")
                continue
            if not track.instrumental and track.plain_lyrics:
                usable.append(track)

        logger.debug(f"LRCLib search returned {len(data)} results, {len(usable)} with lyrics")
        if not usable:
            return None

        for track in usable:
            if validate_lyrics_match(artist, title, track.artist_name, track.track_name):
                return track.to_lyrics()
        return usable[0].to_lyrics()
