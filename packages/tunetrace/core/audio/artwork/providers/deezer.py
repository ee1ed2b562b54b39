"""Deezer search client (async).

No authentication. An album search runs first when the album name is
known; a track search by artist and title is the fallback, and its hits
are checked against the expected artist so a cover version's artwork is
not picked up.

API Docs: https://developers.deezer.com/api/search
"""

import logging
import re
from typing import Any

from pydantic import BaseModel, ValidationError

from tunetrace.core.api.http.errors import NotFoundError, malformed_response
from tunetrace.core.audio.artwork.providers.models import DeezerAlbumSearch, DeezerTrackSearch

logger = logging.getLogger(__name__)

_NON_ALNUM_RE = re.compile(r"[^a-z0-9]")


def normalize_artist(name: str) -> str:
    """Lowercase alphanumerics only.

    Example:
        >>> normalize_artist("AC/DC")
        'acdc'
    """
    return _NON_ALNUM_RE.sub("", name.lower())


def artist_matches(expected: str, actual: str) -> bool:
    """Either normalized name contains the other ("feat." credits, abbreviations)."""
    exp = normalize_artist(expected)
    act = normalize_artist(actual)
    if not exp or not act:
        return False
    return exp in act or act in exp


class DeezerClient:
    """Deezer client for album cover URLs.

    Args:
        http_client: AsyncApiClient configured for the Deezer API
    """

    BASE_URL = "https://api.deezer.com"

    def __init__(self, *, http_client: Any):
        self.http_client = http_client

    async def _search(self, path: str, query: str, model: type[BaseModel]) -> Any:
        try:
            data = await self.http_client.get_json(path, params={"q": query})
        except NotFoundError:
            return None
        if isinstance(data, dict) and data.get("error"):
            # Deezer reports quota and query errors with HTTP 200
            logger.warning(f"Deezer search failed: {data['error']}")
            return None
        try:
            return model.model_validate(data or {})
        except ValidationError as e:
            raise malformed_response("deezer", path, e) from e

    async def search_album(self, *, artist: str, album: str) -> str | None:
        """Cover of the first album hit for ``artist album``."""
        result = await self._search("/search/album", f"{artist} {album}", DeezerAlbumSearch)
        if result is None or not result.data:
            return None
        return result.data[0].best_cover

    async def search_track(self, *, artist: str, title: str) -> str | None:
        """Album cover of the first track hit credited to ``artist``.

        Hits without an artist name are accepted as they are.
        """
        result = await self._search("/search", f"{artist} {title}", DeezerTrackSearch)
        if result is None:
            return None
        for track in result.data:
            credited = track.artist.name if track.artist else None
            if credited and not artist_matches(artist, credited):
                continue
            return track.album.best_cover if track.album else None
        return None

    async def find_cover(self, *, artist: str, title: str, album: str | None = None) -> str | None:
        """Best cover URL for the song, or None.

        Raises:
            DecodeError: If a search body has the wrong shape
            ApiError: Any other failure except 404
        """
        if not artist or not title:
            return None

        if album:
            url = await self.search_album(artist=artist, album=album)
            if url:
                return url
            logger.debug(f"Deezer album search found nothing for '{artist} - {album}'")

        return await self.search_track(artist=artist, title=title)
