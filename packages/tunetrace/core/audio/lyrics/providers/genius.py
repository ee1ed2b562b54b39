"""Genius client (async).

Two steps per song:

1. Search the Genius API for the best matching song (requires an access token)
2. Fetch that song's web page and scrape the lyric blocks

API Docs: https://docs.genius.com/
"""

from __future__ import annotations

import logging
from typing import Any

from bs4 import BeautifulSoup, Comment
from pydantic import BaseModel, ConfigDict, ValidationError

from tunetrace.core.api.http.errors import (
    ApiError,
    AuthError,
    RateLimitError,
    RetryExhaustedError,
    malformed_response,
)
from tunetrace.core.api.http.retry import retry_after_from_headers
from tunetrace.core.audio.lyrics.providers.models import GeniusSearchResponse, ProviderLyrics

logger = logging.getLogger(__name__)

DEFAULT_RETRY_AFTER_S = 30.0


class GeniusSong(BaseModel):
    """Search hit chosen for scraping."""

    model_config = ConfigDict(frozen=True)

    url: str
    artist: str
    title: str


def extract_lyrics_from_html(page: str) -> str | None:
    """Scrape lyric text from a Genius song page.

    Every ``<div data-lyrics-container="true">`` block is collected,
    ``<br>`` becomes a newline and the remaining markup is flattened to
    text. Section chrome marked ``data-exclude-from-selection`` and HTML
    comments are dropped. Blocks are joined with a blank line.

    Returns:
        Lyric text, or None if the page has no lyric blocks
    """
    soup = BeautifulSoup(page, "html.parser")
    texts = []
    for container in soup.find_all("div", attrs={"data-lyrics-container": "true"}):
        for comment in container.find_all(string=lambda s: isinstance(s, Comment)):
            comment.extract()
        for chrome in container.find_all(attrs={"data-exclude-from-selection": "true"}):
            chrome.decompose()
        for br in container.find_all("br"):
            br.replace_with("\n")
        texts.append(container.get_text().replace("\xa0", " ").strip())

    return "\n\n".join(t for t in texts if t).strip() or None


class GeniusClient:
    """Genius client for plain lyrics.

    Search and page requests share the HTTP client, and so its rate limiter.

    Args:
        http_client: AsyncApiClient configured for the Genius API
        access_token: Genius client access token (from https://genius.com/api-clients)
    """

    BASE_URL = "https://api.genius.com"

    def __init__(self, *, http_client: Any, access_token: str | None):
        self.http_client = http_client
        self.access_token = access_token

    def _defer_after_rate_limit(self, error: RetryExhaustedError) -> None:
        limiter = getattr(self.http_client, "rate_limiter", None)
        if limiter is None:
            return
        # The HTTP client already deferred when Retry-After was present
        if retry_after_from_headers(error.response_headers) is None:
            limiter.defer(DEFAULT_RETRY_AFTER_S)

    async def search_song(self, *, artist: str, title: str) -> GeniusSong | None:
        """Best song hit for ``artist title``.

        Raises:
            AuthError: If the access token is invalid or expired
            RetryExhaustedError: If Genius kept rate limiting the search
            DecodeError: If the search body does not have the expected shape
        """
        if not self.access_token:
            logger.debug("Genius search requires access token (GENIUS_ACCESS_TOKEN)")
            return None

        headers = {
            "Authorization": f"Bearer {self.access_token}",
            "Accept": "application/json",
        }
        try:
            data = await self.http_client.get_json(
                "/search", params={"q": f"{artist} {title}"}, headers=headers
            )
        except AuthError:
            logger.error("Genius access token is invalid or expired")
            raise
        except RetryExhaustedError as e:
            if isinstance(e.cause, RateLimitError):
                self._defer_after_rate_limit(e)
                raise
            logger.warning(f"Genius search failed: {e}")
            return None
        except ApiError as e:
            logger.warning(f"Genius search failed: {e}")
            return None

        try:
            hits = GeniusSearchResponse.model_validate(data).response.hits
        except ValidationError as e:
            raise malformed_response("genius", "/search", e) from e

        song_hits = [hit for hit in hits if hit.type == "song" and hit.result is not None]
        logger.debug(f"Genius returned {len(hits)} hits, {len(song_hits)} songs")
        if not song_hits:
            return None

        # Genius orders hits by relevance
        best = song_hits[0].result
        if not best.url:
            return None
        return GeniusSong(
            url=best.url,
            artist=(best.primary_artist.name if best.primary_artist else None) or "",
            title=best.title or "",
        )

    async def fetch_page(self, url: str) -> str | None:
        """Scraped lyrics of a song page, or None on any failure."""
        try:
            page = await self.http_client.get_text(url, headers={"Accept": "text/html"})
        except ApiError as e:
            logger.debug(f"Genius page fetch failed for {url}: {e}")
            return None
        return extract_lyrics_from_html(page)

    async def fetch(self, *, artist: str, title: str) -> ProviderLyrics | None:
        if not self.access_token or not artist or not title:
            return None

        song = await self.search_song(artist=artist, title=title)
        if song is None:
            return None

        text = await self.fetch_page(song.url)
        if not text:
            return None
        return ProviderLyrics(text=text, artist=song.artist, title=song.title)
