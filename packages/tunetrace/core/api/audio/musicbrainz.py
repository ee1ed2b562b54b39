"""MusicBrainz API client.

Client for the MusicBrainz music metadata database.
Uses the framework async HTTP client for rate limiting and retries.

MusicBrainz Rate Limiting:
- Limit: 1 request per second
- A descriptive User-Agent is mandatory
- See: https://musicbrainz.org/doc/MusicBrainz_API/Rate_Limiting
"""

import logging
from typing import Any

from pydantic import ValidationError

from tunetrace.core.api.audio.models import (
    MusicBrainzArtistCredit,
    MusicBrainzRecording,
    MusicBrainzRelease,
    MusicBrainzReleaseMatch,
    MusicBrainzTag,
)
from tunetrace.core.api.http.errors import DecodeError, malformed_response

logger = logging.getLogger(__name__)


class MusicBrainzError(DecodeError):
    """MusicBrainz returned a recording body that cannot be used."""


class MusicBrainzClient:
    """MusicBrainz API client (async).

    Rate Limiting:
        MusicBrainz enforces 1 request/second for anonymous clients. The
        http_client's RateLimiter is expected to carry that interval.

    Args:
        http_client: AsyncApiClient configured for the MusicBrainz service
        user_agent: User agent string (required by MusicBrainz)

    Example:
        >>> client = MusicBrainzClient(http_client=http, user_agent="app/1.0 (me@example.com)")
        >>> recording = await client.lookup_recording(mbid="...")
        >>> print(recording.title, [c.name for c in recording.artist_credits])
    """

    API_BASE_URL = "https://musicbrainz.org/ws/2"
    INCLUDES = "releases+artist-credits+tags+release-groups"

    def __init__(self, http_client: Any, user_agent: str | None):
        """Initialize MusicBrainz client.

        Raises:
            ValueError: If user_agent is empty or None
        """
        if not user_agent:
            raise ValueError("MusicBrainz user agent is required")

        self.http_client = http_client
        self.user_agent = user_agent

    async def lookup_recording(self, *, mbid: str) -> MusicBrainzRecording:
        """Look up recording by MusicBrainz ID (async).

        Args:
            mbid: MusicBrainz recording ID (MBID)

        Returns:
            MusicBrainzRecording with credits, releases and tags

        Raises:
            NotFoundError: If MusicBrainz has no recording with this MBID
            MusicBrainzError: If the response is missing required fields
            ApiError: Other transport/HTTP failures
        """
        params = {"inc": self.INCLUDES, "fmt": "json"}
        headers = {"User-Agent": self.user_agent, "Accept": "application/json"}

        logger.debug(f"MusicBrainz lookup: mbid={mbid}")
        data = await self.http_client.get_json(
            f"/recording/{mbid}", params=params, headers=headers
        )
        return self._parse_recording(data, mbid=mbid)

    async def search_releases(
        self, *, artist: str, album: str, limit: int = 5
    ) -> list[MusicBrainzReleaseMatch]:
        """Search releases by artist and release title, best match first.

        Raises:
            DecodeError: If the body has no usable ``releases`` list
            ApiError: Transport/HTTP failures
        """
        query = f'artist:"{_lucene_phrase(artist)}" AND release:"{_lucene_phrase(album)}"'
        params = {"query": query, "limit": str(limit), "fmt": "json"}
        headers = {"User-Agent": self.user_agent, "Accept": "application/json"}

        logger.debug(f"MusicBrainz release search: {query}")
        data = await self.http_client.get_json("/release", params=params, headers=headers)
        releases = data.get("releases") if isinstance(data, dict) else None
        if not isinstance(releases, list):
            raise malformed_response(
                "musicbrainz", f"{self.API_BASE_URL}/release", TypeError("no releases list")
            )

        matches = []
        for item in releases:
            if not isinstance(item, dict):
                continue
            group = item.get("release-group")
            try:
                matches.append(
                    MusicBrainzReleaseMatch(
                        id=item.get("id") or "",
                        title=item.get("title") or "",
                        score=int(item.get("score") or 0),
                        status=item.get("status"),
                        primary_type=group.get("primary-type") if isinstance(group, dict) else None,
                    )
                )
            except (TypeError, ValueError) as e:
                logger.debug(f"Skipping invalid release search hit: {e}")
        return matches

    def _parse_recording(self, data: Any, *, mbid: str) -> MusicBrainzRecording:
        """Parse MusicBrainz recording response.

        Raises:
            MusicBrainzError: If response is invalid or missing required fields
        """
        if not isinstance(data, dict) or "id" not in data or "title" not in data:
            raise MusicBrainzError(
                message="Invalid response from MusicBrainz: missing 'id' or 'title' field",
                method="GET",
                url=f"{self.API_BASE_URL}/recording/{mbid}",
                service="musicbrainz",
            )

        length_ms = data.get("length")
        if not isinstance(length_ms, int) or length_ms <= 0:
            length_ms = None

        return MusicBrainzRecording(
            id=data["id"],
            title=data["title"],
            length_ms=length_ms,
            artist_credits=self._parse_artist_credit(data.get("artist-credit") or []),
            releases=self._parse_releases(data.get("releases") or []),
            tags=self._parse_tags(data.get("tags") or []),
        )

    def _parse_artist_credit(self, artist_credit: list[Any]) -> list[MusicBrainzArtistCredit]:
        """Parse artist credit list, keeping credit order."""
        credits = []
        for item in artist_credit:
            if not isinstance(item, dict):
                continue
            artist = item.get("artist") if isinstance(item.get("artist"), dict) else {}
            name = item.get("name") or artist.get("name")
            if not name:
                continue
            credits.append(
                MusicBrainzArtistCredit(
                    name=name,
                    artist_id=artist.get("id"),
                    joinphrase=item.get("joinphrase") or "",
                )
            )
        return credits

    def _parse_releases(self, releases: list[Any]) -> list[MusicBrainzRelease]:
        parsed = []
        for release_data in releases:
            if not isinstance(release_data, dict):
                continue
            group = release_data.get("release-group")
            try:
                parsed.append(
                    MusicBrainzRelease(
                        id=release_data.get("id", ""),
                        title=release_data.get("title", ""),
                        status=release_data.get("status"),
                        primary_type=group.get("primary-type") if isinstance(group, dict) else None,
                        date=release_data.get("date") or None,
                        country=release_data.get("country"),
                    )
                )
            except ValidationError as e:
                logger.warning(f"Skipping invalid release: {e}")
        return parsed

    def _parse_tags(self, tags: list[Any]) -> list[MusicBrainzTag]:
        return [
            MusicBrainzTag(name=tag["name"], count=int(tag.get("count") or 0))
            for tag in tags
            if isinstance(tag, dict) and tag.get("name")
        ]


def _lucene_phrase(value: str) -> str:
    """Escape a value for use inside a quoted Lucene phrase."""
    return value.replace("\\", "\\\\").replace('"', '\\"')
