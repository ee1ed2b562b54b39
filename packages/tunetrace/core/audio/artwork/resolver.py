"""Album art fallback resolver.

Provider order:
1. Cover Art Archive by MusicBrainz release ID
2. Deezer (album search, then track search)
3. TheAudioDB album search
4. Cover Art Archive for a release found by MusicBrainz search on artist and album

Album art is best-effort: a provider failure of any kind is logged and the
next provider is tried, and nothing is ever raised for it. "No art anywhere"
is cached only when every provider answered without failing.
"""

from __future__ import annotations

import logging
from collections.abc import Awaitable, Callable, Iterable

from tunetrace.core.api.audio.models import MusicBrainzReleaseMatch
from tunetrace.core.api.audio.musicbrainz import MusicBrainzClient
from tunetrace.core.api.http.errors import ApiError
from tunetrace.core.audio.artwork.providers.audiodb import AudioDBClient
from tunetrace.core.audio.artwork.providers.coverartarchive import CoverArtArchiveClient
from tunetrace.core.audio.artwork.providers.deezer import DeezerClient
from tunetrace.core.audio.models import (
    UNKNOWN_ARTIST,
    AlbumArt,
    AlbumArtImage,
    AlbumArtSource,
    RecordingMetadata,
)
from tunetrace.core.caching.models import Hit, HitAbsent
from tunetrace.core.caching.protocols import Cache

logger = logging.getLogger(__name__)

DEFAULT_MIN_RELEASE_SCORE = 80

ArtStep = tuple[str, Callable[[str | None, str, str | None, str], Awaitable[AlbumArt | None]]]


def select_release(
    matches: Iterable[MusicBrainzReleaseMatch], *, min_score: int = DEFAULT_MIN_RELEASE_SCORE
) -> str | None:
    """Release ID to ask the Cover Art Archive about.

    Among hits scoring at least ``min_score``: an official album first, then
    any official release, then the first hit. MusicBrainz returns hits best
    first.
    """
    scored = [m for m in matches if m.score >= min_score]
    official = [m for m in scored if (m.status or "").lower() == "official"]
    for match in official:
        if (match.primary_type or "").lower() == "album":
            return match.id
    if official:
        return official[0].id
    return scored[0].id if scored else None


class AlbumArtResolver:
    """Resolve a front cover through the provider chain, with caching.

    Args:
        coverartarchive: Cover Art Archive client
        cache: Album art cache keyed by ``(release_id, artist, album, title)``
        musicbrainz: MusicBrainz client for the release search, or None to skip it
        deezer: Deezer client, or None to skip that provider
        audiodb: TheAudioDB client, or None to skip that provider
        min_release_score: Minimum MusicBrainz search score for a release
    """

    def __init__(
        self,
        *,
        coverartarchive: CoverArtArchiveClient,
        cache: Cache,
        musicbrainz: MusicBrainzClient | None = None,
        deezer: DeezerClient | None = None,
        audiodb: AudioDBClient | None = None,
        min_release_score: int = DEFAULT_MIN_RELEASE_SCORE,
    ):
        self.coverartarchive = coverartarchive
        self.musicbrainz = musicbrainz
        self.deezer = deezer
        self.audiodb = audiodb
        self.cache = cache
        self.min_release_score = min_release_score

    def _steps(self) -> list[ArtStep]:
        steps: list[ArtStep] = [("coverartarchive", self._from_release)]
        if self.deezer is not None:
            steps.append(("deezer", self._from_deezer))
        if self.audiodb is not None:
            steps.append(("audiodb", self._from_audiodb))
        if self.musicbrainz is not None:
            steps.append(("coverartarchive search", self._from_release_search))
        return steps

    async def _from_release(
        self, release_id: str | None, artist: str, album: str | None, title: str
    ) -> AlbumArt | None:
        if not release_id:
            return None
        url = await self.coverartarchive.front_cover(release_id)
        if not url:
            return None
        return AlbumArt(url=url, source=AlbumArtSource.COVER_ART_ARCHIVE, release_id=release_id)

    async def _from_deezer(
        self, release_id: str | None, artist: str, album: str | None, title: str
    ) -> AlbumArt | None:
        url = await self.deezer.find_cover(artist=artist, title=title, album=album)
        return AlbumArt(url=url, source=AlbumArtSource.DEEZER) if url else None

    async def _from_audiodb(
        self, release_id: str | None, artist: str, album: str | None, title: str
    ) -> AlbumArt | None:
        url = await self.audiodb.find_cover(artist=artist, album=album)
        return AlbumArt(url=url, source=AlbumArtSource.AUDIODB) if url else None

    async def _from_release_search(
        self, release_id: str | None, artist: str, album: str | None, title: str
    ) -> AlbumArt | None:
        if not artist or not album:
            return None
        matches = await self.musicbrainz.search_releases(artist=artist, album=album)
        found = select_release(matches, min_score=self.min_release_score)
        if found is None or found == release_id:
            return None
        logger.debug(f"MusicBrainz release search picked {found} for '{artist} - {album}'")
        return await self._from_release(found, artist, album, title)

    async def fetch_album_art(
        self,
        *,
        release_id: str | None = None,
        artist: str = "",
        album: str | None = None,
        title: str = "",
    ) -> AlbumArt | None:
        """Front cover for a release or song, or None when no provider has one.

        Needs a release ID, or an artist plus an album or title; otherwise
        returns None without touching the cache or the network. Never raises
        for provider failures.
        """
        release_id = (release_id or "").strip() or None
        artist = (artist or "").strip()
        album = (album or "").strip() or None
        title = (title or "").strip()
        if release_id is None and not (artist and (album or title)):
            return None

        key = (release_id, artist, album, title)
        cached = self.cache.get(key)
        if isinstance(cached, Hit):
            logger.debug(f"Album art cache hit: {release_id or f'{artist} - {album or title}'}")
            return cached.value
        if isinstance(cached, HitAbsent):
            return None

        failed = False
        for name, step in self._steps():
            try:
                art = await step(release_id, artist, album, title)
            except ApiError as e:
                logger.warning(f"Album art provider {name} failed: {e}")
                failed = True
                continue
            except Exception as e:
                logger.warning(
                    f"Album art provider {name} raised {type(e).__name__}: {e}", exc_info=True
                )
                failed = True
                continue

            if art is None:
                logger.debug(f"Album art provider {name}: nothing found")
                continue

            logger.info(f"Album art found via {name}: {art.url}")
            self.cache.set(key, art)
            return art

        if failed:
            logger.info("No album art found; not caching after provider failures")
            return None
        logger.info(f"No album art found for {release_id or f'{artist} - {album or title}'}")
        self.cache.set(key, None)
        return None

    async def fetch_for_metadata(self, metadata: RecordingMetadata) -> AlbumArt | None:
        """Front cover for resolved recording metadata."""
        artist = "" if metadata.artist == UNKNOWN_ARTIST else metadata.artist
        return await self.fetch_album_art(
            release_id=metadata.release_id,
            artist=artist,
            album=metadata.album,
            title=metadata.title,
        )

    async def fetch_image(self, art: AlbumArt) -> AlbumArtImage | None:
        """Download the image behind ``art``, or None on any HTTP failure.

        Images are not cached.
        """
        try:
            response = await self.coverartarchive.http_client.get(art.url)
        except ApiError as e:
            logger.warning(f"Album art download failed for {art.url}: {e}")
            return None
        if not response.content:
            return None
        mime_type = response.headers.get("content-type", "").split(";")[0].strip()
        return AlbumArtImage(data=response.content, mime_type=mime_type or "image/jpeg")
