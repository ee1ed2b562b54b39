"""Lyrics fallback resolver.

Provider order:
1. LRCLib exact match
2. LRCLib fuzzy search
3. ChartLyrics (search, then fetch)
4. Genius (only with an access token)

The first provider producing non-empty text after cleanup wins. Provider
failures are logged and skipped; "no lyrics anywhere" is cached like any
other answer.
"""

from __future__ import annotations

import logging
from collections.abc import Awaitable, Callable, Iterable

from tunetrace.core.api.http.errors import ApiError
from tunetrace.core.audio.lyrics.cleanup import LyricsCleaner, validate_lyrics_match
from tunetrace.core.audio.lyrics.providers.chartlyrics import ChartLyricsClient
from tunetrace.core.audio.lyrics.providers.genius import GeniusClient
from tunetrace.core.audio.lyrics.providers.lrclib import LRCLibClient
from tunetrace.core.audio.lyrics.providers.models import ProviderLyrics
from tunetrace.core.audio.models import BatchOutcome, LyricsResult, LyricsSource
from tunetrace.core.caching.keys import make_lyrics_key
from tunetrace.core.caching.models import CacheStoreError, Hit, HitAbsent
from tunetrace.core.caching.protocols import Cache

logger = logging.getLogger(__name__)

# (name, source, call, best_effort). A best-effort step never raises out of the chain.
ProviderStep = tuple[
    str, LyricsSource, Callable[[str, str], Awaitable[ProviderLyrics | None]], bool
]


class LyricsResolver:
    """Resolve lyrics through the provider chain, with caching.

    Args:
        lrclib: LRCLib client (exact match and search)
        cache: Lyrics cache keyed by ``(artist, title)``
        chartlyrics: ChartLyrics client, or None to skip that provider
        genius: Genius client, or None to skip that provider
        cleaner: Text cleaner (defaults to the built-in boilerplate patterns)
    """

    def __init__(
        self,
        *,
        lrclib: LRCLibClient,
        cache: Cache,
        chartlyrics: ChartLyricsClient | None = None,
        genius: GeniusClient | None = None,
        cleaner: LyricsCleaner | None = None,
    ):
        self.lrclib = lrclib
        self.chartlyrics = chartlyrics
        self.genius = genius
        self.cache = cache
        self.cleaner = cleaner or LyricsCleaner()

    def _steps(self) -> list[ProviderStep]:
        lrclib = self.lrclib
        steps: list[ProviderStep] = [
            (
                "lrclib exact",
                LyricsSource.LRCLIB,
                lambda a, t: lrclib.get(artist=a, title=t),
                False,
            ),
            (
                "lrclib search",
                LyricsSource.LRCLIB,
                lambda a, t: lrclib.search(artist=a, title=t),
                False,
            ),
        ]
        if self.chartlyrics is not None:
            chartlyrics = self.chartlyrics
            steps.append(
                (
                    "chartlyrics",
                    LyricsSource.CHARTLYRICS,
                    lambda a, t: chartlyrics.fetch(artist=a, title=t),
                    False,
                )
            )
        if self.genius is not None and self.genius.access_token:
            genius = self.genius
            steps.append(
                (
                    "genius",
                    LyricsSource.GENIUS,
                    lambda a, t: genius.fetch(artist=a, title=t),
                    True,
                )
            )
        return steps

    async def fetch_lyrics(self, artist: str, title: str) -> LyricsResult | None:
        """Lyrics for ``artist``/``title``, or None when no provider has them.

        Blank artist or title short-circuits to None without touching the
        cache or the network. Never raises for provider failures.
        """
        if not artist or not title or not artist.strip() or not title.strip():
            return None

        artist = artist.strip()
        title = title.strip()
        key = (artist, title)

        cached = self.cache.get(key)
        if isinstance(cached, Hit):
            logger.debug(f"Lyrics cache hit: {artist} - {title}")
            return cached.value
        if isinstance(cached, HitAbsent):
            logger.debug(f"Lyrics cache hit (none found before): {artist} - {title}")
            return None

        for name, source, call, best_effort in self._steps():
            try:
                found = await call(artist, title)
            except ApiError as e:
                logger.warning(f"Lyrics provider {name} failed for '{artist} - {title}': {e}")
                continue
            except Exception as e:
                if not best_effort:
                    raise
                logger.warning(
                    f"Lyrics provider {name} raised {type(e).__name__} for "
                    f"'{artist} - {title}': {e}",
                    exc_info=True,
                )
                continue

            if found is None or not found.usable:
                logger.debug(f"Lyrics provider {name}: nothing usable")
                continue

            text = self.cleaner.clean(found.text)
            if not text:
                logger.debug(f"Lyrics provider {name}: empty after cleanup")
                continue

            result = LyricsResult(
                text=text,
                source=source,
                validated=validate_lyrics_match(artist, title, found.artist, found.title),
            )
            logger.info(
                f"Lyrics found via {name} for '{artist} - {title}'"
                + ("" if result.validated else " (unvalidated match)")
            )
            self.cache.set(key, result)
            return result

        logger.info(f"No lyrics found for '{artist} - {title}'")
        self.cache.set(key, None)
        return None

    async def fetch_lyrics_many(
        self, songs: Iterable[tuple[str, str]]
    ) -> list[BatchOutcome[LyricsResult]]:
        """Fetch lyrics for several songs, one at a time, in input order.

        Outcomes are keyed by the normalized ``artist|title`` key.
        """
        outcomes: list[BatchOutcome[LyricsResult]] = []
        for artist, title in songs:
            key = make_lyrics_key(artist or "", title or "")
            try:
                result = await self.fetch_lyrics(artist, title)
            except CacheStoreError as e:
                logger.warning(f"Lyrics lookup failed for '{artist} - {title}': {e}")
                outcomes.append(BatchOutcome(key=key, error=e))
            else:
                outcomes.append(BatchOutcome(key=key, value=result))
        return outcomes
