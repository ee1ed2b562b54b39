"""Resolution pipeline facade.

Composes the identification, metadata, lyrics and album art stages with one
rate limiter and one HTTP client per upstream service, and the cache set for
the run. This is the library surface consumed by batch runners and UIs.

Example:
    >>> async with MetadataPipeline.from_config(load_app_config()) as pipeline:
    ...     record = await pipeline.identify_file("song.mp3")
    ...     ids = [rid for c in record.candidates for rid in c.recording_ids]
    ...     metadata = await pipeline.fetch_metadata(ids)
    ...     lyrics = await pipeline.fetch_lyrics(metadata.artist, metadata.title)
"""

from __future__ import annotations

import contextlib
import logging
from collections.abc import Iterable
from pathlib import Path

import httpx
from pydantic import BaseModel, ConfigDict

from tunetrace.core.api.audio.acoustid import AcoustIDClient
from tunetrace.core.api.audio.musicbrainz import MusicBrainzClient
from tunetrace.core.api.http.client import AsyncApiClient
from tunetrace.core.api.http.config import HttpClientConfig
from tunetrace.core.api.http.rate_limit import RateLimiter
from tunetrace.core.api.http.retry import RetryPolicy
from tunetrace.core.audio.artwork.providers.audiodb import AudioDBClient
from tunetrace.core.audio.artwork.providers.coverartarchive import CoverArtArchiveClient
from tunetrace.core.audio.artwork.providers.deezer import DeezerClient
from tunetrace.core.audio.artwork.resolver import AlbumArtResolver
from tunetrace.core.audio.lyrics.cleanup import LyricsCleaner
from tunetrace.core.audio.lyrics.providers.chartlyrics import ChartLyricsClient
from tunetrace.core.audio.lyrics.providers.genius import GeniusClient
from tunetrace.core.audio.lyrics.providers.lrclib import LRCLibClient
from tunetrace.core.audio.lyrics.resolver import LyricsResolver
from tunetrace.core.audio.metadata.fingerprint import run_fpcalc
from tunetrace.core.audio.metadata.identification import Fingerprinter, IdentificationStage
from tunetrace.core.audio.metadata.recording import MetadataStage
from tunetrace.core.audio.models import (
    AlbumArt,
    AlbumArtImage,
    BatchOutcome,
    FingerprintRecord,
    IdentificationCandidate,
    LyricsResult,
    RecordingMetadata,
)
from tunetrace.core.caching.factory import CacheSet, create_cache_set
from tunetrace.core.caching.models import CacheNamespace, CacheStats, CacheStoreConfig
from tunetrace.core.config.models import AppConfig

logger = logging.getLogger(__name__)


class ResolvedTrack(BaseModel):
    """Everything the pipeline learned about one file."""

    model_config = ConfigDict(frozen=True)

    path: str
    identification: FingerprintRecord
    metadata: RecordingMetadata | None = None
    lyrics: LyricsResult | None = None
    album_art: AlbumArt | None = None


def _retry_policy(max_retries: int, base_delay_s: float) -> RetryPolicy:
    return RetryPolicy(
        max_retries=max_retries,
        base_delay_s=base_delay_s,
        max_delay_s=max(60.0, base_delay_s),
    )


class MetadataPipeline:
    """Identification → metadata → lyrics and album art, with shared limiters and caches.

    Args:
        metadata: Metadata stage
        lyrics: Lyrics resolver
        album_art: Album art resolver, or None when album art is disabled
        caches: Cache set for this run
        identification: Identification stage, or None when no AcoustID key is configured
        http_clients: HTTP clients owned by the pipeline, closed by ``aclose()``
    """

    def __init__(
        self,
        *,
        metadata: MetadataStage,
        lyrics: LyricsResolver,
        caches: CacheSet,
        album_art: AlbumArtResolver | None = None,
        identification: IdentificationStage | None = None,
        http_clients: Iterable[AsyncApiClient] = (),
    ):
        self.identification = identification
        self.metadata = metadata
        self.lyrics = lyrics
        self.album_art = album_art
        self.caches = caches
        self._http_clients = list(http_clients)

    @classmethod
    def from_config(
        cls,
        config: AppConfig | None = None,
        *,
        transport: httpx.AsyncBaseTransport | None = None,
        fingerprinter: Fingerprinter = run_fpcalc,
        caches: CacheSet | None = None,
    ) -> MetadataPipeline:
        """Build a pipeline from application config.

        Args:
            config: Application config (all defaults when None)
            transport: HTTPX transport for every client (tests inject a mock)
            fingerprinter: Fingerprint coroutine (defaults to fpcalc)
            caches: Pre-built cache set (otherwise built from ``config.cache``)

        Raises:
            CacheStoreError: If the persistent cache cannot be opened
        """
        config = config or AppConfig()
        services = config.services
        limits = config.rate_limits
        retry = config.retry

        if caches is None:
            store_config = (
                CacheStoreConfig(
                    db_path=config.cache.db_path,
                    enable_wal=config.cache.enable_wal,
                    schema_version=config.cache.schema_version,
                )
                if config.cache.persistent
                else None
            )
            caches = create_cache_set(store_config)

        metadata_retry = _retry_policy(retry.max_retries, retry.base_delay_s)
        lyrics_retry = _retry_policy(retry.lyrics_max_retries, retry.lyrics_base_delay_s)

        def _client(
            service: str, base_url: str, interval_s: float, policy: RetryPolicy, timeout_s: float
        ) -> AsyncApiClient:
            return AsyncApiClient(
                HttpClientConfig.for_service(
                    service, base_url, timeout_s=timeout_s, user_agent=services.user_agent
                ),
                rate_limiter=RateLimiter(interval_s, name=service),
                retry_policy=policy,
                transport=transport,
            )

        timeout_s = services.http_timeout_s
        musicbrainz_http = _client(
            "musicbrainz",
            services.musicbrainz_base_url,
            limits.musicbrainz_interval_s,
            metadata_retry,
            timeout_s,
        )
        lrclib_http = _client(
            "lrclib", services.lrclib_base_url, limits.lrclib_interval_s, lyrics_retry, timeout_s
        )
        http_clients = [musicbrainz_http, lrclib_http]

        identification = None
        if services.acoustid_api_key:
            acoustid_http = _client(
                "acoustid",
                services.acoustid_base_url,
                limits.acoustid_interval_s,
                metadata_retry,
                timeout_s,
            )
            http_clients.append(acoustid_http)
            identification = IdentificationStage(
                acoustid=AcoustIDClient(services.acoustid_api_key, acoustid_http),
                session_cache=caches.fingerprints_session,
                persistent_cache=caches.fingerprints_persistent,
                min_score=config.identification.min_score,
                fpcalc_path=config.identification.fpcalc_path,
                fpcalc_timeout_s=config.identification.fpcalc_timeout_s,
                fingerprinter=fingerprinter,
            )
        else:
            logger.warning("No AcoustID API key configured; identification is disabled")

        chartlyrics = None
        if not config.lyrics.skip_chartlyrics:
            chartlyrics_http = _client(
                "chartlyrics",
                services.chartlyrics_base_url,
                limits.chartlyrics_interval_s,
                lyrics_retry,
                timeout_s,
            )
            http_clients.append(chartlyrics_http)
            chartlyrics = ChartLyricsClient(http_client=chartlyrics_http)

        genius = None
        if services.genius_access_token and not config.lyrics.skip_genius:
            genius_http = _client(
                "genius",
                services.genius_base_url,
                limits.genius_interval_s,
                lyrics_retry,
                services.genius_timeout_s,
            )
            http_clients.append(genius_http)
            genius = GeniusClient(
                http_client=genius_http, access_token=services.genius_access_token
            )

        musicbrainz = MusicBrainzClient(musicbrainz_http, services.user_agent)

        album_art = None
        artwork = config.artwork
        if artwork.enabled:
            art_retry = _retry_policy(retry.artwork_max_retries, retry.artwork_base_delay_s)
            coverart_http = _client(
                "coverartarchive",
                services.coverartarchive_base_url,
                limits.coverartarchive_interval_s,
                art_retry,
                timeout_s,
            )
            http_clients.append(coverart_http)

            deezer = None
            if not artwork.skip_deezer:
                deezer_http = _client(
                    "deezer",
                    services.deezer_base_url,
                    limits.deezer_interval_s,
                    art_retry,
                    timeout_s,
                )
                http_clients.append(deezer_http)
                deezer = DeezerClient(http_client=deezer_http)

            audiodb = None
            if not artwork.skip_audiodb:
                audiodb_http = _client(
                    "audiodb",
                    services.audiodb_base_url,
                    limits.audiodb_interval_s,
                    art_retry,
                    timeout_s,
                )
                http_clients.append(audiodb_http)
                audiodb = AudioDBClient(http_client=audiodb_http)

            album_art = AlbumArtResolver(
                coverartarchive=CoverArtArchiveClient(http_client=coverart_http),
                cache=caches.album_art,
                musicbrainz=None if artwork.skip_release_search else musicbrainz,
                deezer=deezer,
                audiodb=audiodb,
                min_release_score=artwork.min_release_score,
            )

        return cls(
            identification=identification,
            metadata=MetadataStage(
                musicbrainz=musicbrainz,
                cache=caches.metadata,
                min_tag_count=config.metadata.min_tag_count,
            ),
            lyrics=LyricsResolver(
                lrclib=LRCLibClient(http_client=lrclib_http),
                chartlyrics=chartlyrics,
                genius=genius,
                cache=caches.lyrics,
                cleaner=LyricsCleaner(config.lyrics.boilerplate_patterns),
            ),
            album_art=album_art,
            caches=caches,
            http_clients=http_clients,
        )

    # ------------------------------------------------------------------
    # Resolution
    # ------------------------------------------------------------------

    def _require_identification(self) -> IdentificationStage:
        if self.identification is None:
            raise ValueError("AcoustID API key is required for identification")
        return self.identification

    async def identify(self, fingerprint: str, duration_s: float) -> list[IdentificationCandidate]:
        return await self._require_identification().identify(fingerprint, duration_s)

    async def identify_file(self, path: str | Path) -> FingerprintRecord:
        return await self._require_identification().identify_file(path)

    async def identify_files(
        self, paths: Iterable[str | Path]
    ) -> list[BatchOutcome[FingerprintRecord]]:
        return await self._require_identification().identify_files(paths)

    async def fetch_metadata(self, recording_ids: Iterable[str]) -> RecordingMetadata | None:
        return await self.metadata.fetch_metadata(recording_ids)

    async def fetch_recordings(
        self, recording_ids: Iterable[str]
    ) -> list[BatchOutcome[RecordingMetadata]]:
        return await self.metadata.fetch_recordings(recording_ids)

    async def fetch_lyrics(self, artist: str, title: str) -> LyricsResult | None:
        return await self.lyrics.fetch_lyrics(artist, title)

    async def fetch_lyrics_many(
        self, songs: Iterable[tuple[str, str]]
    ) -> list[BatchOutcome[LyricsResult]]:
        return await self.lyrics.fetch_lyrics_many(songs)

    async def fetch_album_art(
        self,
        *,
        release_id: str | None = None,
        artist: str = "",
        album: str | None = None,
        title: str = "",
    ) -> AlbumArt | None:
        """Front cover location, or None (also when album art is disabled)."""
        if self.album_art is None:
            return None
        return await self.album_art.fetch_album_art(
            release_id=release_id, artist=artist, album=album, title=title
        )

    async def fetch_album_art_image(self, art: AlbumArt) -> AlbumArtImage | None:
        if self.album_art is None:
            return None
        return await self.album_art.fetch_image(art)

    async def resolve_file(
        self, path: str | Path, *, with_lyrics: bool = True, with_album_art: bool = True
    ) -> ResolvedTrack:
        """Run the whole chain for one file, stage by stage.

        Raises:
            ChromaprintError, OSError, ApiError: From identification or metadata
        """
        record = await self.identify_file(path)
        recording_ids = [rid for c in record.candidates for rid in c.recording_ids]
        metadata = await self.fetch_metadata(recording_ids) if recording_ids else None

        lyrics = None
        if with_lyrics and metadata is not None:
            lyrics = await self.fetch_lyrics(metadata.artist, metadata.title)

        album_art = None
        if with_album_art and metadata is not None and self.album_art is not None:
            album_art = await self.album_art.fetch_for_metadata(metadata)

        return ResolvedTrack(
            path=str(path),
            identification=record,
            metadata=metadata,
            lyrics=lyrics,
            album_art=album_art,
        )

    # ------------------------------------------------------------------
    # Cache management
    # ------------------------------------------------------------------

    def clear_all(self) -> None:
        self.caches.clear_all()

    def clear_namespace(self, namespace: CacheNamespace | str) -> None:
        """Empty one cache namespace ("fingerprints", "metadata", "lyrics" or "album_art").

        Raises:
            ValueError: For an unknown namespace name
        """
        self.caches.clear_namespace(CacheNamespace(namespace))

    def get_stats(self) -> CacheStats:
        return self.caches.stats()

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    async def aclose(self) -> None:
        """Close HTTP clients and the persistent store.

        Every resource is closed even if an earlier one fails; the failure
        is re-raised afterwards.
        """
        async with contextlib.AsyncExitStack() as stack:
            stack.callback(self.caches.close)
            for client in self._http_clients:
                stack.push_async_callback(client.aclose)

    async def __aenter__(self) -> MetadataPipeline:
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.aclose()
