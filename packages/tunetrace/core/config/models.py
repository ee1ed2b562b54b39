"""Configuration models for tunetrace."""

from __future__ import annotations

import os
import sys
from pathlib import Path

from pydantic import BaseModel, ConfigDict, Field

from tunetrace.core.api.http.config import DEFAULT_USER_AGENT
from tunetrace.core.audio.lyrics.cleanup import DEFAULT_BOILERPLATE_PATTERNS


def default_cache_db_path() -> Path:
    """Platform default location of the persistent cache database."""
    if sys.platform == "win32":
        base = os.environ.get("APPDATA")
        root = Path(base) if base else Path.home() / "AppData" / "Roaming"
    else:
        root = Path.home() / ".config"
    return root / "tunetrace" / "cache.db"


class ConfigBase(BaseModel):
    """Base for file-backed configuration models.

    Subclasses name their default location via ``default_path()``.
    """

    model_config = ConfigDict(extra="ignore")

    @classmethod
    def default_path(cls) -> Path:
        raise NotImplementedError(f"{cls.__name__} must implement default_path()")


class ServicesConfig(BaseModel):
    """Upstream service endpoints and credentials."""

    model_config = ConfigDict(extra="ignore")

    acoustid_api_key: str | None = Field(
        default=None, description="AcoustID application key (or ACOUSTID_API_KEY env var)"
    )
    genius_access_token: str | None = Field(
        default=None, description="Genius client access token (or GENIUS_ACCESS_TOKEN env var)"
    )
    user_agent: str = Field(
        default=DEFAULT_USER_AGENT,
        min_length=1,
        description="Client identifier sent to every provider (MusicBrainz requires one)",
    )

    acoustid_base_url: str = "https://api.acoustid.org/v2"
    musicbrainz_base_url: str = "https://musicbrainz.org/ws/2"
    lrclib_base_url: str = "https://lrclib.net/api"
    chartlyrics_base_url: str = "http://api.chartlyrics.com/apiv1.asmx"
    genius_base_url: str = "https://api.genius.com"
    coverartarchive_base_url: str = "https://coverartarchive.org"
    deezer_base_url: str = "https://api.deezer.com"
    audiodb_base_url: str = "https://www.theaudiodb.com/api/v1/json/2"

    http_timeout_s: float = Field(default=10.0, gt=0.0, description="HTTP request timeout")
    genius_timeout_s: float = Field(default=12.0, gt=0.0, description="Genius request timeout")


class RateLimitConfig(BaseModel):
    """Minimum seconds between requests, per upstream service (0 = unlimited)."""

    model_config = ConfigDict(extra="ignore")

    acoustid_interval_s: float = Field(default=0.334, ge=0.0, description="~3 requests/second")
    musicbrainz_interval_s: float = Field(default=1.1, ge=0.0, description="~1 request/second")
    genius_interval_s: float = Field(default=2.0, ge=0.0, description="~30 requests/minute")
    lrclib_interval_s: float = Field(default=0.0, ge=0.0)
    chartlyrics_interval_s: float = Field(default=0.0, ge=0.0)
    coverartarchive_interval_s: float = Field(default=0.0, ge=0.0)
    deezer_interval_s: float = Field(default=0.3, ge=0.0, description="~3 requests/second")
    audiodb_interval_s: float = Field(default=0.5, ge=0.0, description="~2 requests/second")


class RetryConfig(BaseModel):
    """Backoff settings. Delay before retry n is ``base_delay_s * 2**(n-1)``."""

    model_config = ConfigDict(extra="ignore")

    max_retries: int = Field(default=3, ge=0, description="Retries for identification/metadata")
    base_delay_s: float = Field(default=1.0, ge=0.0)
    lyrics_max_retries: int = Field(default=2, ge=0, description="Retries for lyrics providers")
    lyrics_base_delay_s: float = Field(default=0.5, ge=0.0)
    artwork_max_retries: int = Field(default=1, ge=0, description="Retries for album art")
    artwork_base_delay_s: float = Field(default=2.0, ge=0.0)


class IdentificationConfig(BaseModel):
    model_config = ConfigDict(extra="ignore")

    min_score: float = Field(
        default=0.0, ge=0.0, le=1.0, description="Discard AcoustID matches scoring below this"
    )
    fpcalc_path: str | None = Field(
        default=None, description="Path to the fpcalc binary (auto-detected when unset)"
    )
    fpcalc_timeout_s: float = Field(default=30.0, gt=0.0)


class MetadataConfig(BaseModel):
    model_config = ConfigDict(extra="ignore")

    min_tag_count: int = Field(default=1, ge=0, description="Minimum tag votes to keep a genre")


class LyricsConfig(BaseModel):
    """Lyrics provider selection and text cleanup."""

    model_config = ConfigDict(extra="ignore")

    skip_chartlyrics: bool = Field(default=False, description="Skip the ChartLyrics fallback")
    skip_genius: bool = Field(default=False, description="Skip Genius even with a token")
    boilerplate_patterns: list[str] = Field(
        default_factory=lambda: list(DEFAULT_BOILERPLATE_PATTERNS),
        description="Regexes for whole lines stripped from lyrics (case-insensitive)",
    )


class ArtworkConfig(BaseModel):
    """Album art provider selection."""

    model_config = ConfigDict(extra="ignore")

    enabled: bool = Field(default=True, description="Look up front covers in resolve_file")
    skip_deezer: bool = False
    skip_audiodb: bool = False
    skip_release_search: bool = Field(
        default=False, description="Skip the MusicBrainz release search for Cover Art Archive"
    )
    min_release_score: int = Field(
        default=80, ge=0, le=100, description="Minimum MusicBrainz search score for a release"
    )


class CacheConfig(BaseModel):
    model_config = ConfigDict(extra="ignore")

    persistent: bool = Field(
        default=True, description="Keep results across sessions (False = session memory only)"
    )
    db_path: Path = Field(default_factory=default_cache_db_path)
    enable_wal: bool = True
    schema_version: str = "1.0.0"


class LoggingConfig(BaseModel):
    """Logging configuration."""

    level: str = Field(default="INFO", pattern="^(DEBUG|INFO|WARNING|ERROR|CRITICAL)$")
    format: str = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


class AppConfig(ConfigBase):
    """Application-level configuration."""

    model_config = ConfigDict(extra="ignore")
    services: ServicesConfig = ServicesConfig()
    rate_limits: RateLimitConfig = RateLimitConfig()
    retry: RetryConfig = RetryConfig()
    identification: IdentificationConfig = IdentificationConfig()
    metadata: MetadataConfig = MetadataConfig()
    lyrics: LyricsConfig = LyricsConfig()
    artwork: ArtworkConfig = ArtworkConfig()
    cache: CacheConfig = CacheConfig()
    logging: LoggingConfig = LoggingConfig()

    @classmethod
    def default_path(cls) -> Path:
        """Default path for application config."""
        return Path("config.json")

    @classmethod
    def load_or_default(cls, path: Path | str | None = None) -> AppConfig:
        """Like ``load_app_config``: a missing file yields defaults plus env credentials."""
        from tunetrace.core.config.loader import load_app_config

        return load_app_config(path)
