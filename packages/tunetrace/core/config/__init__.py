"""Configuration management for tunetrace."""

from tunetrace.core.config.loader import (
    configure_logging,
    load_app_config,
    load_config,
)
from tunetrace.core.config.models import (
    AppConfig,
    CacheConfig,
    IdentificationConfig,
    LoggingConfig,
    LyricsConfig,
    MetadataConfig,
    RateLimitConfig,
    RetryConfig,
    ServicesConfig,
)

__all__ = [
    # Loaders
    "load_config",
    "load_app_config",
    "configure_logging",
    # App-level config
    "AppConfig",
    "ServicesConfig",
    "RateLimitConfig",
    "RetryConfig",
    "IdentificationConfig",
    "MetadataConfig",
    "LyricsConfig",
    "CacheConfig",
    "LoggingConfig",
]
