"""Configuration loading: JSON/YAML files, env credentials, logging setup."""

from __future__ import annotations

import json
import logging
import os
from collections.abc import Callable
from pathlib import Path
from typing import IO, Any

import yaml

from tunetrace.core.config.models import AppConfig

logger = logging.getLogger(__name__)

_PARSERS: dict[str, tuple[Callable[[IO[str]], Any], type[Exception], str]] = {
    "json": (json.load, json.JSONDecodeError, "JSON"),
    "yaml": (yaml.safe_load, yaml.YAMLError, "YAML"),
}

_SUFFIX_FORMATS = {".json": "json", ".yaml": "yaml", ".yml": "yaml"}

# Service credential -> env vars, preferred first. Later names are deprecated.
_CREDENTIAL_ENV_VARS: dict[str, tuple[str, ...]] = {
    "acoustid_api_key": ("ACOUSTID_API_KEY",),
    "genius_access_token": ("GENIUS_ACCESS_TOKEN", "GENIUS_CLIENT_TOKEN"),
}

_default_config: AppConfig | None = None


def detect_format(file_path: Path | str) -> str:
    """Config format for a file, by extension.

    Raises:
        ValueError: If the extension is not .json, .yaml or .yml

    Example:
        >>> detect_format("tunetrace.yml")
        'yaml'
    """
    suffix = Path(file_path).suffix.lower()
    try:
        return _SUFFIX_FORMATS[suffix]
    except KeyError:
        raise ValueError(f"Unsupported config format: {suffix or '(none)'}") from None


def load_config(path: str | Path) -> dict[str, Any]:
    """Read a JSON or YAML config file into a dict.

    An empty file yields ``{}``.

    Raises:
        FileNotFoundError: If the file does not exist
        ValueError: On an unsupported extension, unparsable content, or a
            document whose root is not a mapping
    """
    path = Path(path)
    if not path.is_file():
        raise FileNotFoundError(f"Config file does not exist: {path}")

    parse, parse_error, label = _PARSERS[detect_format(path)]
    with path.open("r", encoding="utf-8") as f:
        try:
            content = parse(f)
        except parse_error as e:
            raise ValueError(f"Invalid {label} in {path}: {e}") from e

    if content is None:
        return {}
    if not isinstance(content, dict):
        raise ValueError(f"Config root in {path} must be a mapping, got {type(content).__name__}")
    return content


def load_app_config(path: str | Path | None = None) -> AppConfig:
    """Load, validate and complete the application config.

    A missing file means all defaults. Credentials left unset are filled from
    the environment. The config loaded from the default path is cached until
    ``reset_app_config_cache()``.

    Raises:
        ValidationError: If the file content is invalid
    """
    global _default_config

    default_path = AppConfig.default_path()
    is_default = path is None or Path(path) == default_path
    if is_default and _default_config is not None:
        return _default_config

    source = default_path if path is None else Path(path)
    if source.exists():
        config = AppConfig.model_validate(load_config(source))
        logger.debug(f"Loaded config from {source}")
    else:
        config = AppConfig()

    config.services = config.services.model_copy(update=_credentials_from_env(config))

    if is_default:
        _default_config = config
    return config


def reset_app_config_cache() -> None:
    global _default_config
    _default_config = None


def configure_logging(config: AppConfig | None = None) -> None:
    """Apply ``config.logging`` to the root logger (loads the default config if None)."""
    settings = (config or load_app_config()).logging
    logging.basicConfig(level=getattr(logging, settings.level), format=settings.format, force=True)


def _credentials_from_env(config: AppConfig) -> dict[str, str]:
    found: dict[str, str] = {}
    for field, env_vars in _CREDENTIAL_ENV_VARS.items():
        if getattr(config.services, field) is not None:
            continue
        for index, env_var in enumerate(env_vars):
            value = os.getenv(env_var)
            if not value:
                continue
            if index > 0:
                logger.warning(f"Using deprecated {env_var}. Please rename to {env_vars[0]}")
            else:
                logger.debug(f"Loaded {env_var} from environment")
            found[field] = value
            break
    return found
