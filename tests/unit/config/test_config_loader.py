"""Tests for configuration loading."""

import json
import logging
from pathlib import Path

import pytest
from pydantic import ValidationError

from tunetrace.core.config import (
    AppConfig,
    configure_logging,
    load_app_config,
    load_config,
)
from tunetrace.core.config.loader import detect_format, reset_app_config_cache
from tunetrace.core.config.models import default_cache_db_path


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for var in ("ACOUSTID_API_KEY", "GENIUS_ACCESS_TOKEN", "GENIUS_CLIENT_TOKEN"):
        monkeypatch.delenv(var, raising=False)
    reset_app_config_cache()
    yield
    reset_app_config_cache()


class TestDetectFormat:
    @pytest.mark.parametrize(
        ("name", "fmt"),
        [("config.json", "json"), ("config.yaml", "yaml"), ("CONFIG.YML", "yaml")],
    )
    def test_known_formats(self, name, fmt):
        assert detect_format(name) == fmt

    def test_unknown_format(self):
        with pytest.raises(ValueError, match="Unsupported config format"):
            detect_format("config.toml")


class TestLoadConfig:
    def test_json(self, tmp_path: Path):
        path = tmp_path / "config.json"
        path.write_text(json.dumps({"metadata": {"min_tag_count": 3}}))

        assert load_config(path) == {"metadata": {"min_tag_count": 3}}

    def test_yaml(self, tmp_path: Path):
        path = tmp_path / "config.yaml"
        path.write_text("lyrics:\n  skip_genius: true\n")

        assert load_config(path) == {"lyrics": {"skip_genius": True}}

    def test_empty_yaml_is_empty_mapping(self, tmp_path: Path):
        path = tmp_path / "config.yml"
        path.write_text("")

        assert load_config(path) == {}

    def test_missing_file(self, tmp_path: Path):
        with pytest.raises(FileNotFoundError):
            load_config(tmp_path / "nope.json")

    def test_invalid_json(self, tmp_path: Path):
        path = tmp_path / "config.json"
        path.write_text("{not json")

        with pytest.raises(ValueError, match="Invalid JSON"):
            load_config(path)

    def test_non_mapping_root(self, tmp_path: Path):
        path = tmp_path / "config.yaml"
        path.write_text("- a\n- b\n")

        with pytest.raises(ValueError, match="must be a mapping"):
            load_config(path)


class TestLoadAppConfig:
    def test_defaults_when_file_missing(self, tmp_path: Path):
        config = load_app_config(tmp_path / "missing.json")

        assert config.services.acoustid_api_key is None
        assert config.rate_limits.musicbrainz_interval_s == 1.1
        assert config.rate_limits.acoustid_interval_s == pytest.approx(0.334)
        assert config.retry.max_retries == 3
        assert config.cache.persistent
        assert config.lyrics.boilerplate_patterns
        assert config.artwork.enabled
        assert config.artwork.min_release_score == 80
        assert config.rate_limits.deezer_interval_s == 0.3

    def test_yaml_values(self, tmp_path: Path):
        path = tmp_path / "tunetrace.yaml"
        path.write_text(
            "services:\n"
            "  acoustid_api_key: from-file\n"
            "  user_agent: my-app/2.0 (me@example.com)\n"
            "identification:\n"
            "  min_score: 0.5\n"
            "artwork:\n"
            "  skip_deezer: true\n"
            "  min_release_score: 90\n"
            "cache:\n"
            "  persistent: false\n"
            f"  db_path: {tmp_path / 'cache.db'}\n"
            "unknown_section:\n"
            "  ignored: true\n"
        )

        config = load_app_config(path)

        assert config.services.acoustid_api_key == "from-file"
        assert config.services.user_agent == "my-app/2.0 (me@example.com)"
        assert config.identification.min_score == 0.5
        assert config.artwork.skip_deezer
        assert config.artwork.min_release_score == 90
        assert not config.cache.persistent
        assert config.cache.db_path == tmp_path / "cache.db"

    def test_invalid_values_rejected(self, tmp_path: Path):
        path = tmp_path / "config.json"
        path.write_text(json.dumps({"identification": {"min_score": 2.0}}))

        with pytest.raises(ValidationError):
            load_app_config(path)

    def test_env_vars_fill_missing_credentials(self, tmp_path: Path, monkeypatch):
        monkeypatch.setenv("ACOUSTID_API_KEY", "env-key")
        monkeypatch.setenv("GENIUS_ACCESS_TOKEN", "env-token")

        config = load_app_config(tmp_path / "missing.json")

        assert config.services.acoustid_api_key == "env-key"
        assert config.services.genius_access_token == "env-token"

    def test_file_value_beats_env(self, tmp_path: Path, monkeypatch):
        monkeypatch.setenv("ACOUSTID_API_KEY", "env-key")
        path = tmp_path / "config.json"
        path.write_text(json.dumps({"services": {"acoustid_api_key": "file-key"}}))

        assert load_app_config(path).services.acoustid_api_key == "file-key"

    def test_legacy_genius_token_warns(self, tmp_path: Path, monkeypatch, caplog):
        monkeypatch.setenv("GENIUS_CLIENT_TOKEN", "legacy-token")

        with caplog.at_level(logging.WARNING, logger="tunetrace.core.config.loader"):
            config = load_app_config(tmp_path / "missing.json")

        assert config.services.genius_access_token == "legacy-token"
        assert "deprecated GENIUS_CLIENT_TOKEN" in caplog.text

    def test_default_path_is_cached(self, tmp_path: Path, monkeypatch):
        monkeypatch.chdir(tmp_path)
        (tmp_path / "config.json").write_text(json.dumps({"metadata": {"min_tag_count": 5}}))

        first = load_app_config()
        (tmp_path / "config.json").write_text(json.dumps({"metadata": {"min_tag_count": 9}}))

        assert load_app_config() is first
        reset_app_config_cache()
        assert load_app_config().metadata.min_tag_count == 9

    def test_load_or_default(self, tmp_path: Path):
        path = tmp_path / "config.json"
        path.write_text(json.dumps({"retry": {"max_retries": 1}}))

        assert AppConfig.load_or_default(path).retry.max_retries == 1


def test_configure_logging_sets_level() -> None:
    config = AppConfig.model_validate({"logging": {"level": "DEBUG"}})

    configure_logging(config)

    assert logging.getLogger().level == logging.DEBUG
    configure_logging(AppConfig())


def test_default_cache_db_path_is_per_user() -> None:
    path = default_cache_db_path()

    assert path.name == "cache.db"
    assert path.parent.name == "tunetrace"
