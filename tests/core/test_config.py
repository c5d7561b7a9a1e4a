"""Tests for settings, record options and TTL normalization."""

import logging
import os
from datetime import timedelta
from unittest.mock import patch

import pytest
from pydantic import ValidationError

from redmodel.core.config import (
    DEFAULT_REDIS_URL,
    RecordOptions,
    Settings,
    configure_logging,
    get_settings,
    load_settings_from_yaml,
    reset_settings,
    ttl_seconds,
)


class TestTtlSeconds:
    """Tests for TTL normalization."""

    def test_integer_seconds(self):
        assert ttl_seconds(3600) == 3600

    def test_timedelta(self):
        assert ttl_seconds(timedelta(days=7)) == 7 * 24 * 3600

    def test_fractional_seconds_truncate(self):
        assert ttl_seconds(2.9) == 2

    def test_none_means_never(self):
        assert ttl_seconds(None) is None

    def test_non_positive_means_never(self):
        assert ttl_seconds(0) is None
        assert ttl_seconds(-5) is None
        assert ttl_seconds(timedelta(0)) is None

    def test_rejects_other_types(self):
        with pytest.raises(ValueError, match="TTL must be"):
            ttl_seconds("2 seconds")

    def test_rejects_bool(self):
        with pytest.raises(ValueError):
            ttl_seconds(True)


class TestSettings:
    """Tests for environment-driven settings."""

    def test_defaults(self):
        settings = Settings()
        assert settings.redis_url == DEFAULT_REDIS_URL
        assert settings.default_ttl is None
        assert settings.key_prefix == ""
        assert settings.log_level == "WARNING"

    def test_prefixed_env(self):
        with patch.dict(os.environ, {
            "REDMODEL_REDIS_URL": "redis://cache:6379/2",
            "REDMODEL_DEFAULT_TTL": "60",
            "REDMODEL_KEY_PREFIX": "app:",
        }):
            settings = Settings()
        assert settings.redis_url == "redis://cache:6379/2"
        assert settings.default_ttl == 60
        assert settings.key_prefix == "app:"

    def test_plain_redis_url_env(self):
        with patch.dict(os.environ, {"REDIS_URL": "redis://other:6380/0"}):
            assert Settings().redis_url == "redis://other:6380/0"

    def test_empty_default_ttl_is_none(self):
        with patch.dict(os.environ, {"REDMODEL_DEFAULT_TTL": ""}):
            assert Settings().default_ttl is None

    def test_log_level_normalized(self):
        assert Settings(log_level="debug").log_level == "DEBUG"

    def test_invalid_log_level(self):
        with pytest.raises(ValidationError):
            Settings(log_level="chatty")

    def test_get_settings_cached(self):
        assert get_settings() is get_settings()
        first = get_settings()
        reset_settings()
        assert get_settings() is not first


class TestYamlSettings:
    """Tests for YAML config loading."""

    def test_load_from_file(self, tmp_path):
        path = tmp_path / "redmodel.yaml"
        path.write_text("key_prefix: 'yaml:'\ndefault_ttl: 120\n")
        settings = load_settings_from_yaml(path)
        assert settings.key_prefix == "yaml:"
        assert settings.default_ttl == 120

    def test_env_overrides_yaml(self, tmp_path, monkeypatch):
        path = tmp_path / "redmodel.yaml"
        path.write_text("key_prefix: 'yaml:'\n")
        monkeypatch.setenv("REDMODEL_KEY_PREFIX", "env:")
        assert load_settings_from_yaml(path).key_prefix == "env:"

    @pytest.mark.parametrize("env_name", ["REDMODEL_REDIS_URL", "REDIS_URL"])
    def test_env_alias_overrides_yaml(self, tmp_path, monkeypatch, env_name):
        path = tmp_path / "redmodel.yaml"
        path.write_text("redis_url: 'redis://yaml-host:6379/0'\n")
        monkeypatch.setenv(env_name, "redis://env-host:6379/0")
        assert load_settings_from_yaml(path).redis_url == "redis://env-host:6379/0"

    def test_yaml_used_without_env(self, tmp_path):
        path = tmp_path / "redmodel.yaml"
        path.write_text("redis_url: 'redis://yaml-host:6379/0'\n")
        assert load_settings_from_yaml(path).redis_url == "redis://yaml-host:6379/0"

    def test_config_file_env_var(self, tmp_path, monkeypatch):
        path = tmp_path / "custom.yaml"
        path.write_text("default_ttl: 30\n")
        monkeypatch.setenv("REDMODEL_CONFIG_FILE", str(path))
        assert get_settings().default_ttl == 30

    def test_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            load_settings_from_yaml(tmp_path / "absent.yaml")

    def test_non_mapping_yaml(self, tmp_path):
        path = tmp_path / "list.yaml"
        path.write_text("- a\n- b\n")
        with pytest.raises(ValueError, match="dictionary"):
            load_settings_from_yaml(path)

    def test_invalid_yaml(self, tmp_path):
        path = tmp_path / "broken.yaml"
        path.write_text("key: [unclosed\n")
        with pytest.raises(ValueError, match="Invalid YAML"):
            load_settings_from_yaml(path)


class TestRecordOptions:
    """Tests for immutable per-model options."""

    def test_defaults(self):
        options = RecordOptions()
        assert options.key is None
        assert options.expires_in is None
        assert options.state_machines == ()
        assert options.store is None

    def test_expires_in_accepts_timedelta(self):
        assert RecordOptions(expires_in=timedelta(seconds=2)).expires_in == 2

    def test_frozen(self):
        options = RecordOptions(expires_in=5)
        with pytest.raises(ValidationError):
            options.expires_in = 10

    def test_with_ttl_returns_copy(self):
        options = RecordOptions(key="k:{id}", expires_in=5)
        updated = options.with_ttl(timedelta(minutes=1))
        assert updated.expires_in == 60
        assert updated.key == "k:{id}"
        assert options.expires_in == 5

    def test_state_machines_coerced_to_tuple(self):
        options = RecordOptions(state_machines=["a", "b"])
        assert options.state_machines == ("a", "b")

    def test_callable_key(self):
        options = RecordOptions(key=lambda record: f"x:{record.id}")
        assert callable(options.key)


class TestConfigureLogging:
    """Tests for logging setup."""

    def test_uses_settings_level(self, monkeypatch):
        monkeypatch.setenv("REDMODEL_LOG_LEVEL", "INFO")
        with patch("logging.basicConfig") as basic_config:
            configure_logging()
        assert basic_config.call_args.kwargs["level"] == logging.INFO

    def test_explicit_level(self):
        with patch("logging.basicConfig") as basic_config:
            configure_logging("debug")
        assert basic_config.call_args.kwargs["level"] == logging.DEBUG
