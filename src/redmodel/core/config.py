"""
Configuration management for redmodel.

Uses pydantic-settings for environment variable support, with an optional
YAML file underneath. Per-model settings live in ``RecordOptions``.
"""

import logging
import os
from datetime import timedelta
from functools import lru_cache
from pathlib import Path
from typing import Any, Callable

import yaml
from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

logger = logging.getLogger(__name__)

DEFAULT_REDIS_URL = "redis://127.0.0.1:6379/0"

LOG_LEVELS = frozenset(["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"])


def ttl_seconds(value: int | float | timedelta | None) -> int | None:
    """
    Normalize a TTL to whole seconds.

    Args:
        value: Seconds, a timedelta, or None

    Returns:
        Positive number of seconds, or None for "never expires"
    """
    if value is None:
        return None
    if isinstance(value, timedelta):
        value = value.total_seconds()
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise ValueError(f"TTL must be seconds or a timedelta, got {type(value).__name__}")
    seconds = int(value)
    return seconds if seconds > 0 else None


class Settings(BaseSettings):
    """redmodel configuration with environment variable support."""

    model_config = SettingsConfigDict(
        env_prefix="REDMODEL_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        populate_by_name=True,
    )

    redis_url: str = Field(
        default=DEFAULT_REDIS_URL,
        validation_alias=AliasChoices("REDMODEL_REDIS_URL", "REDIS_URL", "redis_url"),
        description="Redis connection URL for the default hash store",
    )
    default_ttl: int | None = Field(
        default=None,
        description="TTL in seconds applied to models that do not set expires_in",
    )
    key_prefix: str = Field(
        default="",
        description="Prefix prepended to every model namespace (e.g. 'myapp:')",
    )
    log_level: str = Field(
        default="WARNING",
        description="Log level used by configure_logging()",
    )

    @field_validator("default_ttl", mode="before")
    @classmethod
    def validate_default_ttl(cls, v: Any) -> int | None:
        """Empty string and non-positive values mean no expiration."""
        if v in (None, ""):
            return None
        return ttl_seconds(int(v))

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Log level must be a standard logging level name."""
        level = v.upper()
        if level not in LOG_LEVELS:
            raise ValueError(f"log_level must be one of {sorted(LOG_LEVELS)}, got '{v}'")
        return level


class RecordOptions(BaseModel):
    """
    Immutable per-model configuration.

    Attached to a model type at class definition. ``Record.expires_in``
    replaces the whole object instead of mutating it.

    Attributes:
        key: Storage key template (``str.format`` over field values, e.g.
            ``"collection::attempt:{id}"``) or a callable ``record -> str``
        expires_in: TTL in seconds; None means the key never expires
        namespace: Counter namespace override; derived from the class path if
            unset. The top-level package is not part of the derived name, so
            same-named models in sibling packages (``a.models.Task`` and
            ``b.models.Task``) share a counter unless one sets this
        state_machines: Machines governing attributes of this model
        store: Hash store for this model; the process-wide store if unset
    """

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    key: str | Callable[[Any], str] | None = None
    expires_in: int | None = None
    namespace: str | None = None
    state_machines: tuple[Any, ...] = ()
    store: Any | None = None

    @field_validator("expires_in", mode="before")
    @classmethod
    def validate_expires_in(cls, v: Any) -> int | None:
        """Accept seconds or a timedelta; non-positive means never."""
        return ttl_seconds(v)

    @field_validator("state_machines", mode="before")
    @classmethod
    def validate_state_machines(cls, v: Any) -> tuple:
        """Accept any iterable of machines."""
        if v is None:
            return ()
        return tuple(v)

    def with_ttl(self, value: int | float | timedelta | None) -> "RecordOptions":
        """Return a copy carrying a new TTL."""
        return self.model_copy(update={"expires_in": ttl_seconds(value)})


def _env_names(key: str) -> list[str]:
    """Environment variable names that can set a Settings field."""
    names = [f"REDMODEL_{key.upper()}"]
    field = Settings.model_fields.get(key)
    if field is not None and isinstance(field.validation_alias, AliasChoices):
        for choice in field.validation_alias.choices:
            if isinstance(choice, str) and choice.upper() not in names:
                names.append(choice.upper())
    return names


def _find_config_file() -> Path | None:
    """
    Find YAML config file in standard locations.

    Search order:
    1. REDMODEL_CONFIG_FILE environment variable
    2. ./redmodel.yaml or ./redmodel.yml (current directory)
    3. ~/.redmodel/config.yaml (user home)

    Returns:
        Path to config file if found, None otherwise
    """
    env_config = os.getenv("REDMODEL_CONFIG_FILE")
    if env_config:
        path = Path(env_config).expanduser()
        if path.exists():
            return path
        logger.warning(f"Config file from REDMODEL_CONFIG_FILE not found: {path}")

    search_paths = [
        Path("redmodel.yaml"),
        Path("redmodel.yml"),
        Path.home() / ".redmodel" / "config.yaml",
    ]

    for path in search_paths:
        if path.exists():
            logger.debug(f"Found config file: {path}")
            return path

    return None


def _load_yaml_config(path: Path) -> dict:
    """
    Load configuration from YAML file.

    Raises:
        ValueError: If YAML file is invalid or not a mapping
    """
    try:
        with open(path) as f:
            config = yaml.safe_load(f) or {}
    except yaml.YAMLError as e:
        raise ValueError(f"Invalid YAML in config file {path}: {e}") from e

    if not isinstance(config, dict):
        raise ValueError(f"Config file must contain a dictionary, got {type(config).__name__}")

    logger.info(f"Loaded configuration from: {path}")
    return config


def load_settings_from_yaml(config_path: Path | str | None = None) -> Settings:
    """
    Load Settings from YAML file with environment variable overrides.

    Env vars always take precedence over YAML values.

    Args:
        config_path: Path to YAML config file. If None, searches standard locations.

    Returns:
        Settings instance with values from YAML and env vars
    """
    if config_path:
        path = Path(config_path).expanduser()
        if not path.exists():
            raise FileNotFoundError(f"Config file not found: {path}")
    else:
        path = _find_config_file()

    yaml_config = _load_yaml_config(path) if path else {}

    filtered_config = {}
    for key, value in yaml_config.items():
        env_key = next((name for name in _env_names(key) if os.getenv(name) is not None), None)
        if env_key is None:
            filtered_config[key] = value
        else:
            logger.debug(f"Skipping YAML key '{key}' - overridden by {env_key}")

    return Settings(**filtered_config)


@lru_cache
def get_settings() -> Settings:
    """
    Get cached settings instance.

    Settings are loaded from (in order of precedence):
    1. Environment variables (REDMODEL_* prefix, REDIS_URL for the URL)
    2. YAML config file (if found)
    3. Default values
    """
    return load_settings_from_yaml()


def reset_settings() -> None:
    """Clear the cached settings, forcing reload on next get_settings() call."""
    get_settings.cache_clear()


def configure_logging(level: str | None = None) -> None:
    """
    Configure root logging for applications embedding redmodel.

    Args:
        level: Log level name; defaults to Settings.log_level
    """
    logging.basicConfig(
        level=getattr(logging, (level or get_settings().log_level).upper()),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
