"""Configuration management for camerabot.

Loads settings from a YAML (or JSON) configuration file. ``CAMERABOT_*``
environment variables override file values, and ``TELEGRAM_BOT_TOKEN``
overrides the API token. Supports .env files.

A typical ``config.json``::

    {
        "api_token": "0123456789:abcdefghijklmnopqrstuvwxyz",
        "allowed_ids": ["telegram_id_1", "telegram_id_2"],
        "monitor_interval": 3,
        "script_path": "/path/to/camera_script.py",
        "is_verbose": false
    }
"""

from __future__ import annotations

import logging
import os
from pathlib import Path

import yaml
from pydantic import BaseModel, Field, SecretStr, ValidationError, field_validator
from pydantic_settings import BaseSettings, PydanticBaseSettingsSource

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_PATH = Path("config.json")

DEFAULT_MONITOR_INTERVAL_SECONDS = 5


class ConfigError(Exception):
    """Raised when the configuration is missing or invalid."""


class LoggingConfig(BaseModel):
    level: str = Field(default="INFO")
    format: str = Field(
        default="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    )
    file: str | None = Field(default=None)


class Settings(BaseSettings):
    """Root configuration for the camerabot bridge.

    Loads from a YAML/JSON file and supports environment variable
    overrides. Reads .env files automatically.
    """

    model_config = {
        "env_prefix": "CAMERABOT_",
        "env_nested_delimiter": "__",
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "extra": "ignore",
    }

    api_token: SecretStr = Field(description="Telegram Bot API token")
    allowed_ids: list[str] = Field(
        default_factory=list, description="Telegram usernames allowed to use the bot"
    )
    monitor_interval: int = Field(
        default=DEFAULT_MONITOR_INTERVAL_SECONDS,
        description="Seconds between update polls (long-poll timeout)",
    )
    script_path: str = Field(description="Path to the executable script")
    is_verbose: bool = Field(default=False)
    script_timeout: float | None = Field(
        default=None, gt=0, description="Deadline for one script run; None waits forever"
    )

    logging: LoggingConfig = Field(default_factory=LoggingConfig)

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        # File values arrive as init kwargs; CAMERABOT_* variables win over them
        return env_settings, dotenv_settings, init_settings, file_secret_settings

    @field_validator("api_token")
    @classmethod
    def _token_not_empty(cls, value: SecretStr) -> SecretStr:
        if not value.get_secret_value().strip():
            raise ValueError("api_token must not be empty")
        return value

    @field_validator("script_path")
    @classmethod
    def _script_path_not_empty(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("script_path must not be empty")
        return value

    @field_validator("monitor_interval")
    @classmethod
    def _default_interval(cls, value: int) -> int:
        if value <= 0:
            return DEFAULT_MONITOR_INTERVAL_SECONDS
        return value


def load_settings(config_path: Path | str | None = None) -> Settings:
    """Load settings from YAML/JSON + .env + environment variables.

    Unlike most optional config, a missing file is fatal here: the bot
    cannot run without a token and an allow-list.

    Raises:
        ConfigError: If the file is missing, unparsable, or invalid.
    """
    path = Path(config_path) if config_path else DEFAULT_CONFIG_PATH

    _load_dotenv()

    if not path.exists():
        raise ConfigError(f"Config file {path} not found")

    try:
        with open(path) as f:
            data = yaml.safe_load(f) or {}
    except (OSError, yaml.YAMLError) as e:
        raise ConfigError(f"Failed to read config file {path}: {e}") from e

    if not isinstance(data, dict):
        raise ConfigError(f"Config file {path} must contain a mapping")
    logger.info("Loaded configuration from %s", path)

    _apply_env_overrides(data)

    try:
        return Settings(**data)
    except ValidationError as e:
        raise ConfigError(f"Invalid configuration in {path}: {e}") from e


def _load_dotenv() -> None:
    """Load .env file into os.environ if it exists."""
    env_path = Path(".env")
    if not env_path.exists():
        return
    with open(env_path) as f:
        for line in f:
            line = line.strip()
            if not line or line.startswith("#"):
                continue
            if "=" in line:
                key, _, value = line.partition("=")
                key = key.strip()
                value = value.strip()
                if not os.environ.get(key):
                    os.environ[key] = value


def _apply_env_overrides(data: dict) -> None:
    """Apply environment variable overrides for non-prefixed vars."""
    token = os.environ.get("TELEGRAM_BOT_TOKEN", "")
    if token:
        data["api_token"] = token
