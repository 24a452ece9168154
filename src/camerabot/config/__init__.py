"""Configuration management for camerabot.

Loads and validates the bot configuration (YAML or JSON) with Pydantic
models. Supports environment variable overrides for the API token.
"""

from camerabot.config.settings import ConfigError, Settings, load_settings

__all__ = ["ConfigError", "Settings", "load_settings"]
