"""Settings configuration for Orbital CLI."""

import contextlib
import os
import tomllib
from pathlib import Path
from typing import Any

import orjson
import structlog
from pydantic import Field, ValidationError
from pydantic_settings import BaseSettings, SettingsConfigDict

from orbital_cli.config.discovery import find_toml_config_file

from .ai import AISettings
from .auth import AuthSettings
from .database import DatabaseSettings
from .logging_settings import LoggingSettings


__all__ = [
    "Settings",
    "ConfigurationError",
    "ConfigurationManager",
    "config_manager",
    "get_settings",
]


CONFIG_FILE_ENV = "ORBITAL_CONFIG_FILE"
CONFIG_OVERRIDES_ENV = "ORBITAL_CONFIG_OVERRIDES"


class ConfigurationError(Exception):
    """Raised when configuration loading or validation fails."""

    pass


def _deep_merge(base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
    """Merge two config dicts, recursing into nested sections."""
    merged = dict(base)
    for key, value in override.items():
        if isinstance(value, dict) and isinstance(merged.get(key), dict):
            merged[key] = _deep_merge(merged[key], value)
        else:
            merged[key] = value
    return merged


class Settings(BaseSettings):
    """
    Configuration settings for Orbital CLI.

    Settings are loaded from environment variables, .env files, and TOML configuration files.
    Values from the TOML file and CLI overrides are passed as init arguments and
    therefore win over the environment.
    TOML configuration files are looked up in the following order:
    1. .orbital.toml in current directory
    2. .orbital.toml in git repository root
    3. config.toml in user config directory/orbital-cli/ (platform-specific)
    """

    model_config = SettingsConfigDict(
        env_prefix="ORBITAL_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
        env_nested_delimiter="__",
    )

    auth: AuthSettings = Field(
        default_factory=AuthSettings,
        description="Authorization server and token storage settings",
    )

    database: DatabaseSettings = Field(
        default_factory=DatabaseSettings,
        description="Relational store settings",
    )

    ai: AISettings = Field(
        default_factory=AISettings,
        description="Generative AI provider settings",
    )

    logging: LoggingSettings = Field(
        default_factory=LoggingSettings,
        description="Structured logging settings",
    )

    def model_dump_safe(self) -> dict[str, Any]:
        """
        Dump model data with sensitive information masked.

        Returns:
            dict: Configuration with sensitive data masked
        """
        data = self.model_dump(mode="json")
        if data.get("ai", {}).get("api_key"):
            data["ai"]["api_key"] = "***"
        return data

    @classmethod
    def load_toml_config(cls, toml_path: Path) -> dict[str, Any]:
        """Load configuration from a TOML file.

        Args:
            toml_path: Path to the TOML configuration file

        Returns:
            dict: Configuration data from the TOML file

        Raises:
            ValueError: If the TOML file is invalid or cannot be read
        """
        try:
            with toml_path.open("rb") as f:
                return tomllib.load(f)
        except OSError as e:
            raise ValueError(f"Cannot read TOML config file {toml_path}: {e}") from e
        except tomllib.TOMLDecodeError as e:
            raise ValueError(f"Invalid TOML syntax in {toml_path}: {e}") from e

    @classmethod
    def from_config(
        cls, config_path: Path | str | None = None, **kwargs: Any
    ) -> "Settings":
        """Create Settings instance from configuration file.

        Args:
            config_path: Path to configuration file. Can be:
                - None: Auto-discover config file or use ORBITAL_CONFIG_FILE env var
                - Path or str: Use this specific config file
            **kwargs: Additional keyword arguments to override config values

        Returns:
            Settings: Configured Settings instance
        """
        if config_path is None:
            config_path_env = os.environ.get(CONFIG_FILE_ENV)
            if config_path_env:
                config_path = Path(config_path_env)

        if isinstance(config_path, str):
            config_path = Path(config_path)

        if config_path is None:
            config_path = find_toml_config_file()

        config_data: dict[str, Any] = {}
        if config_path is not None:
            if config_path.suffix.lower() != ".toml":
                raise ValueError(
                    f"Unsupported config file format: {config_path.suffix}. "
                    "Only TOML (.toml) files are supported."
                )
            if not config_path.exists():
                raise ValueError(f"Config file not found: {config_path}")
            config_data = cls.load_toml_config(config_path)

        return cls(**_deep_merge(config_data, kwargs))


class ConfigurationManager:
    """Centralized configuration management for the CLI."""

    def __init__(self) -> None:
        self._settings: Settings | None = None
        self._config_path: Path | None = None
        self._cli_overrides: dict[str, Any] = {}

    def load_settings(
        self,
        config_path: Path | None = None,
        cli_overrides: dict[str, Any] | None = None,
    ) -> Settings:
        """Load settings with CLI overrides and caching."""
        overrides = cli_overrides or {}
        if (
            self._settings is None
            or config_path != self._config_path
            or overrides != self._cli_overrides
        ):
            try:
                self._settings = Settings.from_config(
                    config_path=config_path, **overrides
                )
            except (OSError, ValueError, ValidationError) as e:
                # OS errors (file access), TOML errors, or invalid values
                raise ConfigurationError(f"Failed to load configuration: {e}") from e
            self._config_path = config_path
            self._cli_overrides = overrides

        return self._settings

    @property
    def settings(self) -> Settings | None:
        """Settings loaded by the CLI callback, if any."""
        return self._settings

    @staticmethod
    def get_cli_overrides_from_args(**cli_args: Any) -> dict[str, Any]:
        """Extract non-None CLI arguments as configuration overrides."""
        overrides: dict[str, Any] = {}

        auth_settings = {
            key: cli_args[key]
            for key in ("server_url", "client_id")
            if cli_args.get(key) is not None
        }
        if auth_settings:
            overrides["auth"] = auth_settings

        if cli_args.get("log_level") is not None:
            overrides["logging"] = {"level": cli_args["log_level"]}

        return overrides

    def reset(self) -> None:
        """Reset configuration state (useful for testing)."""
        self._settings = None
        self._config_path = None
        self._cli_overrides = {}


# Global configuration manager instance
config_manager = ConfigurationManager()

logger = structlog.get_logger(__name__)


def get_settings(config_path: Path | str | None = None) -> Settings:
    """Get the settings instance with configuration file support.

    Returns the settings loaded by the CLI callback when present, otherwise
    builds them from the config file, ORBITAL_CONFIG_OVERRIDES and the
    environment.

    Raises:
        ConfigurationError: If the configuration cannot be loaded
    """
    if config_path is None and config_manager.settings is not None:
        return config_manager.settings

    cli_overrides: dict[str, Any] = {}
    cli_overrides_json = os.environ.get(CONFIG_OVERRIDES_ENV)
    if cli_overrides_json:
        with contextlib.suppress(orjson.JSONDecodeError):
            cli_overrides = orjson.loads(cli_overrides_json)

    try:
        return Settings.from_config(config_path=config_path, **cli_overrides)
    except (OSError, ValueError, ValidationError) as e:
        logger.debug("settings_load_failed", error=str(e))
        raise ConfigurationError(f"Configuration error: {e}") from e
