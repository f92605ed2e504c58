"""Configuration module for Orbital CLI."""

from orbital_cli.exceptions import ConfigValidationError

from .ai import AISettings
from .auth import AuthSettings
from .database import DatabaseSettings
from .logging_settings import LoggingSettings
from .settings import (
    ConfigurationError,
    Settings,
    config_manager,
    get_settings,
)


__all__ = [
    "Settings",
    "get_settings",
    "config_manager",
    "ConfigurationError",
    "AuthSettings",
    "DatabaseSettings",
    "AISettings",
    "LoggingSettings",
    "ConfigValidationError",
]
