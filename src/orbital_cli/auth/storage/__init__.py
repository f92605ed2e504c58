"""Token storage implementations for authentication."""

from orbital_cli.auth.storage.base import TokenStorage
from orbital_cli.auth.storage.json_file import JsonFileTokenStorage


__all__ = [
    "JsonFileTokenStorage",
    "TokenStorage",
]
