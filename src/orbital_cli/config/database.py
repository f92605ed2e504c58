"""Relational store settings."""

from pydantic import BaseModel, Field

from orbital_cli.core.system import get_orbital_data_dir


def _default_database_url() -> str:
    return f"sqlite+aiosqlite:///{get_orbital_data_dir() / 'orbital.db'}"


class DatabaseSettings(BaseModel):
    """SQLite database shared with the authorization server."""

    url: str = Field(
        default_factory=_default_database_url,
        description="SQLAlchemy async database URL",
    )
    echo: bool = Field(
        default=False,
        description="Log every SQL statement",
    )
