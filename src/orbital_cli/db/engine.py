"""Database engine and session management."""

from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from pathlib import Path

from sqlalchemy.engine import make_url
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlmodel import SQLModel
from structlog import get_logger


logger = get_logger(__name__)

# Global engine (initialized on startup)
_engine: AsyncEngine | None = None
_async_session_maker: async_sessionmaker[AsyncSession] | None = None


def get_db_url(target: str | Path) -> str:
    """Get an async database URL, accepting a SQLite file path or a URL.

    The parent directory of a SQLite file is created if needed.
    """
    if isinstance(target, Path):
        target.parent.mkdir(parents=True, exist_ok=True)
        return f"sqlite+aiosqlite:///{target}"

    url = make_url(target)
    if url.get_backend_name() == "sqlite" and url.database not in (None, "", ":memory:"):
        Path(url.database).expanduser().parent.mkdir(parents=True, exist_ok=True)
    return target


async def init_db(target: str | Path, *, echo: bool = False) -> None:
    """Initialize database and create missing tables.

    Tables the authorization server already created are left untouched.
    """
    global _engine, _async_session_maker

    if _engine is not None:
        await _engine.dispose()

    db_url = get_db_url(target)
    _engine = create_async_engine(db_url, echo=echo)
    _async_session_maker = async_sessionmaker(
        _engine, class_=AsyncSession, expire_on_commit=False
    )

    async with _engine.begin() as conn:
        await conn.run_sync(SQLModel.metadata.create_all)

    logger.debug("database_initialized", url=str(make_url(db_url)))


async def close_db() -> None:
    """Dispose of the engine and its pooled connections."""
    global _engine, _async_session_maker

    if _engine is not None:
        await _engine.dispose()
    _engine = None
    _async_session_maker = None


@asynccontextmanager
async def get_session() -> AsyncGenerator[AsyncSession, None]:
    """Get an async database session."""
    if _async_session_maker is None:
        raise RuntimeError("Database not initialized. Call init_db() first.")

    async with _async_session_maker() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise
