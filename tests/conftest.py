"""Shared fixtures: temporary databases, seeded users, a scripted chat model."""

import tempfile
from collections.abc import AsyncGenerator
from datetime import UTC, datetime, timedelta
from pathlib import Path
from typing import Any

import pytest
import structlog

from orbital_cli.config.settings import config_manager
from orbital_cli.db import close_db, get_session, init_db
from orbital_cli.db.models import Session, User
from orbital_cli.exceptions import AIServiceError
from orbital_cli.services.ai.base import AIResponse, ChatMessage, Usage


@pytest.fixture(autouse=True)
def reset_config_manager():
    """Each test starts without cached settings."""
    config_manager.reset()
    yield
    config_manager.reset()


@pytest.fixture(autouse=True)
def reset_structlog():
    """Logging configured by a CLI invocation must not outlive its captured streams."""
    yield
    structlog.reset_defaults()


@pytest.fixture
async def temp_db() -> AsyncGenerator[Path, None]:
    """Create a temporary database for testing."""
    with tempfile.TemporaryDirectory() as tmpdir:
        db_path = Path(tmpdir) / "test.db"
        await init_db(db_path)
        yield db_path
        await close_db()


async def seed_user(
    name: str = "Ada Lovelace",
    email: str = "ada@example.com",
    token: str = "session-token-1",
    expires_in: timedelta = timedelta(days=7),
) -> User:
    """Insert a user with one server-side session, as the auth server would."""
    async with get_session() as session:
        user = User(name=name, email=email)
        session.add(user)
        await session.flush()
        session.add(
            Session(
                token=token,
                user_id=user.id,
                expires_at=datetime.now(UTC) + expires_in,
            )
        )
        await session.commit()
        await session.refresh(user)
        return user


@pytest.fixture
async def user(temp_db: Path) -> User:
    return await seed_user()


class FakeChatModel:
    """Chat model returning scripted replies and recording every call."""

    def __init__(self, replies: list[str | Exception] | None = None) -> None:
        self.replies = list(replies or [])
        self.calls: list[dict[str, Any]] = []
        self.objects: list[Any] = []
        self.closed = False

    async def send_message(
        self,
        messages: list[ChatMessage],
        on_chunk: Any = None,
        tools: list[dict[str, Any]] | None = None,
    ) -> AIResponse:
        self.calls.append({"messages": list(messages), "tools": tools})
        reply = self.replies.pop(0) if self.replies else "ok"
        if isinstance(reply, Exception):
            raise reply
        if on_chunk:
            for word in reply.split(" "):
                on_chunk(word + " ")
        return AIResponse(
            content=reply,
            finish_reason="STOP",
            usage=Usage(prompt_tokens=3, completion_tokens=2, total_tokens=5),
        )

    async def get_message(
        self, messages: list[ChatMessage], tools: list[dict[str, Any]] | None = None
    ) -> str:
        return (await self.send_message(messages, tools=tools)).content

    async def generate_object(self, prompt: str, schema: type) -> Any:
        self.calls.append({"prompt": prompt, "schema": schema})
        result = self.objects.pop(0)
        if isinstance(result, Exception):
            raise result
        return result

    async def aclose(self) -> None:
        self.closed = True


@pytest.fixture
def fake_ai() -> FakeChatModel:
    return FakeChatModel(["Hello there!"])


@pytest.fixture
def failing_ai() -> FakeChatModel:
    return FakeChatModel([AIServiceError("AI request failed: HTTP 500", status_code=500)])


@pytest.fixture
def make_user():
    """The seeding coroutine, for tests that manage their own database."""
    return seed_user


@pytest.fixture
def make_ai():
    """Factory for scripted chat models."""
    return FakeChatModel
