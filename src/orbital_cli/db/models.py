"""SQLModel database models.

``users`` and ``sessions`` are written by the authorization server and only
read here. ``conversations`` and ``messages`` are owned by the CLI.
"""

from datetime import UTC, datetime
from enum import StrEnum
from typing import Any

from sqlmodel import Field, SQLModel

from orbital_cli.utils.id_generator import generate_id


def _utcnow() -> datetime:
    return datetime.now(UTC)


class ConversationMode(StrEnum):
    """How the chat session treats each input."""

    CHAT = "chat"
    TOOL = "tool"
    AGENT = "agent"


class MessageRole(StrEnum):
    """Author of a stored message."""

    USER = "USER"
    ASSISTANT = "ASSISTANT"
    SYSTEM = "SYSTEM"
    TOOL = "TOOL"


class User(SQLModel, table=True):
    """User account created by the authorization server."""

    __tablename__ = "users"

    id: str = Field(default_factory=generate_id, primary_key=True)
    name: str
    email: str = Field(index=True, unique=True)
    image: str | None = None
    created_at: datetime = Field(default_factory=_utcnow)
    updated_at: datetime = Field(default_factory=_utcnow)


class Session(SQLModel, table=True):
    """Server-side session; its token is the CLI's bearer credential."""

    __tablename__ = "sessions"

    id: str = Field(default_factory=generate_id, primary_key=True)
    token: str = Field(index=True, unique=True)
    user_id: str = Field(foreign_key="users.id", index=True)
    expires_at: datetime
    created_at: datetime = Field(default_factory=_utcnow)


class Conversation(SQLModel, table=True):
    """Chat transcript header, scoped to one user."""

    __tablename__ = "conversations"

    id: str = Field(default_factory=generate_id, primary_key=True)
    user_id: str = Field(foreign_key="users.id", index=True)
    mode: str = Field(default=ConversationMode.CHAT)
    title: str
    created_at: datetime = Field(default_factory=_utcnow)
    updated_at: datetime = Field(default_factory=_utcnow, index=True)


class Message(SQLModel, table=True):
    """One stored message; non-string content is kept as JSON text."""

    __tablename__ = "messages"

    id: str = Field(default_factory=generate_id, primary_key=True)
    conversation_id: str = Field(
        foreign_key="conversations.id", index=True, ondelete="CASCADE"
    )
    role: str
    content: str
    created_at: datetime = Field(default_factory=_utcnow, index=True)


class MessageRead(SQLModel):
    """Message with its content parsed back from storage."""

    id: str
    conversation_id: str
    role: MessageRole
    content: Any
    created_at: datetime


class ConversationRead(SQLModel):
    """Conversation header plus its messages, oldest first."""

    id: str
    user_id: str
    mode: ConversationMode
    title: str
    created_at: datetime
    updated_at: datetime
    messages: list[MessageRead] = Field(default_factory=list)


class ConversationSummary(SQLModel):
    """Conversation header with its most recent message for listings."""

    id: str
    mode: ConversationMode
    title: str
    updated_at: datetime
    message_count: int = 0
    last_message: MessageRead | None = None
