"""Conversation store adapter.

Creates and fetches conversations and messages scoped to a user. Message
content that is not a string is stored as JSON text and parsed back on read.
"""

import contextlib
import json
import re
from collections.abc import Iterator
from typing import Any

import orjson
from sqlalchemy.exc import SQLAlchemyError
from structlog import get_logger

from orbital_cli.db.models import (
    Conversation,
    ConversationMode,
    ConversationRead,
    ConversationSummary,
    Message,
    MessageRead,
    MessageRole,
)
from orbital_cli.db.repositories.conversation_repo import ConversationRepository
from orbital_cli.exceptions import PersistenceError
from orbital_cli.services.ai.base import ChatMessage


logger = get_logger(__name__)

TITLE_MAX_LENGTH = 50

# Integers this long may not fit in 64 bits, which orjson cannot represent
_WIDE_INT = re.compile(r"\d{20,}")


def serialize_content(content: Any) -> str:
    """Strings are stored verbatim, anything else as JSON.

    Raises:
        TypeError: The content has no JSON representation
    """
    if isinstance(content, str):
        return content
    try:
        return orjson.dumps(content).decode()
    except orjson.JSONEncodeError:
        # Arbitrary precision integers
        return json.dumps(content, ensure_ascii=False, separators=(",", ":"))


def parse_content(content: str) -> Any:
    """Parse stored JSON text, falling back to the raw string.

    Any text that happens to be valid JSON comes back parsed, so a user
    message of ``42`` or ``null`` reads as the number or None, not the string.
    """
    if _WIDE_INT.search(content):
        try:
            return json.loads(content)
        except json.JSONDecodeError:
            return content
    try:
        return orjson.loads(content)
    except orjson.JSONDecodeError:
        return content


def derive_title(text: str) -> str:
    """Title from a first user message: 50 characters, ellipsis if cut."""
    if len(text) > TITLE_MAX_LENGTH:
        return text[:TITLE_MAX_LENGTH] + "..."
    return text


def default_title(mode: str) -> str:
    return f"New {mode} conversation"


def _to_read(message: Message) -> MessageRead:
    return MessageRead(
        id=message.id,
        conversation_id=message.conversation_id,
        role=MessageRole(message.role),
        content=parse_content(message.content),
        created_at=message.created_at,
    )


@contextlib.contextmanager
def _store_errors(operation: str) -> Iterator[None]:
    """Surface relational store failures as PersistenceError."""
    try:
        yield
    except SQLAlchemyError as e:
        logger.error("store_operation_failed", operation=operation, error=str(e))
        raise PersistenceError(
            f"Failed to {operation}: {e}", details={"operation": operation}
        ) from e


class ChatService:
    """Conversation and message persistence for one or more users."""

    def __init__(self, repo: ConversationRepository | None = None) -> None:
        self.repo = repo or ConversationRepository()

    async def create_conversation(
        self,
        user_id: str,
        mode: ConversationMode | str = ConversationMode.CHAT,
        title: str | None = None,
    ) -> ConversationRead:
        mode = ConversationMode(mode)
        with _store_errors("create conversation"):
            conversation = await self.repo.create(
                user_id=user_id, mode=mode, title=title or default_title(mode)
            )
        logger.debug("conversation_created", conversation_id=conversation.id, mode=mode)
        return self._header(conversation, [])

    async def get_or_create(
        self,
        user_id: str,
        conversation_id: str | None = None,
        mode: ConversationMode | str = ConversationMode.CHAT,
    ) -> ConversationRead:
        """Load an owned conversation with its messages, else start a new one.

        An id that is unknown or belongs to another user yields a new
        conversation rather than an error.
        """
        if conversation_id:
            with _store_errors("load conversation"):
                conversation = await self.repo.get_owned(conversation_id, user_id)
                if conversation is not None:
                    messages = await self.repo.list_messages(conversation.id)
                    return self._header(conversation, [_to_read(m) for m in messages])
            logger.info("conversation_not_found", conversation_id=conversation_id)

        return await self.create_conversation(user_id, mode)

    async def add_message(
        self,
        conversation_id: str,
        role: MessageRole | str,
        content: Any,
    ) -> MessageRead:
        """Append a message, serializing non-string content."""
        role = MessageRole(role)
        try:
            text = serialize_content(content)
        except TypeError as e:
            logger.error(
                "message_not_serializable", conversation_id=conversation_id, error=str(e)
            )
            raise PersistenceError(
                f"Failed to save message: {e}", details={"operation": "save message"}
            ) from e
        with _store_errors("save message"):
            message = await self.repo.add_message(conversation_id, role, text)
        return _to_read(message)

    async def list_messages(self, conversation_id: str) -> list[MessageRead]:
        """Messages oldest first, content parsed."""
        with _store_errors("load messages"):
            messages = await self.repo.list_messages(conversation_id)
        return [_to_read(m) for m in messages]

    async def update_title(self, conversation_id: str, title: str) -> None:
        with _store_errors("update title"):
            await self.repo.update_title(conversation_id, title)

    async def delete(self, conversation_id: str, user_id: str) -> bool:
        """Delete a conversation owned by ``user_id``; no-op otherwise."""
        with _store_errors("delete conversation"):
            deleted = await self.repo.delete(conversation_id, user_id)
        if deleted:
            logger.info("conversation_deleted", conversation_id=conversation_id)
        return deleted

    async def list_conversations(self, user_id: str) -> list[ConversationSummary]:
        """A user's conversations, most recently active first."""
        summaries = []
        with _store_errors("list conversations"):
            for conversation in await self.repo.list_for_user(user_id):
                last = await self.repo.last_message(conversation.id)
                count = await self.repo.count_messages(conversation.id)
                summaries.append(
                    ConversationSummary(
                        id=conversation.id,
                        mode=ConversationMode(conversation.mode),
                        title=conversation.title,
                        updated_at=conversation.updated_at,
                        message_count=count,
                        last_message=_to_read(last) if last else None,
                    )
                )
        return summaries

    @staticmethod
    def format_for_ai(messages: list[MessageRead]) -> list[ChatMessage]:
        """Provider-ready messages: lower-case roles, string content."""
        return [
            ChatMessage(
                role=str(m.role).lower(),
                content=serialize_content(m.content),
            )
            for m in messages
        ]

    @staticmethod
    def _header(
        conversation: Conversation, messages: list[MessageRead]
    ) -> ConversationRead:
        return ConversationRead(
            id=conversation.id,
            user_id=conversation.user_id,
            mode=ConversationMode(conversation.mode),
            title=conversation.title,
            created_at=conversation.created_at,
            updated_at=conversation.updated_at,
            messages=messages,
        )
