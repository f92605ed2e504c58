"""Tests for the conversation store adapter."""

from datetime import UTC, datetime
from unittest.mock import AsyncMock, MagicMock

import pytest
from sqlalchemy.exc import OperationalError

from orbital_cli.db.models import ConversationMode, MessageRead, MessageRole
from orbital_cli.exceptions import PersistenceError
from orbital_cli.services.chat_service import (
    ChatService,
    default_title,
    derive_title,
    parse_content,
    serialize_content,
)


@pytest.fixture
def service() -> ChatService:
    return ChatService()


class TestContentHelpers:
    """Storage format helpers."""

    def test_strings_are_stored_verbatim(self):
        assert serialize_content("hello") == "hello"

    def test_structured_content_round_trips(self):
        content = {"type": "text", "parts": [1, 2]}
        assert parse_content(serialize_content(content)) == content

    def test_non_json_text_is_returned_raw(self):
        assert parse_content("just words") == "just words"

    def test_json_looking_text_is_parsed(self):
        assert parse_content("42") == 42
        assert parse_content("null") is None

    def test_integers_beyond_64_bits_round_trip(self):
        for content in ({"n": 2**64}, [-(2**70), 1], {"nested": {"ids": [10**25]}}):
            stored = serialize_content(content)
            assert parse_content(stored) == content

    def test_wide_integer_content_keeps_unicode(self):
        content = {"name": "Zoë", "n": 2**65}
        stored = serialize_content(content)

        assert "Zoë" in stored
        assert parse_content(stored) == content

    def test_digits_in_plain_text_stay_text(self):
        text = "order 123456789012345678901 shipped"
        assert parse_content(text) == text

    def test_unserializable_content_raises_type_error(self):
        with pytest.raises(TypeError):
            serialize_content({1, 2})

    def test_title_keeps_fifty_characters(self):
        assert derive_title("a" * 50) == "a" * 50

    def test_title_truncates_longer_text(self):
        assert derive_title("a" * 51) == "a" * 50 + "..."

    def test_default_title(self):
        assert default_title(ConversationMode.TOOL) == "New tool conversation"


@pytest.mark.asyncio
async def test_new_conversation_has_default_title(user, service):
    conversation = await service.get_or_create(user.id, None, ConversationMode.CHAT)

    assert conversation.title == "New chat conversation"
    assert conversation.mode == ConversationMode.CHAT
    assert conversation.messages == []


@pytest.mark.asyncio
async def test_resume_returns_messages_in_order(user, service):
    conversation = await service.create_conversation(user.id)
    await service.add_message(conversation.id, MessageRole.USER, "hi")
    await service.add_message(conversation.id, MessageRole.ASSISTANT, {"text": "hello"})

    resumed = await service.get_or_create(user.id, conversation.id)

    assert resumed.id == conversation.id
    assert [(m.role, m.content) for m in resumed.messages] == [
        (MessageRole.USER, "hi"),
        (MessageRole.ASSISTANT, {"text": "hello"}),
    ]


@pytest.mark.asyncio
async def test_foreign_conversation_id_starts_new(user, service, make_user):
    other = await make_user(name="Grace", email="grace@example.com", token="t2")
    theirs = await service.create_conversation(other.id)

    mine = await service.get_or_create(user.id, theirs.id, ConversationMode.TOOL)

    assert mine.id != theirs.id
    assert mine.user_id == user.id
    assert mine.mode == ConversationMode.TOOL


@pytest.mark.asyncio
async def test_unknown_conversation_id_starts_new(user, service):
    conversation = await service.get_or_create(user.id, "does-not-exist")
    assert conversation.id != "does-not-exist"


@pytest.mark.asyncio
async def test_delete_only_by_owner(user, service, make_user):
    other = await make_user(name="Grace", email="grace@example.com", token="t2")
    conversation = await service.create_conversation(user.id)
    await service.add_message(conversation.id, MessageRole.USER, "keep me")

    assert await service.delete(conversation.id, other.id) is False
    assert [m.content for m in await service.list_messages(conversation.id)] == ["keep me"]
    assert len(await service.list_conversations(user.id)) == 1

    assert await service.delete(conversation.id, user.id) is True
    assert await service.list_conversations(user.id) == []


@pytest.mark.asyncio
async def test_list_conversations_summaries(user, service):
    older = await service.create_conversation(user.id, title="older")
    newer = await service.create_conversation(user.id, ConversationMode.AGENT, "newer")
    await service.add_message(older.id, MessageRole.USER, "first")
    await service.add_message(newer.id, MessageRole.USER, "question")
    await service.add_message(newer.id, MessageRole.ASSISTANT, "answer")

    summaries = await service.list_conversations(user.id)

    assert [s.title for s in summaries] == ["newer", "older"]
    assert summaries[0].message_count == 2
    assert summaries[0].last_message.content == "answer"
    assert summaries[0].mode == ConversationMode.AGENT


def test_format_for_ai(user_messages):
    formatted = ChatService.format_for_ai(user_messages)

    assert [(m.role, m.content) for m in formatted] == [
        ("user", "hi"),
        ("assistant", '{"text":"hello"}'),
    ]


@pytest.fixture
def user_messages():
    now = datetime.now(UTC)
    return [
        MessageRead(id="1", conversation_id="c", role=MessageRole.USER, content="hi", created_at=now),
        MessageRead(
            id="2",
            conversation_id="c",
            role=MessageRole.ASSISTANT,
            content={"text": "hello"},
            created_at=now,
        ),
    ]


@pytest.mark.asyncio
async def test_store_failure_becomes_persistence_error():
    repo = MagicMock()
    repo.add_message = AsyncMock(
        side_effect=OperationalError("INSERT", {}, Exception("database is locked"))
    )
    service = ChatService(repo)

    with pytest.raises(PersistenceError, match="Failed to save message"):
        await service.add_message("c", MessageRole.USER, "hi")


@pytest.mark.asyncio
async def test_wide_integer_message_survives_the_store(user, service):
    conversation = await service.create_conversation(user.id)
    await service.add_message(conversation.id, MessageRole.ASSISTANT, {"count": 2**64 + 1})

    resumed = await service.get_or_create(user.id, conversation.id)

    assert resumed.messages[0].content == {"count": 2**64 + 1}


@pytest.mark.asyncio
async def test_unserializable_message_becomes_persistence_error(user, service):
    conversation = await service.create_conversation(user.id)

    with pytest.raises(PersistenceError, match="Failed to save message"):
        await service.add_message(conversation.id, MessageRole.ASSISTANT, {"tags": {"a"}})

    assert await service.list_messages(conversation.id) == []
