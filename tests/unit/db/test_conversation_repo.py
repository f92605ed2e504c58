"""Tests for the conversation repository."""

import pytest

from orbital_cli.db.models import ConversationMode, MessageRole
from orbital_cli.db.repositories import ConversationRepository, UserRepository


@pytest.fixture
def repo() -> ConversationRepository:
    return ConversationRepository()


@pytest.mark.asyncio
async def test_create_and_get_owned(user, repo):
    conversation = await repo.create(user.id, ConversationMode.CHAT, "New chat conversation")

    assert conversation.id
    assert (await repo.get_owned(conversation.id, user.id)).title == "New chat conversation"


@pytest.mark.asyncio
async def test_get_owned_rejects_other_user(user, repo, make_user):
    other = await make_user(name="Grace", email="grace@example.com", token="t2")
    conversation = await repo.create(user.id, ConversationMode.CHAT, "mine")

    assert await repo.get_owned(conversation.id, other.id) is None
    assert await repo.get_owned("missing", user.id) is None


@pytest.mark.asyncio
async def test_messages_are_ordered_and_counted(user, repo):
    conversation = await repo.create(user.id, ConversationMode.CHAT, "t")
    await repo.add_message(conversation.id, MessageRole.USER, "one")
    await repo.add_message(conversation.id, MessageRole.ASSISTANT, "two")
    await repo.add_message(conversation.id, MessageRole.USER, "three")

    messages = await repo.list_messages(conversation.id)

    assert [m.content for m in messages] == ["one", "two", "three"]
    assert await repo.count_messages(conversation.id) == 3
    assert (await repo.last_message(conversation.id)).content == "three"


@pytest.mark.asyncio
async def test_add_message_touches_conversation(user, repo):
    conversation = await repo.create(user.id, ConversationMode.CHAT, "t")
    message = await repo.add_message(conversation.id, MessageRole.USER, "hi")

    reloaded = await repo.get_owned(conversation.id, user.id)
    assert reloaded.updated_at == message.created_at


@pytest.mark.asyncio
async def test_list_for_user_most_recent_first(user, repo):
    first = await repo.create(user.id, ConversationMode.CHAT, "first")
    second = await repo.create(user.id, ConversationMode.TOOL, "second")
    await repo.add_message(first.id, MessageRole.USER, "bump")

    listed = await repo.list_for_user(user.id)

    assert [c.id for c in listed] == [first.id, second.id]


@pytest.mark.asyncio
async def test_delete_removes_messages(user, repo):
    conversation = await repo.create(user.id, ConversationMode.CHAT, "t")
    await repo.add_message(conversation.id, MessageRole.USER, "hi")

    assert await repo.delete(conversation.id, user.id) is True
    assert await repo.get_owned(conversation.id, user.id) is None
    assert await repo.count_messages(conversation.id) == 0


@pytest.mark.asyncio
async def test_delete_by_non_owner_is_noop(user, repo, make_user):
    other = await make_user(name="Grace", email="grace@example.com", token="t2")
    conversation = await repo.create(user.id, ConversationMode.CHAT, "t")

    assert await repo.delete(conversation.id, other.id) is False
    assert await repo.get_owned(conversation.id, user.id) is not None


@pytest.mark.asyncio
async def test_update_title(user, repo):
    conversation = await repo.create(user.id, ConversationMode.CHAT, "old")
    await repo.update_title(conversation.id, "new")

    assert (await repo.get_owned(conversation.id, user.id)).title == "new"
    assert await repo.update_title("missing", "x") is None


@pytest.mark.asyncio
async def test_user_lookup_by_session_token(user):
    users = UserRepository()

    found = await users.get_by_session_token("session-token-1")
    assert (found.id, found.email) == (user.id, "ada@example.com")
    assert await users.get_by_session_token("nope") is None
