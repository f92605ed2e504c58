"""Conversation repository for database operations."""

from datetime import UTC, datetime

from sqlalchemy import delete, func
from sqlmodel import col, select

from orbital_cli.db.engine import get_session
from orbital_cli.db.models import Conversation, Message


class ConversationRepository:
    """Repository for Conversation and Message operations."""

    async def create(self, user_id: str, mode: str, title: str) -> Conversation:
        """Create a new conversation."""
        async with get_session() as session:
            conversation = Conversation(user_id=user_id, mode=mode, title=title)
            session.add(conversation)
            await session.commit()
            await session.refresh(conversation)
            return conversation

    async def get_owned(self, conversation_id: str, user_id: str) -> Conversation | None:
        """Get a conversation only if it belongs to the user."""
        async with get_session() as session:
            result = await session.execute(
                select(Conversation).where(
                    Conversation.id == conversation_id,
                    Conversation.user_id == user_id,
                )
            )
            return result.scalar_one_or_none()

    async def list_for_user(self, user_id: str) -> list[Conversation]:
        """List a user's conversations, most recently active first."""
        async with get_session() as session:
            result = await session.execute(
                select(Conversation)
                .where(Conversation.user_id == user_id)
                .order_by(col(Conversation.updated_at).desc())
            )
            return list(result.scalars().all())

    async def update_title(self, conversation_id: str, title: str) -> Conversation | None:
        """Overwrite a conversation title."""
        async with get_session() as session:
            conversation = await session.get(Conversation, conversation_id)
            if conversation:
                conversation.title = title
                conversation.updated_at = datetime.now(UTC)
                session.add(conversation)
                await session.commit()
                await session.refresh(conversation)
            return conversation

    async def delete(self, conversation_id: str, user_id: str) -> bool:
        """Delete an owned conversation and its messages.

        Returns True if deleted, False if the id/user pair does not match.
        """
        async with get_session() as session:
            result = await session.execute(
                select(Conversation).where(
                    Conversation.id == conversation_id,
                    Conversation.user_id == user_id,
                )
            )
            conversation = result.scalar_one_or_none()
            if not conversation:
                return False
            await session.execute(
                delete(Message).where(col(Message.conversation_id) == conversation_id)
            )
            await session.delete(conversation)
            await session.commit()
            return True

    async def add_message(self, conversation_id: str, role: str, content: str) -> Message:
        """Append a message and bump the conversation's updated_at."""
        async with get_session() as session:
            now = datetime.now(UTC)
            message = Message(
                conversation_id=conversation_id,
                role=role,
                content=content,
                created_at=now,
            )
            session.add(message)
            conversation = await session.get(Conversation, conversation_id)
            if conversation:
                conversation.updated_at = now
                session.add(conversation)
            await session.commit()
            await session.refresh(message)
            return message

    async def list_messages(self, conversation_id: str) -> list[Message]:
        """List a conversation's messages, oldest first."""
        async with get_session() as session:
            result = await session.execute(
                select(Message)
                .where(Message.conversation_id == conversation_id)
                .order_by(col(Message.created_at).asc())
            )
            return list(result.scalars().all())

    async def last_message(self, conversation_id: str) -> Message | None:
        """Get the newest message of a conversation."""
        async with get_session() as session:
            result = await session.execute(
                select(Message)
                .where(Message.conversation_id == conversation_id)
                .order_by(col(Message.created_at).desc())
                .limit(1)
            )
            return result.scalar_one_or_none()

    async def count_messages(self, conversation_id: str) -> int:
        """Count a conversation's messages."""
        async with get_session() as session:
            stmt = select(func.count()).select_from(Message).where(
                Message.conversation_id == conversation_id
            )
            result = await session.execute(stmt)
            return int(result.scalar_one())
