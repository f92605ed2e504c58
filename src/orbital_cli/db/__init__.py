"""Database package for SQLite persistence."""

from orbital_cli.db.engine import close_db, get_session, init_db
from orbital_cli.db.models import (
    Conversation,
    ConversationMode,
    ConversationRead,
    ConversationSummary,
    Message,
    MessageRead,
    MessageRole,
    Session,
    User,
)


__all__ = [
    "Conversation",
    "ConversationMode",
    "ConversationRead",
    "ConversationSummary",
    "Message",
    "MessageRead",
    "MessageRole",
    "Session",
    "User",
    "close_db",
    "get_session",
    "init_db",
]
