"""Repository layer for database operations."""

from orbital_cli.db.repositories.conversation_repo import ConversationRepository
from orbital_cli.db.repositories.user_repo import UserRepository


__all__ = ["ConversationRepository", "UserRepository"]
