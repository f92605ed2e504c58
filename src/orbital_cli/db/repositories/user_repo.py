"""User repository for database operations."""

from datetime import UTC, datetime

from sqlmodel import select

from orbital_cli.db.engine import get_session
from orbital_cli.db.models import Session, User


class UserRepository:
    """Read access to users and their server-side sessions."""

    async def get_by_session_token(self, token: str) -> User | None:
        """Get the user owning a non-expired session with this token."""
        async with get_session() as session:
            now = datetime.now(UTC)
            result = await session.execute(
                select(User)
                .join(Session, Session.user_id == User.id)
                .where(
                    Session.token == token,
                    Session.expires_at > now,
                )
            )
            return result.scalars().first()
