"""Resolve the stored credential to the signed-in user."""

from sqlalchemy.exc import SQLAlchemyError
from structlog import get_logger

from orbital_cli.auth.models import Credential
from orbital_cli.auth.storage.base import TokenStorage
from orbital_cli.db.models import User
from orbital_cli.db.repositories.user_repo import UserRepository
from orbital_cli.exceptions import NotAuthenticatedError, PersistenceError


logger = get_logger(__name__)


async def require_credential(storage: TokenStorage) -> Credential:
    """Load the stored credential, failing if it is missing or expired.

    Raises:
        NotAuthenticatedError: If there is no usable credential
    """
    credential = await storage.load()
    if credential is None:
        raise NotAuthenticatedError()
    if credential.is_expired():
        logger.info("stored_credential_expired", expires_at=credential.expires_at)
        raise NotAuthenticatedError("Your session has expired. Please login again.")
    return credential


async def resolve_user(
    credential: Credential, user_repo: UserRepository | None = None
) -> User:
    """Find the user whose live session matches the credential.

    Raises:
        NotAuthenticatedError: If no such user exists
        PersistenceError: If the user store cannot be queried
    """
    repo = user_repo or UserRepository()
    try:
        user = await repo.get_by_session_token(credential.access_token)
    except SQLAlchemyError as e:
        raise PersistenceError(f"Failed to look up user: {e}") from e
    if user is None:
        raise NotAuthenticatedError("User not found. Please login again.")
    logger.debug("user_resolved", user_id=user.id)
    return user


async def get_current_user(
    storage: TokenStorage, user_repo: UserRepository | None = None
) -> User:
    """Credential lookup followed by user resolution."""
    credential = await require_credential(storage)
    return await resolve_user(credential, user_repo)
