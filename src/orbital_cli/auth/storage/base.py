"""Abstract base class for token storage."""

from abc import ABC, abstractmethod

from orbital_cli.auth.models import Credential


class TokenStorage(ABC):
    """Abstract interface for token storage operations."""

    @abstractmethod
    async def load(self) -> Credential | None:
        """Load the credential from storage.

        Returns:
            Parsed credential if found and valid, None otherwise

        """

    @abstractmethod
    async def store(self, credential: Credential) -> bool:
        """Save the credential, replacing any previous one.

        Args:
            credential: Credential to save

        Returns:
            True if saved successfully, False otherwise

        """

    @abstractmethod
    async def exists(self) -> bool:
        """Check if a credential exists in storage.

        Returns:
            True if a credential exists, False otherwise

        """

    @abstractmethod
    async def clear(self) -> bool:
        """Delete the credential from storage.

        Returns:
            True if storage is empty afterwards, False otherwise

        """

    @abstractmethod
    def get_location(self) -> str:
        """Get the storage location description.

        Returns:
            Human-readable description of where the credential is stored

        """

    async def is_expired(self) -> bool:
        """Check whether the stored credential is missing or past its expiry."""
        credential = await self.load()
        return credential is None or credential.is_expired()
