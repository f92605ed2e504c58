"""Consolidated exception hierarchy for Orbital CLI.

All exceptions use proper exception chaining with the `from` keyword.
Error types use StrEnum so CLI output and logs share stable codes.
"""

from enum import StrEnum
from typing import Any


class ErrorType(StrEnum):
    """Error type codes for log events and CLI messages."""

    AUTHENTICATION = "authentication_error"
    ACCESS_DENIED = "access_denied"
    EXPIRED = "expired_token"
    SLOW_DOWN = "slow_down"
    PROTOCOL = "protocol_error"
    NETWORK = "network_error"
    NOT_AUTHENTICATED = "not_authenticated"
    PERSISTENCE = "persistence_error"
    AI_SERVICE = "ai_service_error"
    AGENT = "agent_error"
    CONFIGURATION = "configuration_error"
    INTERNAL = "internal_error"


# ============================================================================
# Base Exceptions
# ============================================================================


class OrbitalError(Exception):
    """Base exception for all Orbital CLI errors.

    All exceptions inherit from this base class for easy catching.
    Supports a structured error type and free-form details.
    """

    def __init__(
        self,
        message: str,
        *,
        error_type: ErrorType | str = ErrorType.INTERNAL,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        # Convert string error_type to ErrorType if possible
        if isinstance(error_type, str) and not isinstance(error_type, ErrorType):
            try:
                self.error_type = ErrorType(error_type)
            except ValueError:
                # Keep as string if not a valid ErrorType value
                self.error_type = error_type  # type: ignore[assignment]
        else:
            self.error_type = error_type
        self.details = details or {}


# ============================================================================
# Authentication & Device Authorization Errors
# ============================================================================


class AuthenticationError(OrbitalError):
    """Authentication failed."""

    def __init__(
        self,
        message: str = "Authentication failed",
        *,
        error_type: ErrorType | str = ErrorType.AUTHENTICATION,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message, error_type=error_type, details=details)


class DeviceAuthorizationError(AuthenticationError):
    """Base error for the device authorization grant."""

    pass


class AccessDeniedError(DeviceAuthorizationError):
    """The operator denied the device authorization request."""

    def __init__(self, message: str = "Access was denied by the user") -> None:
        super().__init__(message, error_type=ErrorType.ACCESS_DENIED)


class DeviceCodeExpiredError(DeviceAuthorizationError):
    """The device code expired before the operator approved it."""

    def __init__(
        self, message: str = "The device code has expired. Please try again."
    ) -> None:
        super().__init__(message, error_type=ErrorType.EXPIRED)


class SlowDownError(DeviceAuthorizationError):
    """The server asked the client to poll less frequently.

    Handled inside the poller; never surfaced to the operator.
    """

    def __init__(self, message: str = "Polling too fast") -> None:
        super().__init__(message, error_type=ErrorType.SLOW_DOWN)


class ProtocolError(DeviceAuthorizationError):
    """Unexpected response shape or undocumented error code."""

    def __init__(
        self,
        message: str,
        *,
        error_code: str | None = None,
        status_code: int | None = None,
    ) -> None:
        details: dict[str, Any] = {}
        if error_code is not None:
            details["error_code"] = error_code
        if status_code is not None:
            details["status_code"] = status_code
        super().__init__(message, error_type=ErrorType.PROTOCOL, details=details)
        self.error_code = error_code
        self.status_code = status_code


class NetworkError(DeviceAuthorizationError):
    """Transport failure while talking to the authorization server."""

    def __init__(self, message: str = "Connection failed") -> None:
        super().__init__(message, error_type=ErrorType.NETWORK)


class NotAuthenticatedError(AuthenticationError):
    """No valid stored credential when one is required."""

    def __init__(self, message: str = "Not authenticated. Please login first.") -> None:
        super().__init__(message, error_type=ErrorType.NOT_AUTHENTICATED)


# ============================================================================
# Persistence Errors
# ============================================================================


class PersistenceError(OrbitalError):
    """A store read or write failed."""

    def __init__(self, message: str, *, details: dict[str, Any] | None = None) -> None:
        super().__init__(message, error_type=ErrorType.PERSISTENCE, details=details)


# ============================================================================
# AI & Agent Errors
# ============================================================================


class AIServiceError(OrbitalError):
    """The AI provider call failed."""

    def __init__(
        self,
        message: str,
        *,
        status_code: int | None = None,
        response_text: str | None = None,
    ) -> None:
        details: dict[str, Any] = {}
        if status_code is not None:
            details["status_code"] = status_code
        super().__init__(message, error_type=ErrorType.AI_SERVICE, details=details)
        self.status_code = status_code
        self.response_text = response_text


class AgentError(OrbitalError):
    """Application generation failed."""

    def __init__(self, message: str) -> None:
        super().__init__(message, error_type=ErrorType.AGENT)


# ============================================================================
# Configuration Errors
# ============================================================================


class ConfigValidationError(OrbitalError):
    """Configuration validation error."""

    def __init__(self, message: str, *, details: dict[str, Any] | None = None) -> None:
        super().__init__(
            message,
            error_type=ErrorType.CONFIGURATION,
            details=details,
        )


__all__ = [
    # Enums
    "ErrorType",
    # Base
    "OrbitalError",
    # Authentication
    "AuthenticationError",
    "DeviceAuthorizationError",
    "AccessDeniedError",
    "DeviceCodeExpiredError",
    "SlowDownError",
    "ProtocolError",
    "NetworkError",
    "NotAuthenticatedError",
    # Persistence
    "PersistenceError",
    # AI
    "AIServiceError",
    "AgentError",
    # Configuration
    "ConfigValidationError",
]
