"""Data models for device authorization and stored credentials."""

from datetime import UTC, datetime, timedelta
from enum import StrEnum

from pydantic import BaseModel, ConfigDict, Field, field_validator


# Better-Auth sessions live for seven days unless configured otherwise
DEFAULT_TOKEN_LIFETIME_SECONDS = 7 * 24 * 60 * 60
DEFAULT_POLL_INTERVAL_SECONDS = 5
MIN_POLL_INTERVAL_SECONDS = 1


class DeviceGrant(BaseModel):
    """Response of the device authorization endpoint (RFC 8628 section 3.2).

    Only lives in memory for the duration of a login.
    """

    model_config = ConfigDict(extra="ignore")

    device_code: str = Field(min_length=1)
    user_code: str = Field(min_length=1)
    verification_uri: str = Field(min_length=1)
    verification_uri_complete: str | None = None
    expires_in: int = Field(gt=0, description="Seconds until the device code expires")
    interval: int = Field(
        default=DEFAULT_POLL_INTERVAL_SECONDS,
        description="Minimum seconds between token requests",
    )

    @field_validator("interval", mode="before")
    @classmethod
    def clamp_interval(cls, v: int | None) -> int:
        if v is None:
            return DEFAULT_POLL_INTERVAL_SECONDS
        return max(MIN_POLL_INTERVAL_SECONDS, int(v))

    @property
    def browser_url(self) -> str:
        """URL to open in a browser, preferring the one with the code embedded."""
        return self.verification_uri_complete or self.verification_uri


class TokenResponse(BaseModel):
    """Successful token endpoint response."""

    model_config = ConfigDict(extra="ignore")

    access_token: str = Field(min_length=1)
    token_type: str = "Bearer"
    expires_in: int | None = None
    refresh_token: str | None = None
    scope: str | None = None


class PollErrorCode(StrEnum):
    """Error codes the token endpoint returns while polling (RFC 8628 section 3.5)."""

    AUTHORIZATION_PENDING = "authorization_pending"
    SLOW_DOWN = "slow_down"
    ACCESS_DENIED = "access_denied"
    EXPIRED_TOKEN = "expired_token"


class TokenErrorResponse(BaseModel):
    """Error payload of the token endpoint."""

    model_config = ConfigDict(extra="ignore")

    error: str
    error_description: str | None = None


class PollState(StrEnum):
    """States of the device polling state machine."""

    REQUESTED = "requested"
    POLLING = "polling"
    AUTHORIZED = "authorized"
    DENIED = "denied"
    EXPIRED = "expired"
    FAILED = "failed"


class Credential(BaseModel):
    """Bearer credential persisted by the token store."""

    access_token: str = Field(min_length=1)
    token_type: str = "Bearer"
    expires_at: datetime
    refresh_token: str | None = None
    scope: str | None = None

    @field_validator("expires_at", mode="after")
    @classmethod
    def ensure_timezone(cls, v: datetime) -> datetime:
        if v.tzinfo is None:
            return v.replace(tzinfo=UTC)
        return v.astimezone(UTC)

    @classmethod
    def from_token_response(
        cls, response: TokenResponse, issued_at: datetime | None = None
    ) -> "Credential":
        """Build a credential, turning the relative lifetime into a timestamp."""
        issued_at = issued_at or datetime.now(UTC)
        lifetime = response.expires_in or DEFAULT_TOKEN_LIFETIME_SECONDS
        return cls(
            access_token=response.access_token,
            token_type=response.token_type,
            expires_at=issued_at + timedelta(seconds=lifetime),
            refresh_token=response.refresh_token,
            scope=response.scope,
        )

    def is_expired(self, now: datetime | None = None) -> bool:
        """Check expiry with no grace period."""
        return (now or datetime.now(UTC)) >= self.expires_at
