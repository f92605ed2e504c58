"""Authorization server and credential storage settings."""

from pathlib import Path

from pydantic import BaseModel, Field, field_validator

from orbital_cli.core.system import get_orbital_config_dir


DEVICE_CODE_GRANT_TYPE = "urn:ietf:params:oauth:grant-type:device_code"


def _default_token_file() -> Path:
    return get_orbital_config_dir() / "token.json"


class AuthSettings(BaseModel):
    """Device authorization and token storage configuration."""

    server_url: str = Field(
        default="http://localhost:3005",
        description="Base URL of the authorization server",
    )
    base_path: str = Field(
        default="/api/auth",
        description="Path under server_url where the auth endpoints are mounted",
    )
    client_id: str = Field(
        default="orbital-cli",
        description="OAuth client ID sent with device requests",
    )
    scope: str = Field(
        default="openid profile email",
        description="Space separated scopes to request",
    )
    token_file: Path = Field(
        default_factory=_default_token_file,
        description="Where the bearer credential is stored",
    )
    request_timeout: float = Field(
        default=30.0,
        gt=0,
        description="Timeout in seconds for authorization server requests",
    )
    open_browser: bool = Field(
        default=True,
        description="Offer to open the verification URL in a browser",
    )

    @field_validator("server_url")
    @classmethod
    def strip_trailing_slash(cls, v: str) -> str:
        return v.rstrip("/")

    @field_validator("token_file", mode="after")
    @classmethod
    def expand_token_file(cls, v: Path) -> Path:
        return v.expanduser()

    @property
    def auth_base_url(self) -> str:
        """Full URL of the auth endpoints."""
        return f"{self.server_url}/{self.base_path.strip('/')}"
