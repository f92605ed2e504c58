"""Authentication: device authorization, credential storage, identity."""

from orbital_cli.auth.models import Credential, DeviceGrant, PollState
from orbital_cli.auth.storage import JsonFileTokenStorage, TokenStorage


__all__ = [
    "Credential",
    "DeviceGrant",
    "JsonFileTokenStorage",
    "PollState",
    "TokenStorage",
]
