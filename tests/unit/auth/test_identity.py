"""Tests for resolving the stored credential to a user."""

from datetime import UTC, datetime, timedelta
from pathlib import Path

import pytest

from orbital_cli.auth.identity import get_current_user, require_credential, resolve_user
from orbital_cli.auth.models import Credential
from orbital_cli.auth.storage import JsonFileTokenStorage
from orbital_cli.exceptions import NotAuthenticatedError


def credential_for(token: str, expires_in: timedelta = timedelta(hours=1)) -> Credential:
    return Credential(access_token=token, expires_at=datetime.now(UTC) + expires_in)


@pytest.mark.asyncio
async def test_require_credential_missing(tmp_path: Path):
    with pytest.raises(NotAuthenticatedError):
        await require_credential(JsonFileTokenStorage(tmp_path / "token.json"))


@pytest.mark.asyncio
async def test_require_credential_expired(tmp_path: Path):
    storage = JsonFileTokenStorage(tmp_path / "token.json")
    await storage.store(credential_for("tok", timedelta(seconds=-5)))

    with pytest.raises(NotAuthenticatedError, match="expired"):
        await require_credential(storage)


@pytest.mark.asyncio
async def test_resolve_user_by_session_token(user):
    resolved = await resolve_user(credential_for("session-token-1"))

    assert resolved.id == user.id
    assert resolved.email == "ada@example.com"


@pytest.mark.asyncio
async def test_resolve_user_unknown_token(user):
    with pytest.raises(NotAuthenticatedError, match="User not found"):
        await resolve_user(credential_for("someone-elses-token"))


@pytest.mark.asyncio
async def test_resolve_user_ignores_expired_session(temp_db, make_user):
    await make_user(token="old-token", expires_in=timedelta(minutes=-1))

    with pytest.raises(NotAuthenticatedError):
        await resolve_user(credential_for("old-token"))


@pytest.mark.asyncio
async def test_get_current_user(user, tmp_path: Path):
    storage = JsonFileTokenStorage(tmp_path / "token.json")
    await storage.store(credential_for("session-token-1"))

    assert (await get_current_user(storage)).id == user.id
