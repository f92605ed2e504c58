"""Tests for JSON file token storage."""

import stat
import sys
from datetime import UTC, datetime, timedelta
from pathlib import Path

import pytest

from orbital_cli.auth.models import Credential
from orbital_cli.auth.storage import JsonFileTokenStorage


@pytest.fixture
def token_path(tmp_path: Path) -> Path:
    return tmp_path / "orbital-cli" / "token.json"


@pytest.fixture
def credential() -> Credential:
    return Credential(
        access_token="tok-123",
        expires_at=datetime.now(UTC) + timedelta(hours=1),
        scope="openid profile email",
    )


@pytest.mark.asyncio
async def test_store_then_load(token_path: Path, credential: Credential):
    storage = JsonFileTokenStorage(token_path)

    assert await storage.store(credential) is True
    loaded = await storage.load()

    assert loaded == credential
    assert await storage.exists()
    assert storage.get_location() == str(token_path)


@pytest.mark.asyncio
@pytest.mark.skipif(sys.platform == "win32", reason="POSIX permissions")
async def test_store_is_owner_only(token_path: Path, credential: Credential):
    storage = JsonFileTokenStorage(token_path)
    await storage.store(credential)

    mode = stat.S_IMODE(token_path.stat().st_mode)
    assert mode == 0o600


@pytest.mark.asyncio
async def test_store_replaces_without_leftovers(token_path: Path, credential: Credential):
    storage = JsonFileTokenStorage(token_path)
    await storage.store(credential)
    newer = credential.model_copy(update={"access_token": "tok-456"})

    await storage.store(newer)

    assert (await storage.load()).access_token == "tok-456"
    assert [p.name for p in token_path.parent.iterdir()] == ["token.json"]


@pytest.mark.asyncio
async def test_load_missing_returns_none(token_path: Path):
    assert await JsonFileTokenStorage(token_path).load() is None


@pytest.mark.asyncio
async def test_load_malformed_returns_none(token_path: Path):
    token_path.parent.mkdir(parents=True)
    token_path.write_text("{not json")

    assert await JsonFileTokenStorage(token_path).load() is None


@pytest.mark.asyncio
async def test_load_wrong_shape_returns_none(token_path: Path):
    token_path.parent.mkdir(parents=True)
    token_path.write_text('{"token": "abc"}')

    assert await JsonFileTokenStorage(token_path).load() is None


@pytest.mark.asyncio
async def test_store_failure_returns_false(tmp_path: Path, credential: Credential):
    blocker = tmp_path / "not-a-dir"
    blocker.write_text("")
    storage = JsonFileTokenStorage(blocker / "token.json")

    assert await storage.store(credential) is False


@pytest.mark.asyncio
async def test_clear_removes_file(token_path: Path, credential: Credential):
    storage = JsonFileTokenStorage(token_path)
    await storage.store(credential)

    assert await storage.clear() is True
    assert not token_path.exists()


@pytest.mark.asyncio
async def test_clear_missing_file_succeeds(token_path: Path):
    assert await JsonFileTokenStorage(token_path).clear() is True


@pytest.mark.asyncio
async def test_is_expired(token_path: Path, credential: Credential):
    storage = JsonFileTokenStorage(token_path)
    assert await storage.is_expired() is True

    await storage.store(credential)
    assert await storage.is_expired() is False

    await storage.store(
        credential.model_copy(update={"expires_at": datetime.now(UTC) - timedelta(seconds=1)})
    )
    assert await storage.is_expired() is True
