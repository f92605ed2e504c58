"""Fixtures for invoking the orbital CLI against temporary files."""

import asyncio
from dataclasses import dataclass
from datetime import UTC, datetime, timedelta
from pathlib import Path

import pytest
from typer.testing import CliRunner

from orbital_cli.auth.models import Credential
from orbital_cli.auth.storage import JsonFileTokenStorage
from orbital_cli.db import close_db, init_db


@dataclass
class CliEnv:
    """Paths a test CLI run is pointed at."""

    root: Path
    config_file: Path
    token_file: Path
    db_url: str
    runner: CliRunner

    @property
    def storage(self) -> JsonFileTokenStorage:
        return JsonFileTokenStorage(self.token_file)

    def store_credential(self, token: str = "session-token-1", expires_in: timedelta = timedelta(days=1)) -> None:
        credential = Credential(access_token=token, expires_at=datetime.now(UTC) + expires_in)
        asyncio.run(self.storage.store(credential))


@pytest.fixture
def cli_env(tmp_path: Path) -> CliEnv:
    token_file = tmp_path / "auth" / "token.json"
    db_url = f"sqlite+aiosqlite:///{(tmp_path / 'data' / 'orbital.db').as_posix()}"
    config_file = tmp_path / "orbital.toml"
    config_file.write_text(
        "[auth]\n"
        'server_url = "http://auth.test"\n'
        f'token_file = "{token_file.as_posix()}"\n'
        "\n[database]\n"
        f'url = "{db_url}"\n'
        "\n[ai]\n"
        'api_key = "test-key"\n'
    )
    runner = CliRunner(env={"NO_COLOR": "1", "ORBITAL_CONFIG_FILE": str(config_file)})
    return CliEnv(tmp_path, config_file, token_file, db_url, runner)


@pytest.fixture
def seeded_user(cli_env: CliEnv, make_user):
    """A user with a live session in the CLI database and its token stored."""

    async def seed():
        await init_db(cli_env.db_url)
        try:
            return await make_user()
        finally:
            await close_db()

    user = asyncio.run(seed())
    cli_env.store_credential("session-token-1")
    return user
