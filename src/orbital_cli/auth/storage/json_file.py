"""JSON file storage for the bearer credential."""

import asyncio
import contextlib
import os
import tempfile
from pathlib import Path

import orjson
from pydantic import ValidationError
from structlog import get_logger

from orbital_cli.auth.models import Credential
from orbital_cli.auth.storage.base import TokenStorage


logger = get_logger(__name__)


class JsonFileTokenStorage(TokenStorage):
    """Single JSON file holding one credential.

    Writes go to a temporary file in the same directory which is then renamed
    over the target, so readers see either the old or the new credential and
    never a partial one.
    """

    def __init__(self, file_path: Path) -> None:
        """Initialize storage with file path.

        Args:
            file_path: Path to the JSON credential file

        """
        self.file_path = file_path

    async def load(self) -> Credential | None:
        return await asyncio.to_thread(self._read)

    async def store(self, credential: Credential) -> bool:
        try:
            await asyncio.to_thread(self._write_atomic, credential)
        except OSError:
            logger.exception("token_store_write_failed", path=str(self.file_path))
            return False
        logger.debug("token_stored", path=str(self.file_path))
        return True

    async def exists(self) -> bool:
        return self.file_path.is_file()

    async def clear(self) -> bool:
        try:
            self.file_path.unlink(missing_ok=True)
        except OSError:
            logger.exception("token_clear_failed", path=str(self.file_path))
            return False
        logger.debug("token_cleared", path=str(self.file_path))
        return True

    def get_location(self) -> str:
        return str(self.file_path)

    def _read(self) -> Credential | None:
        if not self.file_path.exists():
            return None

        try:
            data = orjson.loads(self.file_path.read_bytes())
            return Credential.model_validate(data)
        except (orjson.JSONDecodeError, ValidationError):
            logger.warning("token_file_malformed", path=str(self.file_path))
            return None
        except OSError:
            logger.exception("token_file_read_error", path=str(self.file_path))
            return None

    def _write_atomic(self, credential: Credential) -> None:
        """Write the credential via temp file + rename.

        Raises:
            OSError: If the directory cannot be created or the write fails

        """
        self.file_path.parent.mkdir(parents=True, exist_ok=True)
        payload = orjson.dumps(
            credential.model_dump(mode="json"), option=orjson.OPT_INDENT_2
        )

        # mkstemp creates the file with mode 0600
        fd, tmp_name = tempfile.mkstemp(
            dir=self.file_path.parent,
            prefix=f".{self.file_path.name}.",
            suffix=".tmp",
        )
        try:
            with os.fdopen(fd, "wb") as tmp:
                tmp.write(payload)
                tmp.flush()
                os.fsync(tmp.fileno())
            os.replace(tmp_name, self.file_path)
        except BaseException:
            with contextlib.suppress(OSError):
                os.unlink(tmp_name)
            raise
