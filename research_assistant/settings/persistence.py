"""Settings document persistence."""

import asyncio
import contextlib
import json
import logging
import os
import tempfile
from pathlib import Path
from typing import Protocol

from pydantic import ValidationError

from .models import ConfigurationDocument

logger = logging.getLogger(__name__)


class SettingsError(Exception):
    """Base exception for settings operations."""


class SettingsPersistenceError(SettingsError):
    """Raised when the settings document could not be saved.

    The previously persisted document stays authoritative on disk;
    re-issuing the same write retries the save.
    """


class SettingsPersistence(Protocol):
    """Whole-document load/save used by the settings store."""

    async def load(self) -> ConfigurationDocument: ...

    async def save(self, document: ConfigurationDocument) -> None: ...


class JsonSettingsFile:
    """Persists the settings document as a JSON file.

    Writes go to a temp file in the same directory which then replaces
    the target, so a crash mid-save leaves the previous document intact.
    """

    def __init__(self, path: Path):
        self._path = Path(path)

    @property
    def path(self) -> Path:
        return self._path

    async def load(self) -> ConfigurationDocument:
        """Load the document, or defaults when the file is missing or unreadable."""
        return await asyncio.to_thread(self._load_sync)

    async def save(self, document: ConfigurationDocument) -> None:
        """Atomically write the whole document.

        Raises:
            SettingsPersistenceError: If the file could not be written.
        """
        try:
            await asyncio.to_thread(self._write_sync, document.model_dump(mode="json"))
        except (OSError, TypeError, ValueError) as e:
            logger.error(f"Could not save settings to {self._path}: {e}")
            raise SettingsPersistenceError(f"Could not save settings: {e}") from e

    def _load_sync(self) -> ConfigurationDocument:
        if not self._path.exists():
            logger.info(f"No settings file at {self._path}, using defaults")
            return ConfigurationDocument()

        try:
            with open(self._path, "r", encoding="utf-8") as f:
                data = json.load(f)
            return ConfigurationDocument.model_validate(data)
        except (OSError, UnicodeDecodeError, json.JSONDecodeError, ValidationError) as e:
            logger.warning(f"Could not load settings from {self._path}: {e}")
            return ConfigurationDocument()

    def _write_sync(self, data: dict) -> None:
        self._path.parent.mkdir(parents=True, exist_ok=True)

        fd, tmp_name = tempfile.mkstemp(
            dir=str(self._path.parent), prefix=f".{self._path.name}.", suffix=".tmp"
        )
        tmp_path = Path(tmp_name)
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as tmp:
                json.dump(data, tmp, indent=2)
                tmp.flush()
                os.fsync(tmp.fileno())

            os.replace(tmp_path, self._path)
        finally:
            if tmp_path.exists():
                with contextlib.suppress(FileNotFoundError):
                    tmp_path.unlink()
