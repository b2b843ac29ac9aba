from __future__ import annotations

import asyncio
import logging
import shutil
from pathlib import Path

logger = logging.getLogger(__name__)


class SessionDirectory:
    """Implements application.ports.credentials.CredentialStore."""

    def __init__(self, path: Path) -> None:
        self._path = path

    @property
    def path(self) -> Path:
        self._path.mkdir(parents=True, exist_ok=True)
        return self._path

    def _wipe(self) -> None:
        if self._path.exists():
            shutil.rmtree(self._path)
        self._path.mkdir(parents=True, exist_ok=True)

    async def clear(self) -> None:
        await asyncio.to_thread(self._wipe)
        logger.info("Cleared stored credentials in %s", self._path)
