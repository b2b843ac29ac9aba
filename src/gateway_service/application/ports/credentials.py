from __future__ import annotations

from pathlib import Path
from typing import Protocol


class CredentialStore(Protocol):
    """Directory owned by the transport; the gateway only ever wipes it."""

    @property
    def path(self) -> Path: ...

    async def clear(self) -> None: ...
