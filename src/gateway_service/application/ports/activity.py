from __future__ import annotations

from typing import Any, Protocol


class ActivityLog(Protocol):
    async def record(self, kind: str, address: str, content: Any) -> None: ...

    async def recent(self, limit: int = 100) -> list[dict[str, Any]]: ...
