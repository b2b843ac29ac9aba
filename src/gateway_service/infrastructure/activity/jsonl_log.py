"""Append-only JSON-lines activity log."""
from __future__ import annotations

import asyncio
import json
import logging
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

logger = logging.getLogger(__name__)


class JsonlActivityLog:
    """Implements application.ports.activity.ActivityLog."""

    def __init__(self, path: Path) -> None:
        self._path = path
        self._lock = asyncio.Lock()

    def _append(self, line: str) -> None:
        self._path.parent.mkdir(parents=True, exist_ok=True)
        with self._path.open("a", encoding="utf-8") as fh:
            fh.write(line + "\n")

    def _read_lines(self) -> list[str]:
        if not self._path.exists():
            return []
        return self._path.read_text(encoding="utf-8").splitlines()

    async def record(self, kind: str, address: str, content: Any) -> None:
        entry = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "type": kind,
            "number": address,
            "content": content if isinstance(content, str) else json.dumps(content),
        }
        async with self._lock:
            await asyncio.to_thread(self._append, json.dumps(entry))

    async def recent(self, limit: int = 100) -> list[dict[str, Any]]:
        async with self._lock:
            lines = await asyncio.to_thread(self._read_lines)
        entries: list[dict[str, Any]] = []
        for line in reversed(lines):
            if len(entries) >= limit:
                break
            if not line.strip():
                continue
            try:
                entries.append(json.loads(line))
            except json.JSONDecodeError:
                logger.warning("Skipping malformed activity log line")
        return entries
