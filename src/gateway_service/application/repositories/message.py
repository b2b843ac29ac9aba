from __future__ import annotations

from datetime import datetime
from typing import Protocol

from gateway_service.domain.entities.message import MessageRecord, NewMessageFlag


class MessageStore(Protocol):
    async def create_if_not_exists(self, record: MessageRecord) -> tuple[MessageRecord, bool]:
        """Append record. Return (record, created). If the id is already stored → return existing."""
        ...

    async def get(self, record_id: str) -> MessageRecord | None: ...

    async def list_all(self) -> list[MessageRecord]: ...


class FlagStore(Protocol):
    async def mark(self, message_id: str, at: datetime) -> None: ...

    async def consume(self) -> NewMessageFlag:
        """Return the current flag and reset has_new_messages."""
        ...
