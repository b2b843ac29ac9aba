from __future__ import annotations

from typing import Protocol

from gateway_service.domain.entities.message import MessageRecord
from gateway_service.domain.value_objects.enums import SessionStatus


class StatusBroadcaster(Protocol):
    async def publish_status(self, status: SessionStatus) -> None: ...


class MessageBroadcaster(Protocol):
    async def publish_message(self, record: MessageRecord) -> None: ...


class Broadcaster(StatusBroadcaster, MessageBroadcaster, Protocol):
    pass
