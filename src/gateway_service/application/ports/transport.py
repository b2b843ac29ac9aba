from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Protocol

from gateway_service.domain.events.transport import TransportEvent
from gateway_service.domain.value_objects.enums import MediaKind

EventSink = Callable[[TransportEvent], None]


@dataclass(frozen=True, slots=True)
class TextPayload:
    text: str


@dataclass(frozen=True, slots=True)
class MediaPayload:
    kind: MediaKind
    data: bytes
    mimetype: str
    filename: str
    caption: str = ""


OutboundPayload = TextPayload | MediaPayload


@dataclass(frozen=True, slots=True)
class SendResult:
    id: str


class TransportHandle(Protocol):
    """A live connection returned by Transport.open()."""

    async def send(self, address: str, payload: OutboundPayload) -> SendResult: ...

    async def probe(self) -> bool | None:
        """Send a lightweight liveness probe. Raise or return False on failure."""
        ...

    def is_live(self) -> bool: ...

    async def logout(self) -> None: ...

    async def close(self) -> None: ...


class Transport(Protocol):
    """Opens connections to the messaging network.

    The transport reports lifecycle and inbound message events by calling
    ``sink``; it must never mutate gateway state directly.
    """

    async def open(self, credentials_dir: Path, sink: EventSink) -> TransportHandle: ...
