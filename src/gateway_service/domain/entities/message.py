from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime


@dataclass(frozen=True, slots=True)
class InboundMessage:
    id: str
    sender: str
    content: str | None
    received_at: datetime


@dataclass(frozen=True, slots=True)
class MessageRecord:
    """Persisted inbox entry, received or sent."""

    id: str
    sender: str
    content: str
    timestamp: datetime
    read: bool
    outgoing: bool
    recipient: str | None = None


@dataclass(frozen=True, slots=True)
class NewMessageFlag:
    has_new_messages: bool
    last_message_time: datetime | None
    last_message_id: str | None
