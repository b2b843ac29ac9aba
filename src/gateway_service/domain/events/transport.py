"""Events emitted by a Session Transport into the supervisor's channel."""
from __future__ import annotations

from dataclasses import dataclass

from gateway_service.domain.entities.message import InboundMessage


@dataclass(frozen=True, slots=True)
class DisconnectEvent:
    reason_code: int | None = None
    message: str = ""
    logged_out: bool = False
    device_removed: bool = False


@dataclass(frozen=True, slots=True)
class CredentialChallenge:
    token: str


@dataclass(frozen=True, slots=True)
class ConnectionOpened:
    pass


@dataclass(frozen=True, slots=True)
class ConnectionClosed:
    disconnect: DisconnectEvent


@dataclass(frozen=True, slots=True)
class MessageReceived:
    message: InboundMessage
    from_self: bool = False
    is_notification: bool = True


TransportEvent = CredentialChallenge | ConnectionOpened | ConnectionClosed | MessageReceived
