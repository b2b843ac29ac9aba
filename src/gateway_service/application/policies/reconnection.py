"""Classification of transport disconnects into recovery actions."""
from __future__ import annotations

from dataclasses import dataclass

from gateway_service.domain.events.transport import DisconnectEvent
from gateway_service.domain.value_objects.enums import DisconnectClass, DisconnectReason

BAD_SESSION_DELAY = 2.0
CONNECTION_REPLACED_DELAY = 10.0
NETWORK_DELAY = 3.0
DEFAULT_DELAY = 5.0

_NETWORK_CODES = frozenset(
    {DisconnectReason.CONNECTION_CLOSED, DisconnectReason.CONNECTION_LOST}
)


@dataclass(frozen=True, slots=True)
class ReconnectDecision:
    classification: DisconnectClass
    reconnect: bool
    delay: float | None
    clear_credentials: bool


def is_permanent(event: DisconnectEvent) -> bool:
    return (
        event.logged_out
        or event.device_removed
        or event.reason_code == DisconnectReason.LOGGED_OUT
    )


def classify_disconnect(event: DisconnectEvent) -> ReconnectDecision:
    """Map a disconnect to reconnect/delay/clear-credentials.

    Permanent causes never reconnect; a replaced session backs off longest
    so it does not fight the session that replaced it.
    """
    if is_permanent(event):
        return ReconnectDecision(DisconnectClass.PERMANENT, False, None, True)

    code = event.reason_code
    if code == DisconnectReason.BAD_SESSION:
        return ReconnectDecision(
            DisconnectClass.TRANSIENT_CORRUPT, True, BAD_SESSION_DELAY, True,
        )
    if code == DisconnectReason.CONNECTION_REPLACED:
        return ReconnectDecision(
            DisconnectClass.TRANSIENT_CONFLICT, True, CONNECTION_REPLACED_DELAY, False,
        )
    if code in _NETWORK_CODES or "timed out" in event.message.lower():
        return ReconnectDecision(
            DisconnectClass.TRANSIENT_NETWORK, True, NETWORK_DELAY, False,
        )
    return ReconnectDecision(DisconnectClass.TRANSIENT_UNKNOWN, True, DEFAULT_DELAY, False)
