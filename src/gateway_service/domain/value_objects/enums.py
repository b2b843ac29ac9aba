from __future__ import annotations

from enum import IntEnum, StrEnum


class SessionStatus(StrEnum):
    DISCONNECTED = "disconnected"
    CONNECTING = "connecting"
    CONNECTED = "connected"


class DisconnectReason(IntEnum):
    """Close status codes reported by the messaging network library."""

    LOGGED_OUT = 401
    FORBIDDEN = 403
    CONNECTION_LOST = 408
    TIMED_OUT = 408
    MULTIDEVICE_MISMATCH = 411
    CONNECTION_CLOSED = 428
    CONNECTION_REPLACED = 440
    BAD_SESSION = 500
    UNAVAILABLE_SERVICE = 503
    RESTART_REQUIRED = 515


class DisconnectClass(StrEnum):
    PERMANENT = "permanent"
    TRANSIENT_CORRUPT = "transient-corrupt"
    TRANSIENT_CONFLICT = "transient-conflict"
    TRANSIENT_NETWORK = "transient-network"
    TRANSIENT_UNKNOWN = "transient-unknown"


class MediaKind(StrEnum):
    IMAGE = "image"
    DOCUMENT = "document"
