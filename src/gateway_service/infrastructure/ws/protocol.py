"""WebSocket message envelope models."""
from __future__ import annotations

from typing import Any

from pydantic import BaseModel


class WsInbound(BaseModel):
    """Client → Server."""

    type: str  # request_inbox | request_status | ping | pong
    data: Any = None


class WsOutbound(BaseModel):
    """Server → Client."""

    type: str  # inbox_data | connection_status | new_message | error | pong
    data: Any = None
