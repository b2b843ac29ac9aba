from __future__ import annotations

from dataclasses import dataclass

from gateway_service.domain.value_objects.enums import SessionStatus


@dataclass(slots=True)
class SessionState:
    """Mutable session state. Written only by the ConnectionSupervisor."""

    status: SessionStatus = SessionStatus.DISCONNECTED
    qr: str | None = None
    generation: int = 0
