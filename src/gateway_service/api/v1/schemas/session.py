from __future__ import annotations

from pydantic import BaseModel

from gateway_service.domain.value_objects.enums import SessionStatus


class StatusResponse(BaseModel):
    status: SessionStatus


class QrCodeResponse(BaseModel):
    qr_code: str


class LogoutResponse(BaseModel):
    message: str = "Logged out successfully"
