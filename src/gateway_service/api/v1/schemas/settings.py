from __future__ import annotations

from pydantic import BaseModel

from gateway_service.application.dto.auto_response import AutoResponseSettings


class AutoResponseSettingsResponse(AutoResponseSettings):
    available_backends: list[str] = []


class AutoResponseSettingsUpdate(BaseModel):
    ai_enabled: bool | None = None
    active_backend: str | None = None
    default_instructions: str | None = None
    backend_instructions: dict[str, str] | None = None
    backend_models: dict[str, str] | None = None
    fallback_backend: str | None = None
    auto_reply_enabled: bool | None = None
    auto_reply_message: str | None = None
