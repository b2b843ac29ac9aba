from __future__ import annotations

from pydantic import BaseModel, Field

from gateway_service.config import Settings


class AutoResponseSettings(BaseModel):
    """Runtime-editable auto-response configuration read at dispatch time."""

    ai_enabled: bool = False
    active_backend: str = "gemini"
    default_instructions: str = "You are a helpful assistant."
    backend_instructions: dict[str, str] = Field(default_factory=dict)
    backend_models: dict[str, str] = Field(default_factory=dict)
    fallback_backend: str | None = None
    auto_reply_enabled: bool = False
    auto_reply_message: str = ""

    def instructions_for(self, backend: str) -> str:
        override = self.backend_instructions.get(backend, "")
        return override if override.strip() else self.default_instructions

    @classmethod
    def from_settings(cls, settings: Settings) -> AutoResponseSettings:
        return cls(
            ai_enabled=settings.AI_ENABLED,
            active_backend=settings.ACTIVE_AI_BACKEND,
            default_instructions=settings.AI_INSTRUCTIONS,
            backend_instructions=dict(settings.AI_BACKEND_INSTRUCTIONS),
            backend_models=dict(settings.AI_BACKEND_MODELS),
            fallback_backend=settings.FALLBACK_AI_BACKEND or None,
            auto_reply_enabled=settings.AUTO_REPLY_ENABLED,
            auto_reply_message=settings.AUTO_REPLY_MESSAGE,
        )
