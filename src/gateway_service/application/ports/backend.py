from __future__ import annotations

from typing import Any, Protocol

from pydantic import BaseModel


class BackendReply(BaseModel):
    success: bool
    text: str | None = None
    error: str | None = None

    @property
    def usable(self) -> bool:
        return self.success and bool(self.text and self.text.strip())


class ResponseBackend(Protocol):
    """A text-in/text-out automated responder."""

    async def respond(
        self,
        text: str,
        sender: str,
        instructions: str,
        model: str | None,
    ) -> BackendReply | dict[str, Any]: ...
