"""FastAPI dependency injection helpers."""
from __future__ import annotations

import secrets
from typing import Annotated

from fastapi import Depends, HTTPException, Request, status
from fastapi.security import APIKeyHeader

from gateway_service.config import settings
from gateway_service.container import Gateway

_api_key_scheme = APIKeyHeader(name="x-api-key", auto_error=False)


def get_gateway(request: Request) -> Gateway:
    return request.app.state.gateway


GatewayDep = Annotated[Gateway, Depends(get_gateway)]


def api_key_valid(candidate: str | None) -> bool:
    """An empty API_KEY disables authentication."""
    if not settings.API_KEY:
        return True
    return candidate is not None and secrets.compare_digest(candidate, settings.API_KEY)


async def require_api_key(
    api_key: Annotated[str | None, Depends(_api_key_scheme)],
) -> None:
    if not api_key_valid(api_key):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Unauthorized: invalid API key",
        )
