from __future__ import annotations

from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse

from gateway_service.domain.value_objects.enums import SessionStatus

router = APIRouter(tags=["health"])


@router.get("/healthz")
async def healthz() -> dict[str, str]:
    return {"status": "ok"}


@router.get("/readyz")
async def readyz(request: Request) -> JSONResponse:
    errors: list[str] = []

    try:
        redis = request.app.state.redis
        await redis.ping()
    except Exception as exc:  # noqa: BLE001
        errors.append(f"redis: {exc}")

    session_status = SessionStatus.DISCONNECTED
    gateway = getattr(request.app.state, "gateway", None)
    if gateway is None:
        errors.append("gateway: not started")
    else:
        session_status = gateway.supervisor.status

    if errors:
        return JSONResponse(
            status_code=503,
            content={"status": "unavailable", "session": session_status.value, "errors": errors},
        )
    return JSONResponse(content={"status": "ready", "session": session_status.value})
