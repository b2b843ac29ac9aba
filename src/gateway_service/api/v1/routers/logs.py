from __future__ import annotations

from fastapi import APIRouter, Depends, Query

from gateway_service.api.deps import GatewayDep, require_api_key
from gateway_service.api.v1.schemas.message import ActivityLogResponse

router = APIRouter(prefix="/api", tags=["logs"], dependencies=[Depends(require_api_key)])


@router.get("/logs", response_model=ActivityLogResponse)
async def get_logs(
    gateway: GatewayDep,
    limit: int = Query(100, ge=1, le=1000),
) -> ActivityLogResponse:
    return ActivityLogResponse(logs=await gateway.activity.recent(limit))
