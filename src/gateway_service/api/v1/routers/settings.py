from __future__ import annotations

from fastapi import APIRouter, Depends

from gateway_service.api.deps import GatewayDep, require_api_key
from gateway_service.api.v1.schemas.settings import (
    AutoResponseSettingsResponse,
    AutoResponseSettingsUpdate,
)
from gateway_service.application.dto.auto_response import AutoResponseSettings
from gateway_service.container import Gateway

router = APIRouter(prefix="/api", tags=["settings"], dependencies=[Depends(require_api_key)])


def _response(gateway: Gateway) -> AutoResponseSettingsResponse:
    return AutoResponseSettingsResponse(
        **gateway.pipeline.config.model_dump(),
        available_backends=gateway.pipeline.backend_names,
    )


@router.get("/config", response_model=AutoResponseSettingsResponse)
async def get_config(gateway: GatewayDep) -> AutoResponseSettingsResponse:
    return _response(gateway)


@router.put("/config", response_model=AutoResponseSettingsResponse)
async def update_config(
    body: AutoResponseSettingsUpdate, gateway: GatewayDep,
) -> AutoResponseSettingsResponse:
    changes = body.model_dump(exclude_unset=True, exclude_none=True)
    updated = AutoResponseSettings.model_validate(
        {**gateway.pipeline.config.model_dump(), **changes},
    )
    gateway.pipeline.update_config(updated)
    return _response(gateway)
