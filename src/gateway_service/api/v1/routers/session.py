from __future__ import annotations

from fastapi import APIRouter, Depends

from gateway_service.api.deps import GatewayDep, require_api_key
from gateway_service.api.v1.schemas.session import LogoutResponse, QrCodeResponse, StatusResponse
from gateway_service.application.exceptions import NotFoundError

router = APIRouter(prefix="/api", tags=["session"], dependencies=[Depends(require_api_key)])


@router.get("/qr", response_model=QrCodeResponse)
async def get_qr_code(gateway: GatewayDep) -> QrCodeResponse:
    qr = await gateway.supervisor.get_qr_code()
    if not qr:
        raise NotFoundError("QR code not available")
    return QrCodeResponse(qr_code=qr)


@router.get("/status", response_model=StatusResponse)
async def get_status(gateway: GatewayDep) -> StatusResponse:
    return StatusResponse(status=gateway.supervisor.status)


@router.post("/logout", response_model=LogoutResponse)
async def logout(gateway: GatewayDep) -> LogoutResponse:
    await gateway.supervisor.logout()
    return LogoutResponse()
