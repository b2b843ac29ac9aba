from __future__ import annotations

from datetime import datetime, timezone

from fastapi import APIRouter, Depends, File, Form, UploadFile

from gateway_service.api.deps import GatewayDep, require_api_key
from gateway_service.api.v1.schemas.message import (
    ContactMessagesResponse,
    InboxResponse,
    MessageResponse,
    SendMessageRequest,
    SendResultResponse,
)
from gateway_service.application.exceptions import ValidationError
from gateway_service.config import settings
from gateway_service.services import message_service

router = APIRouter(prefix="/api", tags=["messages"], dependencies=[Depends(require_api_key)])


@router.post("/send-message", response_model=SendResultResponse)
async def send_message(body: SendMessageRequest, gateway: GatewayDep) -> SendResultResponse:
    record = await message_service.send_text(
        gateway.supervisor,
        gateway.store,
        gateway.activity,
        gateway.clock,
        body.number,
        body.message,
        address_suffix=gateway.address_suffix,
    )
    return SendResultResponse(message_id=record.id, to=body.number)


@router.post("/send-media", response_model=SendResultResponse)
async def send_media(
    gateway: GatewayDep,
    number: str = Form(..., pattern=r"^\d+$"),
    caption: str = Form(""),
    file: UploadFile = File(...),
) -> SendResultResponse:
    filename = file.filename or ""
    # Reject unsupported types before reading the upload.
    message_service.resolve_media_type(filename)
    data = await file.read(settings.MAX_MEDIA_BYTES + 1)
    if len(data) > settings.MAX_MEDIA_BYTES:
        raise ValidationError(f"File exceeds {settings.MAX_MEDIA_BYTES} bytes")

    record = await message_service.send_media(
        gateway.supervisor,
        gateway.store,
        gateway.activity,
        gateway.clock,
        number,
        data,
        filename,
        caption,
        address_suffix=gateway.address_suffix,
    )
    return SendResultResponse(message_id=record.id, to=number, file_name=filename)


@router.get("/inbox", response_model=InboxResponse)
async def get_inbox(gateway: GatewayDep) -> InboxResponse:
    records = await message_service.list_inbox(gateway.store)
    flag = await message_service.consume_new_message_flag(gateway.flags)
    return InboxResponse(
        inbox=[MessageResponse.model_validate(r, from_attributes=True) for r in records],
        has_new_messages=flag.has_new_messages,
        last_message_time=flag.last_message_time,
        last_message_id=flag.last_message_id,
    )


@router.get("/inbox/{phone_number}", response_model=ContactMessagesResponse)
async def get_contact_messages(phone_number: str, gateway: GatewayDep) -> ContactMessagesResponse:
    records = await message_service.list_contact_messages(gateway.store, phone_number)
    return ContactMessagesResponse(
        phone_number=phone_number,
        messages=[MessageResponse.model_validate(r, from_attributes=True) for r in records],
        timestamp=datetime.now(timezone.utc),
    )
