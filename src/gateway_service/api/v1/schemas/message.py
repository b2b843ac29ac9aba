from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, Field


class SendMessageRequest(BaseModel):
    number: str = Field(pattern=r"^\d+$", description="Digits only, starting with the country code")
    message: str = Field(min_length=1)


class SendResultResponse(BaseModel):
    message_id: str
    to: str
    file_name: str | None = None


class MessageResponse(BaseModel):
    id: str
    sender: str
    recipient: str | None = None
    message: str = Field(validation_alias="content")
    timestamp: datetime
    read: bool
    outgoing: bool

    model_config = {"from_attributes": True, "populate_by_name": True}


class InboxResponse(BaseModel):
    inbox: list[MessageResponse]
    has_new_messages: bool
    last_message_time: datetime | None
    last_message_id: str | None


class ContactMessagesResponse(BaseModel):
    phone_number: str
    messages: list[MessageResponse]
    timestamp: datetime


class ActivityLogResponse(BaseModel):
    logs: list[dict]
