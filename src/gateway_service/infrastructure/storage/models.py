"""On-disk JSON shapes for the inbox and new-message flag files."""
from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter


class StoredMessage(BaseModel):
    id: str
    sender: str
    message: str
    timestamp: datetime
    read: bool = False
    outgoing: bool = False
    recipient: str | None = None

    model_config = ConfigDict(extra="ignore")


class StoredFlag(BaseModel):
    has_new_messages: bool = Field(False, alias="hasNewMessages")
    last_message_time: datetime | None = Field(None, alias="lastMessageTime")
    message_id: str | None = Field(None, alias="messageId")

    model_config = ConfigDict(populate_by_name=True, extra="ignore")


StoredMessageList = TypeAdapter(list[StoredMessage])
