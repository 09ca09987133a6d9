from pydantic import Field, model_validator
from uuid import UUID
from datetime import datetime
from typing import Optional

from spark.schemas.base import CamelModel


class MessageCreate(CamelModel):
    """Address a message by ``matchId`` or by ``recipientId``, not both."""

    content: str
    message_type: str = Field("text", alias="type")
    recipient_id: Optional[UUID] = None
    match_id: Optional[UUID] = None
    voice_url: Optional[str] = None
    voice_duration: Optional[int] = None

    @model_validator(mode="after")
    def _one_target(self) -> "MessageCreate":
        if (self.recipient_id is None) == (self.match_id is None):
            raise ValueError("Provide exactly one of recipientId or matchId")
        return self


class MessageResponse(CamelModel):
    id: UUID
    match_id: UUID
    sender_id: UUID
    content: str
    message_type: str = Field(alias="type")
    voice_url: Optional[str] = None
    voice_duration: Optional[int] = None
    is_read: bool
    created_at: datetime


class MessageWithSenderResponse(MessageResponse):
    sender_name: Optional[str] = None
    sender_photo: Optional[str] = None


class MessageListResponse(CamelModel):
    messages: list[MessageWithSenderResponse]


class MarkReadResponse(CamelModel):
    updated: int
