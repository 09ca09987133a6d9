"""
Spark — Messages API
"""

from __future__ import annotations

import uuid

import structlog
from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from spark.api.deps import get_conversation_service, get_current_user_id
from spark.database import get_db
from spark.schemas.message import MessageCreate, MessageResponse
from spark.services.conversation_service import ConversationService

logger = structlog.get_logger("spark.api.messages")

router = APIRouter()


@router.post(
    "",
    response_model=MessageResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Send a message to a match",
)
async def send_message(
    payload: MessageCreate,
    user_id: uuid.UUID = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db),
    conversation_service: ConversationService = Depends(get_conversation_service),
) -> MessageResponse:
    """Send to a match by ``matchId``, or to a matched user by ``recipientId``.

    Users who are not matched cannot message each other.
    """
    kwargs = dict(
        content=payload.content,
        message_type=payload.message_type,
        voice_url=payload.voice_url,
        voice_duration=payload.voice_duration,
    )
    if payload.match_id is not None:
        message = await conversation_service.post_message(db, payload.match_id, user_id, **kwargs)
    else:
        message = await conversation_service.post_message_to_user(
            db, user_id, payload.recipient_id, **kwargs
        )
    return MessageResponse.model_validate(message)
