"""
Spark — Matches API

Listing the caller's matches and reading a match's conversation.
"""

from __future__ import annotations

import uuid

import structlog
from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from spark.api.deps import get_conversation_service, get_current_user_id, get_matching_service
from spark.database import get_db
from spark.repositories.views import MatchWithProfile, MessageWithSender
from spark.schemas.match import MatchListItem, MatchListResponse
from spark.schemas.message import (
    MarkReadResponse,
    MessageListResponse,
    MessageResponse,
    MessageWithSenderResponse,
)
from spark.schemas.user import ProfileResponse
from spark.services.conversation_service import ConversationService
from spark.services.matching_service import MatchingService

logger = structlog.get_logger("spark.api.matches")

router = APIRouter()


def _match_item(item: MatchWithProfile) -> MatchListItem:
    profile = item.counterpart_profile
    return MatchListItem(
        id=item.match.id,
        user_id=item.counterpart_id,
        created_at=item.match.created_at,
        last_message_at=item.match.last_message_at,
        profile=ProfileResponse.model_validate(profile) if profile is not None else None,
        is_partial=item.is_partial,
    )


def _message_item(item: MessageWithSender) -> MessageWithSenderResponse:
    profile = item.sender_profile
    return MessageWithSenderResponse(
        **MessageResponse.model_validate(item.message).model_dump(),
        sender_name=profile.name if profile is not None else None,
        sender_photo=profile.photos[0] if profile is not None and profile.photos else None,
    )


# ──────────────────────────────────────────────────────────────────────────────
# GET / — Caller's matches, most recent activity first
# ──────────────────────────────────────────────────────────────────────────────

@router.get(
    "",
    response_model=MatchListResponse,
    summary="List the current user's matches",
)
async def list_matches(
    user_id: uuid.UUID = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db),
    matching_service: MatchingService = Depends(get_matching_service),
) -> MatchListResponse:
    items = await matching_service.get_user_matches(db, user_id)
    return MatchListResponse(matches=[_match_item(i) for i in items])


# ──────────────────────────────────────────────────────────────────────────────
# GET /{match_id}/messages — Conversation, oldest first
# ──────────────────────────────────────────────────────────────────────────────

@router.get(
    "/{match_id}/messages",
    response_model=MessageListResponse,
    summary="List messages in a match",
)
async def list_messages(
    match_id: uuid.UUID,
    user_id: uuid.UUID = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db),
    conversation_service: ConversationService = Depends(get_conversation_service),
) -> MessageListResponse:
    items = await conversation_service.get_match_messages(db, match_id, user_id=user_id)
    return MessageListResponse(messages=[_message_item(i) for i in items])


# ──────────────────────────────────────────────────────────────────────────────
# POST /{match_id}/read — Mark the counterpart's messages as read
# ──────────────────────────────────────────────────────────────────────────────

@router.post(
    "/{match_id}/read",
    response_model=MarkReadResponse,
    summary="Mark incoming messages in a match as read",
)
async def mark_read(
    match_id: uuid.UUID,
    user_id: uuid.UUID = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db),
    conversation_service: ConversationService = Depends(get_conversation_service),
) -> MarkReadResponse:
    updated = await conversation_service.mark_messages_as_read(db, match_id, user_id)
    return MarkReadResponse(updated=updated)
