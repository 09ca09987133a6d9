"""
Spark — Likes API (VIP)

"Who liked me".  Non-VIP callers get the count only, as a teaser; no
profiles are returned to them.
"""

from __future__ import annotations

import uuid

import structlog
from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from spark.api.deps import get_current_user_id, get_subscription_service, get_swipe_service
from spark.database import get_db
from spark.schemas.match import LikesResponse
from spark.schemas.user import ProfileResponse
from spark.services.subscription_service import SubscriptionService
from spark.services.swipe_service import SwipeService

logger = structlog.get_logger("spark.api.likes")

router = APIRouter()


@router.get(
    "",
    response_model=LikesResponse,
    summary="Users who liked the caller (VIP only)",
)
async def get_likes(
    user_id: uuid.UUID = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db),
    swipe_service: SwipeService = Depends(get_swipe_service),
    subscription_service: SubscriptionService = Depends(get_subscription_service),
) -> LikesResponse:
    if not await subscription_service.is_user_vip(db, user_id):
        count = await swipe_service.count_user_likes(db, user_id)
        logger.info("likes_gated", user_id=str(user_id), count=count)
        return LikesResponse(likes=[], count=count, is_vip=False)

    likes = await swipe_service.get_user_likes(db, user_id)
    return LikesResponse(
        likes=[ProfileResponse.model_validate(item.profile) for item in likes],
        count=len(likes),
        is_vip=True,
    )
