"""
Spark — Swipes API

Recording a like can complete a mutual match; the response says so.
"""

from __future__ import annotations

import uuid

import structlog
from fastapi import APIRouter, Depends, Response, status
from sqlalchemy.ext.asyncio import AsyncSession

from spark.api.deps import get_current_user_id, get_swipe_service
from spark.database import get_db
from spark.schemas.match import MatchRecord, SwipeCreate, SwipeRecord, SwipeResponse
from spark.services.swipe_service import SwipeService

logger = structlog.get_logger("spark.api.swipes")

router = APIRouter()


# ──────────────────────────────────────────────────────────────────────────────
# POST / — Like or pass on a user
# ──────────────────────────────────────────────────────────────────────────────

@router.post(
    "",
    response_model=SwipeResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Record a swipe",
    responses={200: {"description": "Pair already swiped; stored decision returned"}},
)
async def create_swipe(
    payload: SwipeCreate,
    response: Response,
    user_id: uuid.UUID = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db),
    swipe_service: SwipeService = Depends(get_swipe_service),
) -> SwipeResponse:
    """Swipe on ``swipedId``.

    A repeat swipe on the same user returns the first decision with
    ``created: false`` and status 200.
    """
    outcome = await swipe_service.record_swipe(db, user_id, payload.swiped_id, payload.is_like)
    if not outcome.created:
        response.status_code = status.HTTP_200_OK

    return SwipeResponse(
        swipe=SwipeRecord.model_validate(outcome.swipe),
        created=outcome.created,
        is_match=outcome.is_match,
        match=MatchRecord.model_validate(outcome.match) if outcome.match is not None else None,
    )
