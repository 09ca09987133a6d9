"""
Spark — Discovery API

The swipe deck: profiles the caller has not yet swiped on.
"""

from __future__ import annotations

import uuid
from typing import Optional

import structlog
from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from spark.api.deps import get_current_user_id, get_discovery_service
from spark.database import get_db
from spark.schemas.match import DiscoveryProfile, DiscoveryResponse
from spark.services.discovery_service import DiscoveryCandidate, DiscoveryService

logger = structlog.get_logger("spark.api.discovery")

router = APIRouter()


def _card(candidate: DiscoveryCandidate) -> DiscoveryProfile:
    profile = candidate.profile
    return DiscoveryProfile(
        id=profile.user_id,
        profile_id=profile.id,
        name=profile.name,
        age=profile.age,
        distance=candidate.distance_km,
        distance_is_estimate=candidate.distance_is_estimate,
        bio=profile.bio,
        interests=profile.interests or [],
        photos=profile.photos or [],
        is_verified=profile.is_verified,
        city=profile.city,
    )


@router.get(
    "",
    response_model=DiscoveryResponse,
    summary="Next candidate profiles to swipe on",
)
async def get_discovery(
    limit: Optional[int] = Query(
        None, description="Max profiles; defaults to DISCOVERY_DEFAULT_LIMIT, capped at DISCOVERY_MAX_LIMIT"
    ),
    user_id: uuid.UUID = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db),
    discovery_service: DiscoveryService = Depends(get_discovery_service),
) -> DiscoveryResponse:
    candidates = await discovery_service.get_discovery_profiles(db, user_id, limit=limit)
    return DiscoveryResponse(profiles=[_card(c) for c in candidates])
