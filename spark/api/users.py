"""
Spark — Users API

Endpoints for reading the caller's account and editing their profile.
"""

from __future__ import annotations

import uuid

import structlog
from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from spark.api.deps import get_current_user_id, get_subscription_service, get_user_service
from spark.database import get_db
from spark.models.profile import Profile
from spark.models.user import User
from spark.schemas.user import (
    ProfileResponse,
    ProfileUpdate,
    UserResponse,
    UserWithProfileResponse,
)
from spark.services.subscription_service import SubscriptionService
from spark.services.user_service import UserService

logger = structlog.get_logger("spark.api.users")

router = APIRouter()


def _user_with_profile(user: User, profile: Profile | None, is_vip: bool) -> UserWithProfileResponse:
    return UserWithProfileResponse(
        user=UserResponse.model_validate(user).model_copy(update={"is_vip": is_vip}),
        profile=ProfileResponse.model_validate(profile) if profile is not None else None,
    )


# ──────────────────────────────────────────────────────────────────────────────
# GET /me — Caller's user and profile
# ──────────────────────────────────────────────────────────────────────────────

@router.get(
    "/me",
    response_model=UserWithProfileResponse,
    summary="Get the current user and profile",
)
async def get_me(
    user_id: uuid.UUID = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db),
    user_service: UserService = Depends(get_user_service),
    subscription_service: SubscriptionService = Depends(get_subscription_service),
) -> UserWithProfileResponse:
    """``profile`` is null until the first ``PUT /update``."""
    user, profile = await user_service.get_user_with_profile(db, user_id)
    is_vip = await subscription_service.is_user_vip(db, user_id)
    return _user_with_profile(user, profile, is_vip)


# ──────────────────────────────────────────────────────────────────────────────
# PUT /update — Create or merge the caller's profile
# ──────────────────────────────────────────────────────────────────────────────

@router.put(
    "/update",
    response_model=UserWithProfileResponse,
    summary="Create or update the current user's profile",
)
async def update_profile(
    payload: ProfileUpdate,
    user_id: uuid.UUID = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db),
    user_service: UserService = Depends(get_user_service),
    subscription_service: SubscriptionService = Depends(get_subscription_service),
) -> UserWithProfileResponse:
    """Only fields present in the request body are applied.

    The first call creates the profile and must include name, age, gender
    and lookingFor.
    """
    log = logger.bind(user_id=str(user_id))
    log.info("update_profile_start")

    update_data = payload.model_dump(exclude_unset=True)
    user, profile = await user_service.upsert_profile(db, user_id, update_data)
    is_vip = await subscription_service.is_user_vip(db, user_id)

    log.info("update_profile_complete", updated_fields=list(update_data.keys()))
    return _user_with_profile(user, profile, is_vip)
