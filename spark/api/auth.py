"""
Spark — Auth API

Email-only login: the first login with an address creates the account.
The returned ``id`` is what clients send back in the ``user-id`` header.
"""

from __future__ import annotations

import structlog
from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from spark.api.deps import get_subscription_service, get_user_service
from spark.database import get_db
from spark.schemas.user import LoginRequest, UserResponse
from spark.services.subscription_service import SubscriptionService
from spark.services.user_service import UserService

logger = structlog.get_logger("spark.api.auth")

router = APIRouter()


# ──────────────────────────────────────────────────────────────────────────────
# POST /login — Lookup-or-create by email
# ──────────────────────────────────────────────────────────────────────────────

@router.post(
    "/login",
    response_model=UserResponse,
    summary="Log in (creating the user on first login)",
)
async def login(
    payload: LoginRequest,
    db: AsyncSession = Depends(get_db),
    user_service: UserService = Depends(get_user_service),
    subscription_service: SubscriptionService = Depends(get_subscription_service),
) -> UserResponse:
    user = await user_service.login(db, payload.email)
    is_vip = await subscription_service.is_user_vip(db, user.id)
    return UserResponse.model_validate(user).model_copy(update={"is_vip": is_vip})
