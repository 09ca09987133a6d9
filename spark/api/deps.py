"""
Spark — Shared API dependencies

Caller identity and lazily-built service singletons.  Services are
stateless (they receive the request's session on every call), so one
instance per process is enough.
"""

from __future__ import annotations

import uuid
from typing import Optional

import structlog
from fastapi import Depends, Header
from sqlalchemy.ext.asyncio import AsyncSession

from spark.database import get_db
from spark.errors import AuthorizationError, NotFoundError
from spark.repositories.user_repository import UserRepository
from spark.services.conversation_service import ConversationService
from spark.services.discovery_service import DiscoveryService
from spark.services.matching_service import MatchingService
from spark.services.subscription_service import SubscriptionService
from spark.services.swipe_service import SwipeService
from spark.services.user_service import UserService

logger = structlog.get_logger("spark.api.deps")

_user_repo = UserRepository()


async def get_current_user_id(
    user_id: Optional[str] = Header(None, alias="user-id"),
    db: AsyncSession = Depends(get_db),
) -> uuid.UUID:
    """Resolve the ``user-id`` header to an existing user's id.

    Missing or malformed header → 401; a well-formed id with no user → 404.
    """
    if not user_id:
        raise AuthorizationError("Missing user-id header.", unauthenticated=True)
    try:
        parsed = uuid.UUID(user_id.strip())
    except ValueError:
        logger.warning("malformed_user_id_header")
        raise AuthorizationError("Malformed user-id header.", unauthenticated=True)

    if await _user_repo.get(db, parsed) is None:
        raise NotFoundError(f"User {parsed} not found.", user_id=parsed)
    return parsed


# ── Service singletons ────────────────────────────────────────────────────────

_matching_service: MatchingService | None = None
_swipe_service: SwipeService | None = None
_discovery_service: DiscoveryService | None = None
_conversation_service: ConversationService | None = None
_subscription_service: SubscriptionService | None = None
_user_service: UserService | None = None


def get_matching_service() -> MatchingService:
    global _matching_service
    if _matching_service is None:
        _matching_service = MatchingService()
    return _matching_service


def get_swipe_service() -> SwipeService:
    global _swipe_service
    if _swipe_service is None:
        _swipe_service = SwipeService(matching_service=get_matching_service())
    return _swipe_service


def get_discovery_service() -> DiscoveryService:
    global _discovery_service
    if _discovery_service is None:
        _discovery_service = DiscoveryService()
    return _discovery_service


def get_conversation_service() -> ConversationService:
    global _conversation_service
    if _conversation_service is None:
        _conversation_service = ConversationService(matching_service=get_matching_service())
    return _conversation_service


def get_subscription_service() -> SubscriptionService:
    global _subscription_service
    if _subscription_service is None:
        _subscription_service = SubscriptionService()
    return _subscription_service


def get_user_service() -> UserService:
    global _user_service
    if _user_service is None:
        _user_service = UserService()
    return _user_service
