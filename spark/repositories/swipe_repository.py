"""
Swipe repository: the append-only like/dislike ledger.

Rows are never updated or deleted here; a second decision on the same
ordered pair is resolved by the service (first decision wins).
"""

from __future__ import annotations

import logging
from typing import Optional
from uuid import UUID

from sqlalchemy import and_, desc, func, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from spark.models.match import Swipe
from spark.models.profile import Profile
from spark.models.user import User
from .base import BaseRepository
from .views import ProfileWithUser

logger = logging.getLogger(__name__)


class SwipeRepository(BaseRepository[Swipe]):
    """
    Repository for Swipe model.

    Provides methods for:
    - Looking up the swipe for an ordered (swiper, swiped) pair
    - Checking for a like in one direction (reciprocity)
    - Listing and counting incoming likes
    """

    def __init__(self):
        super().__init__(Swipe)

    async def get_pair(
        self,
        db: AsyncSession,
        swiper_id: UUID,
        swiped_id: UUID,
    ) -> Optional[Swipe]:
        """
        Get the swipe ``swiper_id`` made on ``swiped_id``.

        Returns:
            The swipe, or ``None`` if that user has not swiped on the other.
        """
        try:
            stmt = select(Swipe).where(
                and_(Swipe.swiper_id == swiper_id, Swipe.swiped_id == swiped_id)
            )
            result = await db.execute(stmt)
            return result.scalar_one_or_none()
        except SQLAlchemyError as e:
            logger.error(f"Error fetching swipe {swiper_id} -> {swiped_id}: {e}")
            raise

    async def has_like(self, db: AsyncSession, swiper_id: UUID, swiped_id: UUID) -> bool:
        try:
            stmt = select(func.count(Swipe.id)).where(
                and_(
                    Swipe.swiper_id == swiper_id,
                    Swipe.swiped_id == swiped_id,
                    Swipe.is_like.is_(True),
                )
            )
            result = await db.execute(stmt)
            return (result.scalar() or 0) > 0
        except SQLAlchemyError as e:
            logger.error(f"Error checking like {swiper_id} -> {swiped_id}: {e}")
            raise

    async def list_likes_received(self, db: AsyncSession, user_id: UUID) -> list[ProfileWithUser]:
        """
        Profiles of users who liked ``user_id``, most recent like first.

        Likers without a profile are skipped; there is nothing to show.
        """
        try:
            stmt = (
                select(Profile, User)
                .join(Swipe, Swipe.swiper_id == Profile.user_id)
                .join(User, User.id == Profile.user_id)
                .where(and_(Swipe.swiped_id == user_id, Swipe.is_like.is_(True)))
                .order_by(desc(Swipe.created_at))
            )
            result = await db.execute(stmt)
            return [ProfileWithUser(profile=p, user=u) for p, u in result.all()]
        except SQLAlchemyError as e:
            logger.error(f"Error fetching likes received by user {user_id}: {e}")
            raise

    async def count_likes_received(self, db: AsyncSession, user_id: UUID) -> int:
        """Count of the likers ``list_likes_received`` would return."""
        try:
            stmt = (
                select(func.count(Swipe.id))
                .select_from(Swipe)
                .join(Profile, Profile.user_id == Swipe.swiper_id)
                .where(and_(Swipe.swiped_id == user_id, Swipe.is_like.is_(True)))
            )
            result = await db.execute(stmt)
            return result.scalar() or 0
        except SQLAlchemyError as e:
            logger.error(f"Error counting likes received by user {user_id}: {e}")
            raise
