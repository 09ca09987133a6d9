"""
User and profile repositories.
"""

from __future__ import annotations

import logging
from typing import Optional
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from spark.database import utcnow
from spark.models.match import Swipe
from spark.models.profile import Profile
from spark.models.user import User
from .base import BaseRepository
from .views import ProfileWithUser

logger = logging.getLogger(__name__)


class UserRepository(BaseRepository[User]):
    def __init__(self):
        super().__init__(User)

    async def get_by_email(self, db: AsyncSession, email: str) -> Optional[User]:
        try:
            stmt = select(User).where(User.email == email)
            result = await db.execute(stmt)
            return result.scalar_one_or_none()
        except SQLAlchemyError as e:
            logger.error(f"Error fetching user by email: {e}")
            raise

    async def touch_last_active(self, db: AsyncSession, user: User) -> User:
        return await self.update(db, user, {"last_active_at": utcnow()})


class ProfileRepository(BaseRepository[Profile]):
    """
    Repository for Profile, including the discovery candidate query.
    """

    def __init__(self):
        super().__init__(Profile)

    async def get_by_user_id(self, db: AsyncSession, user_id: UUID) -> Optional[Profile]:
        try:
            stmt = select(Profile).where(Profile.user_id == user_id)
            result = await db.execute(stmt)
            return result.scalar_one_or_none()
        except SQLAlchemyError as e:
            logger.error(f"Error fetching profile for user {user_id}: {e}")
            raise

    async def get_with_user(self, db: AsyncSession, user_id: UUID) -> Optional[ProfileWithUser]:
        """
        Load a profile joined to its owning user.

        Returns:
            ``ProfileWithUser`` or ``None`` when the user has no profile yet.
        """
        try:
            stmt = (
                select(Profile, User)
                .join(User, User.id == Profile.user_id)
                .where(Profile.user_id == user_id)
            )
            row = (await db.execute(stmt)).first()
            if row is None:
                return None
            return ProfileWithUser(profile=row[0], user=row[1])
        except SQLAlchemyError as e:
            logger.error(f"Error fetching profile with user {user_id}: {e}")
            raise

    async def create_for_user(self, db: AsyncSession, user: User, fields: dict) -> Profile:
        """Create the profile row owned by ``user``."""
        try:
            profile = Profile(user_id=user.id, **fields)
            db.add(profile)
            await db.flush()
            return profile
        except SQLAlchemyError as e:
            logger.error(f"Error creating profile for user {user.id}: {e}")
            raise

    async def list_discovery_candidates(
        self,
        db: AsyncSession,
        user_id: UUID,
        limit: int,
        order_by: tuple,
    ) -> list[ProfileWithUser]:
        """
        Profiles the user has not seen yet.

        Excludes the user's own profile and every profile the user has
        already swiped on, liked or not (anti-join on ``swipes``).

        Args:
            db: Active database session
            user_id: The user asking for candidates
            limit: Maximum number of rows
            order_by: Ranking clauses supplied by the discovery service
        """
        try:
            already_swiped = (
                select(Swipe.id)
                .where(Swipe.swiper_id == user_id)
                .where(Swipe.swiped_id == Profile.user_id)
                .exists()
            )
            stmt = (
                select(Profile, User)
                .join(User, User.id == Profile.user_id)
                .where(Profile.user_id != user_id)
                .where(~already_swiped)
                .order_by(*order_by)
                .limit(limit)
            )
            result = await db.execute(stmt)
            return [ProfileWithUser(profile=p, user=u) for p, u in result.all()]
        except SQLAlchemyError as e:
            logger.error(f"Error fetching discovery candidates for user {user_id}: {e}")
            raise
