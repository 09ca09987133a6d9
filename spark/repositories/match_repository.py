"""
Match repository.

Matches are stored with ``user1_id < user2_id``; every lookup here accepts
the two ids in either order.
"""

from __future__ import annotations

import hashlib
import logging
from typing import Optional
from uuid import UUID

from sqlalchemy import and_, case, func, or_, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from spark.models.match import Match
from spark.models.profile import Profile
from .base import BaseRepository
from .views import MatchWithProfile

logger = logging.getLogger(__name__)


def pair_lock_key(user1_id: UUID, user2_id: UUID) -> int:
    """Signed 64-bit advisory-lock key for a canonical user pair."""
    digest = hashlib.blake2b(
        f"{user1_id}:{user2_id}".encode(), digest_size=8
    ).digest()
    return int.from_bytes(digest, "big", signed=True)


class MatchRepository(BaseRepository[Match]):
    def __init__(self):
        super().__init__(Match)

    async def get_by_pair(
        self,
        db: AsyncSession,
        user_a_id: UUID,
        user_b_id: UUID,
    ) -> Optional[Match]:
        """Symmetric lookup: finds the match whichever id is passed first."""
        try:
            stmt = select(Match).where(
                or_(
                    and_(Match.user1_id == user_a_id, Match.user2_id == user_b_id),
                    and_(Match.user1_id == user_b_id, Match.user2_id == user_a_id),
                )
            )
            result = await db.execute(stmt)
            return result.scalar_one_or_none()
        except SQLAlchemyError as e:
            logger.error(f"Error fetching match for {user_a_id} / {user_b_id}: {e}")
            raise

    async def get_for_update(self, db: AsyncSession, match_id: UUID) -> Optional[Match]:
        """
        Load a match with a row lock held until the transaction ends.

        SQLite ignores ``FOR UPDATE``; its writers are serialised anyway.
        """
        try:
            stmt = (
                select(Match)
                .where(Match.id == match_id)
                .with_for_update()
                .execution_options(populate_existing=True)
            )
            result = await db.execute(stmt)
            return result.scalar_one_or_none()
        except SQLAlchemyError as e:
            logger.error(f"Error locking match {match_id}: {e}")
            raise

    async def lock_pair(self, db: AsyncSession, user1_id: UUID, user2_id: UUID) -> None:
        """
        Serialise reciprocity checks for one canonical pair.

        Takes a PostgreSQL transaction-scoped advisory lock, released on
        commit or rollback.  Other dialects have no equivalent and rely on
        the unique constraint alone.
        """
        if db.get_bind().dialect.name != "postgresql":
            return
        try:
            await db.execute(select(func.pg_advisory_xact_lock(pair_lock_key(user1_id, user2_id))))
        except SQLAlchemyError as e:
            logger.error(f"Error taking pair lock for {user1_id} / {user2_id}: {e}")
            raise

    async def list_for_user(self, db: AsyncSession, user_id: UUID) -> list[MatchWithProfile]:
        """
        Every match involving ``user_id`` with the counterpart's profile.

        Ordered by most recent activity: last message time, falling back to
        creation time.  A counterpart without a profile still yields an entry
        (``counterpart_profile`` is ``None``).
        """
        try:
            counterpart = case(
                (Match.user1_id == user_id, Match.user2_id),
                else_=Match.user1_id,
            )
            stmt = (
                select(Match, Profile)
                .outerjoin(Profile, Profile.user_id == counterpart)
                .where(or_(Match.user1_id == user_id, Match.user2_id == user_id))
                .order_by(
                    func.coalesce(Match.last_message_at, Match.created_at).desc(),
                    Match.id,
                )
            )
            result = await db.execute(stmt)
            return [
                MatchWithProfile(
                    match=m,
                    counterpart_id=m.other_user_id(user_id),
                    counterpart_profile=p,
                )
                for m, p in result.all()
            ]
        except SQLAlchemyError as e:
            logger.error(f"Error listing matches for user {user_id}: {e}")
            raise
