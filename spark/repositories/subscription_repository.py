"""
Subscription repository: the VIP entitlement ledger.
"""

from __future__ import annotations

import logging
from datetime import datetime
from typing import Optional
from uuid import UUID

from sqlalchemy import and_, desc, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from spark.models.subscription import Subscription
from .base import BaseRepository

logger = logging.getLogger(__name__)


class SubscriptionRepository(BaseRepository[Subscription]):
    def __init__(self):
        super().__init__(Subscription)

    async def get_active(
        self,
        db: AsyncSession,
        user_id: UUID,
        now: datetime,
    ) -> Optional[Subscription]:
        """
        The most recently created subscription that is active at ``now``.

        Active means ``status == "active"`` and ``ends_at`` strictly after
        ``now``; nothing else (no cached flag) is consulted.
        """
        try:
            stmt = (
                select(Subscription)
                .where(
                    and_(
                        Subscription.user_id == user_id,
                        Subscription.status == "active",
                        Subscription.ends_at > now,
                    )
                )
                .order_by(desc(Subscription.created_at), desc(Subscription.ends_at))
                .limit(1)
            )
            result = await db.execute(stmt)
            return result.scalar_one_or_none()
        except SQLAlchemyError as e:
            logger.error(f"Error fetching active subscription for user {user_id}: {e}")
            raise

    async def get_by_payment_reference(
        self,
        db: AsyncSession,
        payment_reference: str,
    ) -> Optional[Subscription]:
        try:
            stmt = select(Subscription).where(
                Subscription.payment_reference == payment_reference
            )
            result = await db.execute(stmt)
            return result.scalar_one_or_none()
        except SQLAlchemyError as e:
            logger.error(f"Error fetching subscription by payment reference: {e}")
            raise

    async def list_for_user(self, db: AsyncSession, user_id: UUID) -> list[Subscription]:
        try:
            stmt = (
                select(Subscription)
                .where(Subscription.user_id == user_id)
                .order_by(desc(Subscription.created_at))
            )
            result = await db.execute(stmt)
            return list(result.scalars().all())
        except SQLAlchemyError as e:
            logger.error(f"Error listing subscriptions for user {user_id}: {e}")
            raise
