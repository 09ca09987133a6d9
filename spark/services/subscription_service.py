"""
Spark — Subscription ledger and VIP gating.

VIP status is always derived from the ledger: a user is VIP while at least
one subscription has ``status == "active"`` and ``ends_at`` later than now.
Purchases made through the API start out ``pending``; only the payment
processor's webhook moves them to ``active``.
Expiry is purely time based; no job flips rows to ``expired``.  The
``users.is_vip`` / ``users.vip_expires_at`` columns are a display mirror
refreshed on every ledger write and are never read for gating.
"""

from __future__ import annotations

import uuid
from datetime import datetime, timedelta
from typing import Optional

import structlog
from sqlalchemy.ext.asyncio import AsyncSession

from spark.config import get_settings
from spark.database import utcnow
from spark.errors import AuthorizationError, ConflictError, NotFoundError, ValidationError
from spark.models.subscription import PLAN_TYPES, SUBSCRIPTION_STATUSES, Subscription
from spark.repositories.subscription_repository import SubscriptionRepository
from spark.repositories.user_repository import UserRepository
from spark.services.matching_service import as_uuid

logger = structlog.get_logger("spark.subscription_service")

PLAN_DURATIONS: dict[str, timedelta] = {
    "monthly": timedelta(days=30),
    "yearly": timedelta(days=365),
}


def plan_price(plan_type: str) -> int:
    """Default price of a plan in minor currency units."""
    settings = get_settings()
    prices = {
        "monthly": settings.VIP_MONTHLY_PRICE_CENTS,
        "yearly": settings.VIP_YEARLY_PRICE_CENTS,
    }
    return prices[plan_type]


class SubscriptionService:
    def __init__(
        self,
        subscription_repo: Optional[SubscriptionRepository] = None,
        user_repo: Optional[UserRepository] = None,
    ) -> None:
        self.subscription_repo = subscription_repo or SubscriptionRepository()
        self.user_repo = user_repo or UserRepository()

    # ── Gating ────────────────────────────────────────────────────────

    async def get_active_subscription(
        self,
        db: AsyncSession,
        user_id: uuid.UUID | str,
        now: Optional[datetime] = None,
    ) -> Optional[Subscription]:
        return await self.subscription_repo.get_active(db, as_uuid(user_id), now or utcnow())

    async def is_user_vip(
        self,
        db: AsyncSession,
        user_id: uuid.UUID | str,
        now: Optional[datetime] = None,
    ) -> bool:
        """True strictly while an active subscription's ``ends_at`` is in the future."""
        active = await self.get_active_subscription(db, user_id, now=now)
        return active is not None

    # ── Ledger writes ─────────────────────────────────────────────────

    async def create_subscription(
        self,
        db: AsyncSession,
        user_id: uuid.UUID | str,
        plan_type: str,
        payment_reference: Optional[str] = None,
        starts_at: Optional[datetime] = None,
        amount: Optional[int] = None,
        currency: Optional[str] = None,
        status: str = "active",
    ) -> Subscription:
        """Record a new entitlement window.

        Earlier subscriptions are left as they are.  A repeated
        ``payment_reference`` from the same user returns the subscription
        already recorded for it, so client retries are harmless.

        Raises:
            ConflictError: If the payment reference belongs to another user.
        """
        user_id = as_uuid(user_id)
        log = logger.bind(user_id=str(user_id), plan_type=plan_type)

        if plan_type not in PLAN_TYPES:
            raise ValidationError(
                f"Unknown plan {plan_type!r}; expected one of {', '.join(PLAN_TYPES)}."
            )
        if status not in SUBSCRIPTION_STATUSES:
            raise ValidationError(f"Unknown subscription status {status!r}.")
        if amount is not None and amount < 0:
            raise ValidationError("amount must not be negative.")

        user = await self.user_repo.get(db, user_id)
        if user is None:
            raise NotFoundError(f"User {user_id} not found.", user_id=user_id)

        if payment_reference:
            existing = await self.subscription_repo.get_by_payment_reference(db, payment_reference)
            if existing is not None:
                if existing.user_id != user_id:
                    log.warning("payment_reference_owned_by_other_user")
                    raise ConflictError(
                        "This payment reference is already in use.",
                        payment_reference=payment_reference,
                    )
                log.info("subscription_already_recorded", subscription_id=str(existing.id))
                return existing

        starts_at = starts_at or utcnow()
        subscription = await self.subscription_repo.create(
            db,
            {
                "user_id": user_id,
                "plan_type": plan_type,
                "amount": plan_price(plan_type) if amount is None else amount,
                "currency": currency or get_settings().VIP_CURRENCY,
                "payment_reference": payment_reference,
                "status": status,
                "starts_at": starts_at,
                "ends_at": starts_at + PLAN_DURATIONS[plan_type],
            },
        )
        await self._refresh_vip_mirror(db, user_id)

        log.info(
            "subscription_created",
            subscription_id=str(subscription.id),
            ends_at=subscription.ends_at.isoformat(),
        )
        return subscription

    async def cancel_subscription(
        self,
        db: AsyncSession,
        subscription_id: uuid.UUID | str,
        user_id: uuid.UUID | str,
    ) -> Subscription:
        """Cancel before natural expiry; only the owner may cancel."""
        subscription_id, user_id = as_uuid(subscription_id), as_uuid(user_id)
        subscription = await self.subscription_repo.get(db, subscription_id)
        if subscription is None:
            raise NotFoundError(
                f"Subscription {subscription_id} not found.", subscription_id=subscription_id
            )
        if subscription.user_id != user_id:
            raise AuthorizationError("You can only cancel your own subscription.")

        if subscription.status != "cancelled":
            await self.subscription_repo.update(db, subscription, {"status": "cancelled"})
            await self._refresh_vip_mirror(db, user_id)
            logger.info(
                "subscription_cancelled",
                subscription_id=str(subscription_id),
                user_id=str(user_id),
            )
        return subscription

    async def apply_payment_event(
        self,
        db: AsyncSession,
        payment_reference: str,
        status: str,
    ) -> Subscription:
        """Apply a status change reported by the payment processor.

        Confirming a ``pending`` purchase starts its window at confirmation
        time, so time spent waiting on the processor is not lost.
        """
        if status not in SUBSCRIPTION_STATUSES:
            raise ValidationError(f"Unknown subscription status {status!r}.")
        subscription = await self.subscription_repo.get_by_payment_reference(db, payment_reference)
        if subscription is None:
            raise NotFoundError(
                "No subscription for this payment reference.",
                payment_reference=payment_reference,
            )
        if subscription.status != status:
            changes: dict = {"status": status}
            if subscription.status == "pending" and status == "active":
                starts_at = utcnow()
                changes["starts_at"] = starts_at
                changes["ends_at"] = starts_at + PLAN_DURATIONS[subscription.plan_type]
            await self.subscription_repo.update(db, subscription, changes)
            await self._refresh_vip_mirror(db, subscription.user_id)
        logger.info(
            "payment_event_applied",
            subscription_id=str(subscription.id),
            status=status,
        )
        return subscription

    async def list_subscriptions(
        self,
        db: AsyncSession,
        user_id: uuid.UUID | str,
    ) -> list[Subscription]:
        return await self.subscription_repo.list_for_user(db, as_uuid(user_id))

    async def _refresh_vip_mirror(self, db: AsyncSession, user_id: uuid.UUID) -> None:
        user = await self.user_repo.get(db, user_id)
        if user is None:
            return
        active = await self.subscription_repo.get_active(db, user_id, utcnow())
        await self.user_repo.update(
            db,
            user,
            {
                "is_vip": active is not None,
                "vip_expires_at": active.ends_at if active is not None else None,
            },
        )
