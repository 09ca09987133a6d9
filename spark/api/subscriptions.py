"""
Spark — Subscriptions API

VIP status, purchase, cancellation, and the payment-processor webhook.
Charging the card is the processor's job.  A purchase is recorded as
``pending`` against its processor payment reference and grants nothing
until the webhook reports the payment ``active``.
"""

from __future__ import annotations

import uuid

import structlog
from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from spark.api.deps import get_current_user_id, get_subscription_service
from spark.database import get_db
from spark.schemas.subscription import (
    PaymentEvent,
    SubscriptionCreate,
    SubscriptionResponse,
    SubscriptionStatusResponse,
)
from spark.services.subscription_service import SubscriptionService

logger = structlog.get_logger("spark.api.subscriptions")

router = APIRouter()


# ──────────────────────────────────────────────────────────────────────────────
# GET /status — Current VIP entitlement
# ──────────────────────────────────────────────────────────────────────────────

@router.get(
    "/status",
    response_model=SubscriptionStatusResponse,
    summary="Current VIP status",
)
async def get_status(
    user_id: uuid.UUID = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db),
    subscription_service: SubscriptionService = Depends(get_subscription_service),
) -> SubscriptionStatusResponse:
    active = await subscription_service.get_active_subscription(db, user_id)
    return SubscriptionStatusResponse(
        is_vip=active is not None,
        subscription=SubscriptionResponse.model_validate(active) if active is not None else None,
    )


# ──────────────────────────────────────────────────────────────────────────────
# POST / — Start a subscription
# ──────────────────────────────────────────────────────────────────────────────

@router.post(
    "",
    response_model=SubscriptionResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Record a pending VIP purchase",
)
async def create_subscription(
    payload: SubscriptionCreate,
    user_id: uuid.UUID = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db),
    subscription_service: SubscriptionService = Depends(get_subscription_service),
) -> SubscriptionResponse:
    """Repeating a ``paymentReference`` returns the subscription already
    recorded for it; another user's reference is a 409."""
    subscription = await subscription_service.create_subscription(
        db,
        user_id,
        payload.plan_type,
        payment_reference=payload.payment_reference,
        status="pending",
    )
    return SubscriptionResponse.model_validate(subscription)


# ──────────────────────────────────────────────────────────────────────────────
# POST /{subscription_id}/cancel
# ──────────────────────────────────────────────────────────────────────────────

@router.post(
    "/{subscription_id}/cancel",
    response_model=SubscriptionResponse,
    summary="Cancel one of the caller's subscriptions",
)
async def cancel_subscription(
    subscription_id: uuid.UUID,
    user_id: uuid.UUID = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db),
    subscription_service: SubscriptionService = Depends(get_subscription_service),
) -> SubscriptionResponse:
    subscription = await subscription_service.cancel_subscription(db, subscription_id, user_id)
    return SubscriptionResponse.model_validate(subscription)


# ──────────────────────────────────────────────────────────────────────────────
# POST /webhook — Payment processor status callback
# ──────────────────────────────────────────────────────────────────────────────

@router.post(
    "/webhook",
    response_model=SubscriptionResponse,
    summary="Apply a payment status change",
)
async def payment_webhook(
    payload: PaymentEvent,
    db: AsyncSession = Depends(get_db),
    subscription_service: SubscriptionService = Depends(get_subscription_service),
) -> SubscriptionResponse:
    # TODO: verify the processor's request signature once a processor is chosen.
    subscription = await subscription_service.apply_payment_event(
        db, payload.payment_reference, payload.status
    )
    return SubscriptionResponse.model_validate(subscription)
