from pydantic import Field
from uuid import UUID
from datetime import datetime
from typing import Optional

from spark.schemas.base import CamelModel


class SubscriptionCreate(CamelModel):
    plan_type: str
    payment_reference: str = Field(min_length=1, max_length=255)


class SubscriptionResponse(CamelModel):
    id: UUID
    user_id: UUID
    plan_type: str
    amount: int
    currency: str
    payment_reference: Optional[str] = None
    status: str
    starts_at: datetime
    ends_at: datetime
    created_at: datetime


class SubscriptionStatusResponse(CamelModel):
    is_vip: bool = Field(alias="isVIP")
    subscription: Optional[SubscriptionResponse] = None


class PaymentEvent(CamelModel):
    payment_reference: str
    status: str
