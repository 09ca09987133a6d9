"""
Spark — VIP subscription ledger.
"""

import uuid
from datetime import datetime

from sqlalchemy import DateTime, ForeignKey, Index, Integer, String, Uuid, func
from sqlalchemy.orm import Mapped, mapped_column

from spark.database import Base, utcnow

PLAN_TYPES = ("monthly", "yearly")
SUBSCRIPTION_STATUSES = ("pending", "active", "cancelled", "expired")


class Subscription(Base):
    __tablename__ = "subscriptions"
    __table_args__ = (
        Index("ix_subscriptions_user_status_ends", "user_id", "status", "ends_at"),
    )

    id: Mapped[uuid.UUID] = mapped_column(
        Uuid, primary_key=True, default=uuid.uuid4
    )
    user_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("users.id", ondelete="CASCADE"), nullable=False
    )
    plan_type: Mapped[str] = mapped_column(
        String, nullable=False, comment="monthly / yearly"
    )
    amount: Mapped[int] = mapped_column(
        Integer, nullable=False, comment="Minor currency units (cents)"
    )
    currency: Mapped[str] = mapped_column(
        String, default="USD", server_default="USD", nullable=False
    )
    payment_reference: Mapped[str | None] = mapped_column(
        String, unique=True, nullable=True, comment="External payment processor id"
    )
    status: Mapped[str] = mapped_column(
        String, nullable=False, comment="pending / active / cancelled / expired"
    )
    starts_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    ends_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow, server_default=func.now(), nullable=False
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=utcnow,
        onupdate=utcnow,
        server_default=func.now(),
        nullable=False,
    )

    def __repr__(self) -> str:
        return (
            f"<Subscription user={self.user_id} plan={self.plan_type!r} "
            f"status={self.status!r}>"
        )
