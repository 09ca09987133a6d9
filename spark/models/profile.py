"""
Spark — Profile model (one per user).
"""

import uuid
from datetime import datetime

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    DateTime,
    Float,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    Uuid,
    func,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from spark.database import Base, JSONType, utcnow

GENDERS = ("man", "woman", "non-binary")
LOOKING_FOR = ("serious", "casual", "friends", "unsure")
MIN_AGE = 18


class Profile(Base):
    __tablename__ = "profiles"
    __table_args__ = (
        CheckConstraint("age >= 18", name="ck_profile_adult"),
        CheckConstraint("age_range_min <= age_range_max", name="ck_profile_age_range"),
        Index("ix_profiles_created_at", "created_at"),
    )

    id: Mapped[uuid.UUID] = mapped_column(
        Uuid, primary_key=True, default=uuid.uuid4
    )
    user_id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        ForeignKey("users.id", ondelete="CASCADE"),
        unique=True,
        nullable=False,
    )
    name: Mapped[str] = mapped_column(String, nullable=False)
    age: Mapped[int] = mapped_column(Integer, nullable=False)
    bio: Mapped[str | None] = mapped_column(Text, nullable=True)
    gender: Mapped[str] = mapped_column(
        String, nullable=False, comment="man / woman / non-binary"
    )
    looking_for: Mapped[str] = mapped_column(
        String, nullable=False, comment="serious / casual / friends / unsure"
    )
    interests: Mapped[list] = mapped_column(
        JSONType, default=list, nullable=False, comment="Ordered interest tags"
    )
    photos: Mapped[list] = mapped_column(
        JSONType, default=list, nullable=False, comment="Ordered photo URLs"
    )
    is_verified: Mapped[bool] = mapped_column(
        Boolean, default=False, server_default="false", nullable=False
    )
    latitude: Mapped[float | None] = mapped_column(Float, nullable=True)
    longitude: Mapped[float | None] = mapped_column(Float, nullable=True)
    city: Mapped[str | None] = mapped_column(String, nullable=True)
    max_distance: Mapped[int] = mapped_column(
        Integer, default=50, server_default="50", nullable=False, comment="km"
    )
    age_range_min: Mapped[int] = mapped_column(
        Integer, default=18, server_default="18", nullable=False
    )
    age_range_max: Mapped[int] = mapped_column(
        Integer, default=99, server_default="99", nullable=False
    )
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

    # ── Relationships ──────────────────────────────────────────────
    user: Mapped["User"] = relationship("User", back_populates="profile")

    @property
    def has_coordinates(self) -> bool:
        return self.latitude is not None and self.longitude is not None

    def __repr__(self) -> str:
        return f"<Profile user={self.user_id} name={self.name!r} age={self.age}>"
