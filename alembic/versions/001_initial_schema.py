"""Initial schema: the six Spark tables.

Revision ID: 001_initial
Revises:
Create Date: 2026-10-19 00:00:00.000000

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

# revision identifiers, used by Alembic.
revision: str = "001_initial"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _timestamps() -> list[sa.Column]:
    return [
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            server_default=sa.func.now(),
            nullable=False,
        ),
        sa.Column(
            "updated_at",
            sa.DateTime(timezone=True),
            server_default=sa.func.now(),
            nullable=False,
        ),
    ]


def _user_fk(name: str, **kwargs) -> sa.Column:
    return sa.Column(
        name,
        postgresql.UUID(as_uuid=True),
        sa.ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        **kwargs,
    )


def upgrade() -> None:
    # ── 1. users ────────────────────────────────────────────────────
    op.create_table(
        "users",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column("email", sa.String, unique=True, nullable=True),
        sa.Column(
            "is_vip",
            sa.Boolean,
            server_default="false",
            nullable=False,
            comment="Mirror of the subscription ledger; gating reads the ledger",
        ),
        sa.Column("vip_expires_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("last_active_at", sa.DateTime(timezone=True), nullable=True),
        *_timestamps(),
    )
    op.create_index("ix_users_email", "users", ["email"])

    # ── 2. profiles (1:1 with users) ────────────────────────────────
    op.create_table(
        "profiles",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True),
        _user_fk("user_id", unique=True),
        sa.Column("name", sa.String, nullable=False),
        sa.Column("age", sa.Integer, nullable=False),
        sa.Column("bio", sa.Text, nullable=True),
        sa.Column("gender", sa.String, nullable=False, comment="man / woman / non-binary"),
        sa.Column(
            "looking_for",
            sa.String,
            nullable=False,
            comment="serious / casual / friends / unsure",
        ),
        sa.Column("interests", postgresql.JSONB, nullable=False, comment="Ordered interest tags"),
        sa.Column("photos", postgresql.JSONB, nullable=False, comment="Ordered photo URLs"),
        sa.Column("is_verified", sa.Boolean, server_default="false", nullable=False),
        sa.Column("latitude", sa.Float, nullable=True),
        sa.Column("longitude", sa.Float, nullable=True),
        sa.Column("city", sa.String, nullable=True),
        sa.Column("max_distance", sa.Integer, server_default="50", nullable=False, comment="km"),
        sa.Column("age_range_min", sa.Integer, server_default="18", nullable=False),
        sa.Column("age_range_max", sa.Integer, server_default="99", nullable=False),
        *_timestamps(),
        sa.CheckConstraint("age >= 18", name="ck_profile_adult"),
        sa.CheckConstraint("age_range_min <= age_range_max", name="ck_profile_age_range"),
    )
    op.create_index("ix_profiles_created_at", "profiles", ["created_at"])

    # ── 3. swipes (append-only ledger) ──────────────────────────────
    op.create_table(
        "swipes",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True),
        _user_fk("swiper_id"),
        _user_fk("swiped_id"),
        sa.Column("is_like", sa.Boolean, nullable=False, comment="true = like, false = dislike"),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            server_default=sa.func.now(),
            nullable=False,
        ),
        sa.UniqueConstraint("swiper_id", "swiped_id", name="uq_swipe_pair"),
        sa.CheckConstraint("swiper_id != swiped_id", name="ck_swipe_not_self"),
    )
    op.create_index("ix_swipes_swiped_like", "swipes", ["swiped_id", "is_like"])

    # ── 4. matches (canonical user1_id < user2_id) ──────────────────
    op.create_table(
        "matches",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True),
        _user_fk("user1_id"),
        _user_fk("user2_id"),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            server_default=sa.func.now(),
            nullable=False,
        ),
        sa.Column("last_message_at", sa.DateTime(timezone=True), nullable=True),
        sa.UniqueConstraint("user1_id", "user2_id", name="uq_match_pair"),
        sa.CheckConstraint("user1_id != user2_id", name="ck_match_not_self"),
        sa.CheckConstraint("user1_id < user2_id", name="ck_match_canonical_order"),
    )
    op.create_index("ix_matches_user2", "matches", ["user2_id"])

    # ── 5. messages ─────────────────────────────────────────────────
    op.create_table(
        "messages",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column(
            "match_id",
            postgresql.UUID(as_uuid=True),
            sa.ForeignKey("matches.id", ondelete="CASCADE"),
            nullable=False,
        ),
        _user_fk("sender_id"),
        sa.Column("content", sa.Text, nullable=False),
        sa.Column(
            "message_type",
            sa.String,
            server_default="text",
            nullable=False,
            comment="text / voice / image",
        ),
        sa.Column("voice_url", sa.String, nullable=True),
        sa.Column("voice_duration", sa.Integer, nullable=True, comment="seconds"),
        sa.Column("is_read", sa.Boolean, server_default="false", nullable=False),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            server_default=sa.func.now(),
            nullable=False,
        ),
    )
    op.create_index("ix_messages_match_created", "messages", ["match_id", "created_at"])

    # ── 6. subscriptions (VIP ledger) ───────────────────────────────
    op.create_table(
        "subscriptions",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True),
        _user_fk("user_id"),
        sa.Column("plan_type", sa.String, nullable=False, comment="monthly / yearly"),
        sa.Column("amount", sa.Integer, nullable=False, comment="Minor currency units (cents)"),
        sa.Column("currency", sa.String, server_default="USD", nullable=False),
        sa.Column(
            "payment_reference",
            sa.String,
            unique=True,
            nullable=True,
            comment="External payment processor id",
        ),
        sa.Column("status", sa.String, nullable=False, comment="pending / active / cancelled / expired"),
        sa.Column("starts_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("ends_at", sa.DateTime(timezone=True), nullable=False),
        *_timestamps(),
    )
    op.create_index(
        "ix_subscriptions_user_status_ends",
        "subscriptions",
        ["user_id", "status", "ends_at"],
    )


def downgrade() -> None:
    # Drop in reverse order (children / dependents first).
    op.drop_index("ix_subscriptions_user_status_ends", table_name="subscriptions")
    op.drop_table("subscriptions")

    op.drop_index("ix_messages_match_created", table_name="messages")
    op.drop_table("messages")

    op.drop_index("ix_matches_user2", table_name="matches")
    op.drop_table("matches")

    op.drop_index("ix_swipes_swiped_like", table_name="swipes")
    op.drop_table("swipes")

    op.drop_index("ix_profiles_created_at", table_name="profiles")
    op.drop_table("profiles")

    op.drop_index("ix_users_email", table_name="users")
    op.drop_table("users")
