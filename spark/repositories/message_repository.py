"""
Message repository.
"""

from __future__ import annotations

import logging
from uuid import UUID

from sqlalchemy import and_, asc, select, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from spark.models.message import Message
from spark.models.profile import Profile
from .base import BaseRepository
from .views import MessageWithSender

logger = logging.getLogger(__name__)


class MessageRepository(BaseRepository[Message]):
    def __init__(self):
        super().__init__(Message)

    async def list_for_match(self, db: AsyncSession, match_id: UUID) -> list[MessageWithSender]:
        """All messages of one match, oldest first, with the sender's profile."""
        try:
            stmt = (
                select(Message, Profile)
                .outerjoin(Profile, Profile.user_id == Message.sender_id)
                .where(Message.match_id == match_id)
                .order_by(asc(Message.created_at))
                .execution_options(populate_existing=True)
            )
            result = await db.execute(stmt)
            return [MessageWithSender(message=m, sender_profile=p) for m, p in result.all()]
        except SQLAlchemyError as e:
            logger.error(f"Error listing messages for match {match_id}: {e}")
            raise

    async def mark_read(self, db: AsyncSession, match_id: UUID, reader_id: UUID) -> int:
        """
        Flag every unread message in ``match_id`` not sent by ``reader_id``.

        Returns:
            Number of messages flipped to read (0 when nothing was unread)
        """
        try:
            stmt = (
                update(Message)
                .where(
                    and_(
                        Message.match_id == match_id,
                        Message.sender_id != reader_id,
                        Message.is_read.is_(False),
                    )
                )
                .values(is_read=True)
                .execution_options(synchronize_session=False)
            )
            result = await db.execute(stmt)
            await db.flush()
            return result.rowcount or 0
        except SQLAlchemyError as e:
            logger.error(f"Error marking messages read in match {match_id}: {e}")
            raise
