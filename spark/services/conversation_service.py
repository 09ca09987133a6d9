"""
Spark — Conversation Store

Messages belong to exactly one match and may only be written or read by
its two participants.  Posting a message and advancing the match's
``last_message_at`` happen under a row lock on the match, in one
transaction, so concurrent senders cannot lose an update.
"""

from __future__ import annotations

import uuid
from typing import Optional

import structlog
from sqlalchemy.ext.asyncio import AsyncSession

from spark.database import as_utc, utcnow
from spark.errors import AuthorizationError, NotFoundError, ValidationError
from spark.models.message import MESSAGE_TYPES, Message
from spark.repositories.match_repository import MatchRepository
from spark.repositories.message_repository import MessageRepository
from spark.repositories.views import MessageWithSender
from spark.services.matching_service import MatchingService, as_uuid

logger = structlog.get_logger("spark.conversation_service")


class ConversationService:
    def __init__(
        self,
        message_repo: Optional[MessageRepository] = None,
        match_repo: Optional[MatchRepository] = None,
        matching_service: Optional[MatchingService] = None,
    ) -> None:
        self.message_repo = message_repo or MessageRepository()
        self.match_repo = match_repo or MatchRepository()
        self.matching_service = matching_service or MatchingService(match_repo=self.match_repo)

    @staticmethod
    def _validate_message(
        content: str,
        message_type: str,
        voice_url: Optional[str],
        voice_duration: Optional[int],
    ) -> str:
        if message_type not in MESSAGE_TYPES:
            raise ValidationError(
                f"Unknown message type {message_type!r}; expected one of {', '.join(MESSAGE_TYPES)}."
            )
        content = (content or "").strip()
        if not content:
            raise ValidationError("Message content must not be empty.")
        if message_type == "voice" and not voice_url:
            raise ValidationError("Voice messages require a voice_url.")
        if voice_duration is not None and voice_duration < 0:
            raise ValidationError("voice_duration must not be negative.")
        return content

    async def post_message(
        self,
        db: AsyncSession,
        match_id: uuid.UUID | str,
        sender_id: uuid.UUID | str,
        content: str,
        message_type: str = "text",
        voice_url: Optional[str] = None,
        voice_duration: Optional[int] = None,
    ) -> Message:
        """Append a message to a match.

        Raises
        ------
        ValidationError
            Empty content, unknown type, or voice message without a URL.
        NotFoundError
            The match does not exist.
        AuthorizationError
            ``sender_id`` is not one of the match's two users.
        """
        match_id, sender_id = as_uuid(match_id), as_uuid(sender_id)
        log = logger.bind(match_id=str(match_id), sender_id=str(sender_id))

        content = self._validate_message(content, message_type, voice_url, voice_duration)

        match = await self.match_repo.get_for_update(db, match_id)
        if match is None:
            raise NotFoundError(f"Match {match_id} not found.", match_id=match_id)
        if not match.involves(sender_id):
            log.warning("post_message_denied")
            raise AuthorizationError(
                "Only participants of a match can post to it.", match_id=match_id
            )

        created_at = utcnow()
        message = await self.message_repo.create(
            db,
            {
                "match_id": match_id,
                "sender_id": sender_id,
                "content": content,
                "message_type": message_type,
                "voice_url": voice_url,
                "voice_duration": voice_duration,
                "is_read": False,
                "created_at": created_at,
            },
        )

        last = as_utc(match.last_message_at)
        if last is None or last < created_at:
            match.last_message_at = created_at
            await db.flush()

        log.info("message_posted", message_id=str(message.id), message_type=message_type)
        return message

    async def post_message_to_user(
        self,
        db: AsyncSession,
        sender_id: uuid.UUID | str,
        recipient_id: uuid.UUID | str,
        content: str,
        message_type: str = "text",
        voice_url: Optional[str] = None,
        voice_duration: Optional[int] = None,
    ) -> Message:
        """Post to the match shared with ``recipient_id``.

        Users who are not matched cannot message each other.
        """
        sender_id, recipient_id = as_uuid(sender_id), as_uuid(recipient_id)
        if sender_id == recipient_id:
            raise ValidationError("You cannot message yourself.")

        match = await self.matching_service.get_match(db, sender_id, recipient_id)
        if match is None:
            logger.warning(
                "post_message_no_match",
                sender_id=str(sender_id),
                recipient_id=str(recipient_id),
            )
            raise NotFoundError(
                "You can only message users you have matched with.",
                recipient_id=recipient_id,
            )
        return await self.post_message(
            db,
            match.id,
            sender_id,
            content,
            message_type=message_type,
            voice_url=voice_url,
            voice_duration=voice_duration,
        )

    async def get_match_messages(
        self,
        db: AsyncSession,
        match_id: uuid.UUID | str,
        user_id: Optional[uuid.UUID | str] = None,
    ) -> list[MessageWithSender]:
        """Messages of one match in ascending creation order.

        When ``user_id`` is given the caller must be a participant.
        """
        match_id = as_uuid(match_id)
        if user_id is None:
            await self.matching_service.get_match_by_id(db, match_id)
        else:
            await self.matching_service.require_participant(db, match_id, as_uuid(user_id))
        return await self.message_repo.list_for_match(db, match_id)

    async def mark_messages_as_read(
        self,
        db: AsyncSession,
        match_id: uuid.UUID | str,
        user_id: uuid.UUID | str,
    ) -> int:
        """Mark the other participant's messages as read.

        Returns the number of messages that changed; a repeat call returns 0.
        """
        match_id, user_id = as_uuid(match_id), as_uuid(user_id)
        await self.matching_service.require_participant(db, match_id, user_id)
        updated = await self.message_repo.mark_read(db, match_id, user_id)
        logger.info(
            "messages_marked_read",
            match_id=str(match_id),
            user_id=str(user_id),
            updated=updated,
        )
        return updated
