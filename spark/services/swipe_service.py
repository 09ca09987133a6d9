"""
Spark — Swipe Ledger

Records like/dislike decisions.  The ledger is append-only: one row per
ordered (swiper, swiped) pair, never updated.

Duplicate policy: **first decision wins.**  A repeat swipe on the same pair
returns the stored record unchanged with ``created=False``; the new
``is_like`` value is ignored.  The same applies when two requests race to
insert the same pair and one loses on the unique constraint.
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass
from typing import Optional

import structlog
from sqlalchemy.ext.asyncio import AsyncSession

from spark.errors import ConflictError, NotFoundError, ValidationError
from spark.models.match import Match, Swipe
from spark.repositories.swipe_repository import SwipeRepository
from spark.repositories.user_repository import UserRepository
from spark.repositories.views import ProfileWithUser
from spark.services.matching_service import MatchingService, as_uuid

logger = structlog.get_logger("spark.swipe_service")


@dataclass(frozen=True)
class SwipeOutcome:
    swipe: Swipe
    created: bool
    match: Optional[Match] = None

    @property
    def is_match(self) -> bool:
        return self.match is not None


class SwipeService:
    def __init__(
        self,
        swipe_repo: Optional[SwipeRepository] = None,
        user_repo: Optional[UserRepository] = None,
        matching_service: Optional[MatchingService] = None,
    ) -> None:
        self.swipe_repo = swipe_repo or SwipeRepository()
        self.user_repo = user_repo or UserRepository()
        self.matching_service = matching_service or MatchingService(
            swipe_repo=self.swipe_repo
        )

    async def record_swipe(
        self,
        db: AsyncSession,
        swiper_id: uuid.UUID | str,
        swiped_id: uuid.UUID | str,
        is_like: bool,
    ) -> SwipeOutcome:
        """Write a swipe and, for a like, run the reciprocity check.

        Both steps share the caller's transaction, so a mutual like and its
        match are committed together or not at all.

        Raises
        ------
        ValidationError
            ``swiper_id == swiped_id``.
        NotFoundError
            Either user does not exist.
        """
        swiper_id, swiped_id = as_uuid(swiper_id), as_uuid(swiped_id)
        log = logger.bind(swiper_id=str(swiper_id), swiped_id=str(swiped_id))

        if swiper_id == swiped_id:
            log.warning("self_swipe_rejected")
            raise ValidationError("You cannot swipe on yourself.")

        for uid in (swiper_id, swiped_id):
            if await self.user_repo.get(db, uid) is None:
                raise NotFoundError(f"User {uid} not found.", user_id=uid)

        swipe = await self.swipe_repo.get_pair(db, swiper_id, swiped_id)
        created = False
        if swipe is None:
            swipe = await self.swipe_repo.create_in_savepoint(
                db,
                {"swiper_id": swiper_id, "swiped_id": swiped_id, "is_like": bool(is_like)},
            )
            if swipe is None:
                swipe = await self.swipe_repo.get_pair(db, swiper_id, swiped_id)
                if swipe is None:
                    raise ConflictError(
                        "Swipe could not be recorded; retry the request.",
                        swiper_id=swiper_id,
                        swiped_id=swiped_id,
                    )
            else:
                created = True

        if created:
            log.info("swipe_recorded", is_like=swipe.is_like, swipe_id=str(swipe.id))
        else:
            log.info(
                "swipe_duplicate_ignored",
                stored_is_like=swipe.is_like,
                requested_is_like=bool(is_like),
            )

        match = None
        if swipe.is_like:
            # Re-run on duplicates too so a match is never left behind.
            match = await self.matching_service.check_reciprocity(db, swiper_id, swiped_id)
            if match is not None:
                log.info("swipe_is_mutual", match_id=str(match.id))

        return SwipeOutcome(swipe=swipe, created=created, match=match)

    async def get_swipe(
        self,
        db: AsyncSession,
        swiper_id: uuid.UUID | str,
        swiped_id: uuid.UUID | str,
    ) -> Optional[Swipe]:
        """Pure lookup; ``None`` when no swipe exists for the ordered pair."""
        return await self.swipe_repo.get_pair(db, as_uuid(swiper_id), as_uuid(swiped_id))

    async def get_user_likes(
        self,
        db: AsyncSession,
        user_id: uuid.UUID | str,
    ) -> list[ProfileWithUser]:
        """Profiles of everyone who liked ``user_id``, newest first.

        Not gated here; callers exposing it must check VIP status first.
        """
        return await self.swipe_repo.list_likes_received(db, as_uuid(user_id))

    async def count_user_likes(self, db: AsyncSession, user_id: uuid.UUID | str) -> int:
        return await self.swipe_repo.count_likes_received(db, as_uuid(user_id))
