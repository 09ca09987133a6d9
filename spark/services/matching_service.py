"""
Spark — Match Engine

Derives mutual matches from the swipe ledger and owns match creation.

A match exists for an unordered pair {A, B} exactly when A liked B and B
liked A.  The row is stored with the two ids in canonical order
(``user1_id < user2_id``) so the pair maps to a single row, and a unique
constraint on that pair is the final guard against duplicates:

  1. After A likes B, take the pair lock (PostgreSQL advisory lock).
  2. Look for B → A like.  None → no match.
  3. Symmetric lookup for an existing match → return it.
  4. Insert canonical row in a savepoint; a unique violation means another
     request won the race, so re-read and return its row.

Once created a match has no further lifecycle in this service.
"""

from __future__ import annotations

import uuid
from typing import Optional

import structlog
from sqlalchemy.ext.asyncio import AsyncSession

from spark.errors import AuthorizationError, ConflictError, NotFoundError, ValidationError
from spark.models.match import Match
from spark.repositories.match_repository import MatchRepository
from spark.repositories.swipe_repository import SwipeRepository
from spark.repositories.views import MatchWithProfile

logger = structlog.get_logger("spark.matching_service")


def as_uuid(value: uuid.UUID | str) -> uuid.UUID:
    if isinstance(value, uuid.UUID):
        return value
    try:
        return uuid.UUID(str(value))
    except ValueError as exc:
        raise ValidationError(f"Invalid user id {value!r}.") from exc


def canonical_pair(
    user_a_id: uuid.UUID | str,
    user_b_id: uuid.UUID | str,
) -> tuple[uuid.UUID, uuid.UUID]:
    """Return the pair ordered lexicographically (smaller id first).

    UUIDs compare by value, which matches the ordering of their canonical
    hex strings, so the order agrees with the database check constraint.
    """
    a, b = as_uuid(user_a_id), as_uuid(user_b_id)
    if a == b:
        raise ValidationError("A match needs two distinct users.")
    return (a, b) if str(a) < str(b) else (b, a)


class MatchingService:
    """Mutual-match detection and match lookups.

    Repositories are injected at construction so the service can be tested
    with doubles and wired through FastAPI's dependency graph.
    """

    def __init__(
        self,
        match_repo: Optional[MatchRepository] = None,
        swipe_repo: Optional[SwipeRepository] = None,
    ) -> None:
        self.match_repo = match_repo or MatchRepository()
        self.swipe_repo = swipe_repo or SwipeRepository()

    # ── Reciprocity ───────────────────────────────────────────────────

    async def check_reciprocity(
        self,
        db: AsyncSession,
        swiper_id: uuid.UUID,
        swiped_id: uuid.UUID,
    ) -> Optional[Match]:
        """Called after ``swiper_id`` liked ``swiped_id``.

        Returns the match for the pair if the like is reciprocated (creating
        it when needed), otherwise ``None``.  Must run in the same
        transaction as the swipe insert.
        """
        user1_id, user2_id = canonical_pair(swiper_id, swiped_id)
        await self.match_repo.lock_pair(db, user1_id, user2_id)

        if not await self.swipe_repo.has_like(db, swiped_id, swiper_id):
            logger.debug(
                "reciprocity_pending",
                swiper_id=str(swiper_id),
                swiped_id=str(swiped_id),
            )
            return None

        match, _ = await self.ensure_match(db, swiper_id, swiped_id)
        return match

    async def ensure_match(
        self,
        db: AsyncSession,
        user_a_id: uuid.UUID,
        user_b_id: uuid.UUID,
    ) -> tuple[Match, bool]:
        """Return ``(match, created)`` for the pair, inserting at most once."""
        user1_id, user2_id = canonical_pair(user_a_id, user_b_id)
        log = logger.bind(user1_id=str(user1_id), user2_id=str(user2_id))

        existing = await self.match_repo.get_by_pair(db, user1_id, user2_id)
        if existing is not None:
            log.info("match_already_exists", match_id=str(existing.id))
            return existing, False

        match = await self.match_repo.create_in_savepoint(
            db, {"user1_id": user1_id, "user2_id": user2_id}
        )
        if match is not None:
            log.info("match_created", match_id=str(match.id))
            return match, True

        # Lost the insert race: the other request's row is the match.
        winner = await self.match_repo.get_by_pair(db, user1_id, user2_id)
        if winner is None:
            log.error("match_insert_conflict_unresolved")
            raise ConflictError(
                "Match could not be created for this pair; retry the request.",
                user1_id=user1_id,
                user2_id=user2_id,
            )
        log.info("match_race_resolved", match_id=str(winner.id))
        return winner, False

    # ── Lookups ───────────────────────────────────────────────────────

    async def get_match(
        self,
        db: AsyncSession,
        user_a_id: uuid.UUID | str,
        user_b_id: uuid.UUID | str,
    ) -> Optional[Match]:
        """Symmetric lookup: ``get_match(a, b) is get_match(b, a)``."""
        a, b = as_uuid(user_a_id), as_uuid(user_b_id)
        if a == b:
            return None
        return await self.match_repo.get_by_pair(db, a, b)

    async def get_match_by_id(self, db: AsyncSession, match_id: uuid.UUID) -> Match:
        match = await self.match_repo.get(db, match_id)
        if match is None:
            raise NotFoundError(f"Match {match_id} not found.", match_id=match_id)
        return match

    async def require_participant(
        self,
        db: AsyncSession,
        match_id: uuid.UUID,
        user_id: uuid.UUID,
    ) -> Match:
        match = await self.get_match_by_id(db, match_id)
        if not match.involves(user_id):
            logger.warning(
                "match_access_denied",
                match_id=str(match_id),
                user_id=str(user_id),
            )
            raise AuthorizationError(
                "You are not a participant of this match.", match_id=match_id
            )
        return match

    async def get_user_matches(
        self,
        db: AsyncSession,
        user_id: uuid.UUID,
    ) -> list[MatchWithProfile]:
        """Every match of ``user_id``, most recent activity first.

        Matches whose counterpart has no profile are kept and tagged
        ``is_partial`` rather than dropped or raised on.
        """
        items = await self.match_repo.list_for_user(db, as_uuid(user_id))
        partial = sum(1 for item in items if item.is_partial)
        if partial:
            logger.warning(
                "matches_missing_counterpart_profile",
                user_id=str(user_id),
                partial_count=partial,
            )
        logger.info("list_user_matches_complete", user_id=str(user_id), count=len(items))
        return items
