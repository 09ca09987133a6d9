"""
Spark — Discovery Query

Chooses the next profiles a user can swipe on.

Exclusions (always applied):
  - the caller's own profile
  - every profile the caller has already swiped on, like or dislike

Ranking is a placeholder: newest profile first, ties broken by profile id.
It lives in ``_rank`` alone so a real ranker can replace it without
changing what goes in or comes out.

Distance shown on each card:
  - both profiles have coordinates → great-circle distance, whole km
  - otherwise, with ``DISCOVERY_PLACEHOLDER_DISTANCE`` on → random value in
    ``[1, DISCOVERY_PLACEHOLDER_MAX_KM]`` flagged ``distance_is_estimate``
  - otherwise → ``None``
"""

from __future__ import annotations

import math
import random
import uuid
from dataclasses import dataclass
from typing import Optional

import structlog
from sqlalchemy.ext.asyncio import AsyncSession

from spark.config import get_settings
from spark.errors import ValidationError
from spark.models.profile import Profile
from spark.models.user import User
from spark.repositories.user_repository import ProfileRepository
from spark.services.matching_service import as_uuid

logger = structlog.get_logger("spark.discovery_service")

_EARTH_RADIUS_KM = 6371.0088


def haversine_km(lat1: float, lon1: float, lat2: float, lon2: float) -> float:
    """Great-circle distance between two points in kilometres."""
    phi1, phi2 = math.radians(lat1), math.radians(lat2)
    d_phi = math.radians(lat2 - lat1)
    d_lambda = math.radians(lon2 - lon1)
    a = (
        math.sin(d_phi / 2) ** 2
        + math.cos(phi1) * math.cos(phi2) * math.sin(d_lambda / 2) ** 2
    )
    return 2 * _EARTH_RADIUS_KM * math.asin(math.sqrt(a))


@dataclass(frozen=True)
class DiscoveryCandidate:
    profile: Profile
    user: User
    distance_km: Optional[int]
    distance_is_estimate: bool


class DiscoveryService:
    def __init__(
        self,
        profile_repo: Optional[ProfileRepository] = None,
        rng: Optional[random.Random] = None,
    ) -> None:
        self.profile_repo = profile_repo or ProfileRepository()
        self.rng = rng or random.Random()

        settings = get_settings()
        self.default_limit: int = settings.DISCOVERY_DEFAULT_LIMIT
        self.max_limit: int = settings.DISCOVERY_MAX_LIMIT
        self.placeholder_distance: bool = settings.DISCOVERY_PLACEHOLDER_DISTANCE
        self.placeholder_max_km: int = settings.DISCOVERY_PLACEHOLDER_MAX_KM

    async def get_discovery_profiles(
        self,
        db: AsyncSession,
        user_id: uuid.UUID | str,
        limit: Optional[int] = None,
    ) -> list[DiscoveryCandidate]:
        """Return up to ``limit`` unseen candidate profiles for ``user_id``.

        ``limit`` defaults to ``DISCOVERY_DEFAULT_LIMIT`` and is capped at
        ``DISCOVERY_MAX_LIMIT``; below 1 is a ``ValidationError``.  Repeated calls with no new swipes return
        the same candidates in the same order.
        """
        user_id = as_uuid(user_id)
        if limit is None:
            limit = self.default_limit
        if limit < 1:
            raise ValidationError("limit must be at least 1.", limit=limit)
        limit = min(limit, self.max_limit)

        log = logger.bind(user_id=str(user_id), limit=limit)

        viewer = await self.profile_repo.get_by_user_id(db, user_id)
        rows = await self.profile_repo.list_discovery_candidates(
            db, user_id, limit=limit, order_by=self._rank()
        )

        candidates: list[DiscoveryCandidate] = []
        seen: set[uuid.UUID] = set()
        for row in rows:
            if row.profile.user_id in seen:
                continue
            seen.add(row.profile.user_id)
            distance, estimated = self._display_distance(viewer, row.profile)
            candidates.append(
                DiscoveryCandidate(
                    profile=row.profile,
                    user=row.user,
                    distance_km=distance,
                    distance_is_estimate=estimated,
                )
            )

        log.info("discovery_complete", candidate_count=len(candidates))
        return candidates

    def _rank(self) -> tuple:
        """Ordering clauses for candidates (placeholder: newest first)."""
        return (Profile.created_at.desc(), Profile.id)

    def _display_distance(
        self,
        viewer: Optional[Profile],
        candidate: Profile,
    ) -> tuple[Optional[int], bool]:
        if viewer is not None and viewer.has_coordinates and candidate.has_coordinates:
            km = haversine_km(
                viewer.latitude, viewer.longitude, candidate.latitude, candidate.longitude
            )
            return int(round(km)), False
        if self.placeholder_distance:
            return self.rng.randint(1, self.placeholder_max_km), True
        return None, False
