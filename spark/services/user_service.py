"""
Spark — Users and profiles.

Login is a lookup-or-create on the email address; there is no password or
token layer.  Each user owns at most one profile, created on the first
profile update and merged on later ones.
"""

from __future__ import annotations

import uuid
from typing import Any, Optional

import structlog
from sqlalchemy.ext.asyncio import AsyncSession

from spark.errors import NotFoundError, ValidationError
from spark.models.profile import GENDERS, LOOKING_FOR, MIN_AGE, Profile
from spark.models.user import User
from spark.repositories.user_repository import ProfileRepository, UserRepository
from spark.services.matching_service import as_uuid

logger = structlog.get_logger("spark.user_service")

PROFILE_FIELDS = (
    "name",
    "age",
    "bio",
    "gender",
    "looking_for",
    "interests",
    "photos",
    "latitude",
    "longitude",
    "city",
    "max_distance",
    "age_range_min",
    "age_range_max",
)
REQUIRED_PROFILE_FIELDS = ("name", "age", "gender", "looking_for")

_PROFILE_DEFAULTS: dict[str, Any] = {
    "interests": [],
    "photos": [],
    "max_distance": 50,
    "age_range_min": 18,
    "age_range_max": 99,
}


def validate_profile(fields: dict) -> None:
    """Check the domain rules on a complete (merged) set of profile fields."""
    missing = [f for f in REQUIRED_PROFILE_FIELDS if fields.get(f) in (None, "")]
    if missing:
        raise ValidationError(f"Missing required profile fields: {', '.join(missing)}.")

    if fields["age"] < MIN_AGE:
        raise ValidationError(f"You must be at least {MIN_AGE} to use Spark.")
    if fields["gender"] not in GENDERS:
        raise ValidationError(f"gender must be one of {', '.join(GENDERS)}.")
    if fields["looking_for"] not in LOOKING_FOR:
        raise ValidationError(f"looking_for must be one of {', '.join(LOOKING_FOR)}.")

    lo = fields.get("age_range_min", _PROFILE_DEFAULTS["age_range_min"])
    hi = fields.get("age_range_max", _PROFILE_DEFAULTS["age_range_max"])
    if lo < MIN_AGE:
        raise ValidationError(f"age_range_min must be at least {MIN_AGE}.")
    if lo > hi:
        raise ValidationError("age_range_min must not exceed age_range_max.")

    if fields.get("max_distance") is not None and fields["max_distance"] < 1:
        raise ValidationError("max_distance must be at least 1 km.")

    lat, lon = fields.get("latitude"), fields.get("longitude")
    if (lat is None) != (lon is None):
        raise ValidationError("latitude and longitude must be set together.")
    if lat is not None and not (-90 <= lat <= 90 and -180 <= lon <= 180):
        raise ValidationError("Coordinates are out of range.")


class UserService:
    def __init__(
        self,
        user_repo: Optional[UserRepository] = None,
        profile_repo: Optional[ProfileRepository] = None,
    ) -> None:
        self.user_repo = user_repo or UserRepository()
        self.profile_repo = profile_repo or ProfileRepository()

    async def login(self, db: AsyncSession, email: str) -> User:
        """Return the user for ``email``, creating it on first login."""
        email = (email or "").strip().lower()
        if not email or "@" not in email:
            raise ValidationError("A valid email address is required.")

        user = await self.user_repo.get_by_email(db, email)
        if user is None:
            user = await self.user_repo.create_in_savepoint(db, {"email": email})
            if user is None:
                # A concurrent first login created it.
                user = await self.user_repo.get_by_email(db, email)
            else:
                logger.info("user_created", user_id=str(user.id))

        await self.user_repo.touch_last_active(db, user)
        logger.info("login_complete", user_id=str(user.id))
        return user

    async def get_user(self, db: AsyncSession, user_id: uuid.UUID | str) -> User:
        user_id = as_uuid(user_id)
        user = await self.user_repo.get(db, user_id)
        if user is None:
            raise NotFoundError(f"User {user_id} not found.", user_id=user_id)
        return user

    async def get_user_with_profile(
        self,
        db: AsyncSession,
        user_id: uuid.UUID | str,
    ) -> tuple[User, Optional[Profile]]:
        user = await self.get_user(db, user_id)
        profile = await self.profile_repo.get_by_user_id(db, user.id)
        return user, profile

    async def upsert_profile(
        self,
        db: AsyncSession,
        user_id: uuid.UUID | str,
        fields: dict,
    ) -> tuple[User, Profile]:
        """Create the profile on first call, otherwise merge ``fields`` into it.

        Unknown keys are ignored.  Validation runs on the merged result
        before anything is written.

        Raises
        ------
        NotFoundError
            Unknown user.
        ValidationError
            Missing required fields on create, age under 18, an inverted
            age range, or an unknown gender / looking_for value.
        """
        user = await self.get_user(db, user_id)
        log = logger.bind(user_id=str(user.id))
        # A null for a defaulted column means "leave as is".
        updates = {
            k: v
            for k, v in fields.items()
            if k in PROFILE_FIELDS and not (v is None and k in _PROFILE_DEFAULTS)
        }

        profile = await self.profile_repo.get_by_user_id(db, user.id)
        if profile is None:
            merged = {**_PROFILE_DEFAULTS, **updates}
            validate_profile(merged)
            profile = await self.profile_repo.create_for_user(db, user, merged)
            log.info("profile_created", profile_id=str(profile.id))
        else:
            current = {f: getattr(profile, f) for f in PROFILE_FIELDS}
            merged = {**current, **updates}
            validate_profile(merged)
            profile = await self.profile_repo.update(db, profile, updates)
            log.info("profile_updated", updated_fields=sorted(updates))

        await self.user_repo.touch_last_active(db, user)
        return user, profile

    async def delete_user(self, db: AsyncSession, user_id: uuid.UUID | str) -> None:
        """Hard-delete a user; the database cascades to every owned row."""
        user_id = as_uuid(user_id)
        if not await self.user_repo.delete(db, user_id):
            raise NotFoundError(f"User {user_id} not found.", user_id=user_id)
        logger.warning("user_deleted", user_id=str(user_id))
