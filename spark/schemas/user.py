from pydantic import Field
from uuid import UUID
from datetime import datetime
from typing import Optional

from spark.schemas.base import CamelModel


class LoginRequest(CamelModel):
    email: str = Field(min_length=3, max_length=320)


class UserResponse(CamelModel):
    id: UUID
    email: Optional[str]
    is_vip: bool = Field(alias="isVIP")
    vip_expires_at: Optional[datetime] = None
    last_active_at: Optional[datetime] = None
    created_at: datetime


class ProfileResponse(CamelModel):
    id: UUID
    user_id: UUID
    name: str
    age: int
    bio: Optional[str] = None
    gender: str
    looking_for: str
    interests: list[str] = []
    photos: list[str] = []
    is_verified: bool
    latitude: Optional[float] = None
    longitude: Optional[float] = None
    city: Optional[str] = None
    max_distance: int
    age_range_min: int
    age_range_max: int
    created_at: datetime
    updated_at: datetime


class UserWithProfileResponse(CamelModel):
    user: UserResponse
    profile: Optional[ProfileResponse] = None


class ProfileUpdate(CamelModel):
    """Partial profile; only the fields present in the body are applied."""

    name: Optional[str] = Field(None, min_length=1, max_length=100)
    age: Optional[int] = Field(None, le=120)
    bio: Optional[str] = Field(None, max_length=2000)
    gender: Optional[str] = None
    looking_for: Optional[str] = None
    interests: Optional[list[str]] = None
    photos: Optional[list[str]] = None
    latitude: Optional[float] = None
    longitude: Optional[float] = None
    city: Optional[str] = None
    max_distance: Optional[int] = None
    age_range_min: Optional[int] = None
    age_range_max: Optional[int] = None
