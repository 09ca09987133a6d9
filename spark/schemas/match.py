from pydantic import Field
from uuid import UUID
from datetime import datetime
from typing import Optional

from spark.schemas.base import CamelModel
from spark.schemas.user import ProfileResponse


class SwipeCreate(CamelModel):
    swiped_id: UUID
    is_like: bool


class SwipeRecord(CamelModel):
    id: UUID
    swiper_id: UUID
    swiped_id: UUID
    is_like: bool
    created_at: datetime


class MatchRecord(CamelModel):
    id: UUID
    user1_id: UUID
    user2_id: UUID
    created_at: datetime
    last_message_at: Optional[datetime] = None


class SwipeResponse(CamelModel):
    swipe: SwipeRecord
    created: bool
    is_match: bool
    match: Optional[MatchRecord] = None


class MatchListItem(CamelModel):
    id: UUID
    user_id: UUID
    created_at: datetime
    last_message_at: Optional[datetime] = None
    profile: Optional[ProfileResponse] = None
    # Counterpart has no profile row yet.
    is_partial: bool = False


class MatchListResponse(CamelModel):
    matches: list[MatchListItem]


class DiscoveryProfile(CamelModel):
    id: UUID = Field(description="User id; pass it as swipedId when swiping")
    profile_id: UUID
    name: str
    age: int
    distance: Optional[int] = None
    distance_is_estimate: bool = False
    bio: Optional[str] = None
    interests: list[str] = []
    photos: list[str] = []
    is_verified: bool
    city: Optional[str] = None


class DiscoveryResponse(CamelModel):
    profiles: list[DiscoveryProfile]


class LikesResponse(CamelModel):
    likes: list[ProfileResponse]
    count: int
    is_vip: bool = Field(alias="isVIP")
