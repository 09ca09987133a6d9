"""
Repository layer: the only code that issues queries against the database.
"""

from .base import BaseRepository
from .match_repository import MatchRepository
from .message_repository import MessageRepository
from .subscription_repository import SubscriptionRepository
from .swipe_repository import SwipeRepository
from .user_repository import ProfileRepository, UserRepository
from .views import MatchWithProfile, MessageWithSender, ProfileWithUser

__all__ = [
    "BaseRepository",
    "UserRepository",
    "ProfileRepository",
    "SwipeRepository",
    "MatchRepository",
    "MessageRepository",
    "SubscriptionRepository",
    "ProfileWithUser",
    "MatchWithProfile",
    "MessageWithSender",
]
