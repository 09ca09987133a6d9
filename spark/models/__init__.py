"""
Spark — ORM model registry.

Importing every model here ensures that Alembic (and any other tool that
inspects ``Base.metadata``) discovers all tables automatically.
"""

from spark.models.user import User
from spark.models.profile import Profile
from spark.models.match import Match, Swipe
from spark.models.message import Message
from spark.models.subscription import Subscription

__all__ = [
    "User",
    "Profile",
    "Swipe",
    "Match",
    "Message",
    "Subscription",
]
