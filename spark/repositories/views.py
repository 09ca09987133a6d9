"""
Composed read views returned by the repository layer.

Each view is assembled in exactly one place (the repository query that loads
it) so endpoints never stitch users, profiles and matches together ad hoc.
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass
from typing import Optional

from spark.models.match import Match
from spark.models.message import Message
from spark.models.profile import Profile
from spark.models.user import User


@dataclass(frozen=True)
class ProfileWithUser:
    profile: Profile
    user: User


@dataclass(frozen=True)
class MatchWithProfile:
    """A match seen from one participant.

    ``is_partial`` is set when the counterpart has no profile row; the match
    is still listed so that it is never silently dropped.
    """

    match: Match
    counterpart_id: uuid.UUID
    counterpart_profile: Optional[Profile]

    @property
    def is_partial(self) -> bool:
        return self.counterpart_profile is None


@dataclass(frozen=True)
class MessageWithSender:
    message: Message
    sender_profile: Optional[Profile]
