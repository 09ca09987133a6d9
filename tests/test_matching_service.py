"""Unit tests for MatchingService: canonical pairs, reciprocity and lookups."""
import uuid
from unittest.mock import AsyncMock, patch

import pytest
from sqlalchemy import func, select

from spark.errors import AuthorizationError, NotFoundError, ValidationError
from spark.models import Match, Swipe
from spark.repositories.match_repository import pair_lock_key
from spark.services.matching_service import MatchingService, canonical_pair


@pytest.fixture
def matching_service():
    return MatchingService()


async def _like(db, swiper, swiped, is_like=True):
    db.add(Swipe(swiper_id=swiper.id, swiped_id=swiped.id, is_like=is_like))
    await db.flush()


class TestCanonicalPair:

    def test_orders_lexicographically(self):
        low = uuid.UUID("00000000-0000-4000-8000-000000000001")
        high = uuid.UUID("ffffffff-0000-4000-8000-000000000001")
        assert canonical_pair(high, low) == (low, high)
        assert canonical_pair(low, high) == (low, high)

    def test_accepts_strings(self):
        a, b = uuid.uuid4(), uuid.uuid4()
        assert canonical_pair(str(a), str(b)) == canonical_pair(a, b)

    def test_same_user_rejected(self):
        a = uuid.uuid4()
        with pytest.raises(ValidationError):
            canonical_pair(a, a)

    def test_lock_key_is_stable_signed_64_bit(self):
        a, b = canonical_pair(uuid.uuid4(), uuid.uuid4())
        key = pair_lock_key(a, b)
        assert key == pair_lock_key(a, b)
        assert -(2 ** 63) <= key < 2 ** 63


class TestReciprocity:

    async def test_no_reverse_like_no_match(self, db, create_user, matching_service):
        a, b = await create_user(), await create_user()
        await _like(db, a, b)
        assert await matching_service.check_reciprocity(db, a.id, b.id) is None

    async def test_reverse_dislike_no_match(self, db, create_user, matching_service):
        a, b = await create_user(), await create_user()
        await _like(db, a, b)
        await _like(db, b, a, is_like=False)
        assert await matching_service.check_reciprocity(db, a.id, b.id) is None

    async def test_mutual_like_creates_canonical_match(self, db, create_user, matching_service):
        a, b = await create_user(), await create_user()
        await _like(db, a, b)
        await _like(db, b, a)

        match = await matching_service.check_reciprocity(db, b.id, a.id)
        assert match is not None
        assert str(match.user1_id) < str(match.user2_id)
        assert {match.user1_id, match.user2_id} == {a.id, b.id}

    async def test_repeated_check_is_idempotent(self, db, create_user, matching_service):
        a, b = await create_user(), await create_user()
        await _like(db, a, b)
        await _like(db, b, a)

        first = await matching_service.check_reciprocity(db, a.id, b.id)
        second = await matching_service.check_reciprocity(db, b.id, a.id)
        assert first.id == second.id
        count = (await db.execute(select(func.count()).select_from(Match))).scalar_one()
        assert count == 1


class TestEnsureMatchRace:
    """Losing the insert race resolves to the winner's row."""

    async def test_lost_insert_returns_existing_row(self, db, create_user, matching_service):
        a, b = await create_user(), await create_user()
        winner, created = await matching_service.ensure_match(db, a.id, b.id)
        assert created is True

        repo = matching_service.match_repo
        real_get_by_pair = repo.get_by_pair
        # First lookup misses (the other request has not committed yet when
        # we look), so the insert runs and hits the unique constraint.
        with patch.object(
            repo,
            "get_by_pair",
            AsyncMock(side_effect=[None, await real_get_by_pair(db, a.id, b.id)]),
        ):
            match, created = await matching_service.ensure_match(db, b.id, a.id)

        assert created is False
        assert match.id == winner.id

    async def test_savepoint_rollback_keeps_outer_transaction(self, db, create_user, matching_service):
        a, b = await create_user(), await create_user()
        await matching_service.ensure_match(db, a.id, b.id)
        low, high = canonical_pair(a.id, b.id)

        duplicate = await matching_service.match_repo.create_in_savepoint(
            db, {"user1_id": low, "user2_id": high}
        )
        assert duplicate is None
        # Earlier writes in the same transaction survive.
        assert await matching_service.get_match(db, a.id, b.id) is not None


class TestLookups:

    async def test_get_match_is_symmetric(self, db, create_user, matching_service):
        a, b = await create_user(), await create_user()
        created, _ = await matching_service.ensure_match(db, a.id, b.id)

        ab = await matching_service.get_match(db, a.id, b.id)
        ba = await matching_service.get_match(db, b.id, a.id)
        assert ab.id == ba.id == created.id

    async def test_get_match_same_user_is_none(self, db, create_user, matching_service):
        a = await create_user()
        assert await matching_service.get_match(db, a.id, a.id) is None

    async def test_unknown_match_id(self, db, matching_service):
        with pytest.raises(NotFoundError):
            await matching_service.get_match_by_id(db, uuid.uuid4())

    async def test_require_participant_rejects_outsider(self, db, create_user, matching_service):
        a, b, c = await create_user(), await create_user(), await create_user()
        match, _ = await matching_service.ensure_match(db, a.id, b.id)
        assert (await matching_service.require_participant(db, match.id, a.id)).id == match.id
        with pytest.raises(AuthorizationError):
            await matching_service.require_participant(db, match.id, c.id)

    async def test_user_matches_include_counterpart_profile(
        self, db, create_user, matching_service
    ):
        me = await create_user(name="Me")
        alex = await create_user(name="Alex")
        await matching_service.ensure_match(db, me.id, alex.id)

        items = await matching_service.get_user_matches(db, me.id)
        assert len(items) == 1
        assert items[0].counterpart_id == alex.id
        assert items[0].counterpart_profile.name == "Alex"
        assert items[0].is_partial is False

    async def test_counterpart_without_profile_is_partial(
        self, db, create_user, matching_service
    ):
        me = await create_user()
        ghost = await create_user(with_profile=False)
        await matching_service.ensure_match(db, me.id, ghost.id)

        items = await matching_service.get_user_matches(db, me.id)
        assert len(items) == 1
        assert items[0].is_partial is True
        assert items[0].counterpart_id == ghost.id

    async def test_user_matches_most_recent_activity_first(
        self, db, create_user, hours_ago, matching_service
    ):
        me = await create_user()
        old, chatty = await create_user(name="Old"), await create_user(name="Chatty")
        old_match, _ = await matching_service.ensure_match(db, me.id, old.id)
        chatty_match, _ = await matching_service.ensure_match(db, me.id, chatty.id)
        old_match.created_at = hours_ago(5)
        chatty_match.created_at = hours_ago(10)
        chatty_match.last_message_at = hours_ago(1)
        await db.flush()

        items = await matching_service.get_user_matches(db, me.id)
        assert [i.counterpart_profile.name for i in items] == ["Chatty", "Old"]
