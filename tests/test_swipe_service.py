"""Tests for SwipeService: the like/dislike ledger and its match trigger."""
import asyncio
import uuid
from unittest.mock import AsyncMock, patch

import pytest
from sqlalchemy import event, func, select
from sqlalchemy.ext.asyncio import async_sessionmaker, create_async_engine

from spark.database import Base
from spark.errors import ConflictError, NotFoundError, ValidationError
from spark.models import Match, Profile, Swipe, User
from spark.services.swipe_service import SwipeService


@pytest.fixture
def swipe_service():
    return SwipeService()


async def _swipe_count(db):
    return (await db.execute(select(func.count()).select_from(Swipe))).scalar_one()


async def _match_count(db):
    return (await db.execute(select(func.count()).select_from(Match))).scalar_one()


class TestRecordSwipe:

    async def test_like_is_recorded(self, db, create_user, swipe_service):
        a, b = await create_user(), await create_user()
        outcome = await swipe_service.record_swipe(db, a.id, b.id, True)

        assert outcome.created is True
        assert outcome.swipe.swiper_id == a.id
        assert outcome.swipe.swiped_id == b.id
        assert outcome.swipe.is_like is True
        assert outcome.is_match is False

    async def test_accepts_string_ids(self, db, create_user, swipe_service):
        a, b = await create_user(), await create_user()
        outcome = await swipe_service.record_swipe(db, str(a.id), str(b.id), False)
        assert outcome.swipe.is_like is False

    async def test_self_swipe_rejected(self, db, create_user, swipe_service):
        a = await create_user()
        with pytest.raises(ValidationError):
            await swipe_service.record_swipe(db, a.id, a.id, True)
        assert await _swipe_count(db) == 0

    async def test_unknown_swiped_user(self, db, create_user, swipe_service):
        a = await create_user()
        with pytest.raises(NotFoundError):
            await swipe_service.record_swipe(db, a.id, uuid.uuid4(), True)

    async def test_malformed_id_rejected(self, db, create_user, swipe_service):
        a = await create_user()
        with pytest.raises(ValidationError):
            await swipe_service.record_swipe(db, a.id, "not-a-uuid", True)


class TestDuplicatePolicy:
    """First decision wins; a repeat never adds a row."""

    async def test_repeat_swipe_keeps_first_decision(self, db, create_user, swipe_service):
        a, b = await create_user(), await create_user()
        first = await swipe_service.record_swipe(db, a.id, b.id, False)
        second = await swipe_service.record_swipe(db, a.id, b.id, True)

        assert second.created is False
        assert second.swipe.id == first.swipe.id
        assert second.swipe.is_like is False
        assert await _swipe_count(db) == 1

    async def test_opposite_directions_are_distinct(self, db, create_user, swipe_service):
        a, b = await create_user(), await create_user()
        await swipe_service.record_swipe(db, a.id, b.id, False)
        outcome = await swipe_service.record_swipe(db, b.id, a.id, False)
        assert outcome.created is True
        assert await _swipe_count(db) == 2

    async def test_lost_insert_race_returns_stored_decision(self, db, create_user, swipe_service):
        a, b = await create_user(), await create_user()
        await swipe_service.record_swipe(db, a.id, b.id, False)
        stored = await swipe_service.get_swipe(db, a.id, b.id)

        # The first lookup misses, so the insert runs into the unique pair.
        with patch.object(
            swipe_service.swipe_repo, "get_pair", AsyncMock(side_effect=[None, stored])
        ):
            outcome = await swipe_service.record_swipe(db, a.id, b.id, True)

        assert outcome.created is False
        assert outcome.swipe.id == stored.id
        assert outcome.swipe.is_like is False
        assert outcome.is_match is False
        assert await _swipe_count(db) == 1

    async def test_lost_race_without_winner_row_conflicts(self, db, create_user, swipe_service):
        a, b = await create_user(), await create_user()
        await swipe_service.record_swipe(db, a.id, b.id, True)

        with patch.object(
            swipe_service.swipe_repo, "get_pair", AsyncMock(side_effect=[None, None])
        ):
            with pytest.raises(ConflictError):
                await swipe_service.record_swipe(db, a.id, b.id, True)
        assert await _swipe_count(db) == 1


class TestMatchTrigger:

    async def test_one_sided_like_no_match(self, db, create_user, swipe_service):
        a, b = await create_user(), await create_user()
        await swipe_service.record_swipe(db, a.id, b.id, True)
        assert await _match_count(db) == 0

    async def test_mutual_like_creates_one_match(self, db, create_user, swipe_service):
        a, b = await create_user(), await create_user()
        await swipe_service.record_swipe(db, a.id, b.id, True)
        outcome = await swipe_service.record_swipe(db, b.id, a.id, True)

        assert outcome.is_match is True
        low, high = sorted([a.id, b.id], key=str)
        assert (outcome.match.user1_id, outcome.match.user2_id) == (low, high)
        assert await _match_count(db) == 1

    async def test_like_then_dislike_no_match(self, db, create_user, swipe_service):
        a, b = await create_user(), await create_user()
        await swipe_service.record_swipe(db, a.id, b.id, True)
        outcome = await swipe_service.record_swipe(db, b.id, a.id, False)
        assert outcome.is_match is False
        assert await _match_count(db) == 0

    async def test_duplicate_like_returns_existing_match(self, db, create_user, swipe_service):
        a, b = await create_user(), await create_user()
        await swipe_service.record_swipe(db, a.id, b.id, True)
        matched = await swipe_service.record_swipe(db, b.id, a.id, True)
        again = await swipe_service.record_swipe(db, b.id, a.id, True)

        assert again.created is False
        assert again.match.id == matched.match.id
        assert await _match_count(db) == 1


class TestIncomingLikes:

    async def test_lists_likers_newest_first(self, db, create_user, swipe_service):
        me = await create_user(name="Me")
        first = await create_user(name="First")
        second = await create_user(name="Second")
        passer = await create_user(name="Passer")

        await swipe_service.record_swipe(db, first.id, me.id, True)
        await swipe_service.record_swipe(db, second.id, me.id, True)
        await swipe_service.record_swipe(db, passer.id, me.id, False)

        likes = await swipe_service.get_user_likes(db, me.id)
        assert {item.profile.name for item in likes} == {"First", "Second"}
        assert await swipe_service.count_user_likes(db, me.id) == 2

    async def test_count_matches_listed_likers(self, db, create_user, swipe_service):
        me = await create_user()
        fan = await create_user(name="Fan")
        ghost = await create_user(with_profile=False)
        await swipe_service.record_swipe(db, fan.id, me.id, True)
        await swipe_service.record_swipe(db, ghost.id, me.id, True)

        likes = await swipe_service.get_user_likes(db, me.id)
        assert [item.profile.name for item in likes] == ["Fan"]
        assert await swipe_service.count_user_likes(db, me.id) == len(likes)

    async def test_get_swipe_is_directional(self, db, create_user, swipe_service):
        a, b = await create_user(), await create_user()
        await swipe_service.record_swipe(db, a.id, b.id, True)
        assert (await swipe_service.get_swipe(db, a.id, b.id)).is_like is True
        assert await swipe_service.get_swipe(db, b.id, a.id) is None


@pytest.fixture
async def file_session_factory(tmp_path):
    """Two-connection SQLite database on disk.

    ``BEGIN IMMEDIATE`` takes the write lock up front, so concurrent
    transactions serialise the way SQLite writers do in production.
    """
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'swipes.db'}")

    @event.listens_for(engine.sync_engine, "connect")
    def _on_connect(dbapi_connection, connection_record):
        dbapi_connection.isolation_level = None
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()

    @event.listens_for(engine.sync_engine, "begin")
    def _on_begin(conn):
        conn.exec_driver_sql("BEGIN IMMEDIATE")

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield async_sessionmaker(engine, expire_on_commit=False)
    await engine.dispose()


class TestConcurrentMutualLikes:

    async def test_simultaneous_reciprocal_likes_make_one_match(
        self, file_session_factory, profile_fields
    ):
        async with file_session_factory() as session:
            a = User(email="a@example.com")
            b = User(email="b@example.com")
            session.add_all([a, b])
            await session.flush()
            session.add_all(
                [
                    Profile(user_id=a.id, **profile_fields),
                    Profile(user_id=b.id, **profile_fields),
                ]
            )
            await session.commit()

        async def _like(swiper_id, swiped_id):
            async with file_session_factory() as session:
                outcome = await SwipeService().record_swipe(session, swiper_id, swiped_id, True)
                await session.commit()
                return outcome

        outcomes = await asyncio.gather(_like(a.id, b.id), _like(b.id, a.id))

        assert sum(o.is_match for o in outcomes) == 1
        async with file_session_factory() as session:
            matches = (await session.execute(select(Match))).scalars().all()
            assert len(matches) == 1
            assert str(matches[0].user1_id) < str(matches[0].user2_id)
            assert await _swipe_count(session) == 2
