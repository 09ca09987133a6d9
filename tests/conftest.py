"""Shared pytest fixtures for Spark tests."""
import os

os.environ["DATABASE_URL"] = "sqlite+aiosqlite:///:memory:"
os.environ.setdefault("ENVIRONMENT", "test")

import uuid
from datetime import datetime, timedelta, timezone

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy import event
from sqlalchemy.ext.asyncio import async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from spark.database import Base
from spark.models import Profile, User


@pytest.fixture
async def engine():
    """Fresh in-memory SQLite database per test.

    pysqlite's own transaction handling breaks SAVEPOINT, so BEGIN is
    emitted explicitly; foreign keys are off by default in SQLite.
    """
    engine = create_async_engine("sqlite+aiosqlite:///:memory:", poolclass=StaticPool)

    @event.listens_for(engine.sync_engine, "connect")
    def _on_connect(dbapi_connection, connection_record):
        dbapi_connection.isolation_level = None
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()

    @event.listens_for(engine.sync_engine, "begin")
    def _on_begin(conn):
        conn.exec_driver_sql("BEGIN")

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(engine):
    return async_sessionmaker(engine, expire_on_commit=False)


@pytest.fixture
async def db(session_factory):
    async with session_factory() as session:
        yield session


@pytest.fixture
def profile_fields():
    return {
        "name": "Emma",
        "age": 26,
        "gender": "woman",
        "looking_for": "serious",
        "bio": "Love hiking, good coffee, and spontaneous adventures.",
        "interests": ["Travel", "Photography", "Coffee"],
        "photos": ["https://cdn.example.com/emma/1.jpg"],
    }


@pytest.fixture
def create_user(db, profile_fields):
    """Factory: insert a user, with a profile unless ``with_profile=False``."""

    async def _create(with_profile=True, created_at=None, **overrides):
        user = User(email=f"{uuid.uuid4().hex[:10]}@example.com")
        db.add(user)
        await db.flush()
        if with_profile:
            fields = {**profile_fields, **overrides}
            if created_at is not None:
                fields["created_at"] = created_at
            db.add(Profile(user_id=user.id, **fields))
            await db.flush()
        return user

    return _create


@pytest.fixture
def now():
    return datetime.now(timezone.utc)


@pytest.fixture
def hours_ago(now):
    def _ago(hours):
        return now - timedelta(hours=hours)

    return _ago


@pytest.fixture
async def client(session_factory):
    """HTTP client against the app with ``get_db`` bound to the test database."""
    from spark.database import get_db
    from spark.main import app

    async def _get_test_db():
        async with session_factory() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    app.dependency_overrides[get_db] = _get_test_db
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac
    app.dependency_overrides.clear()
