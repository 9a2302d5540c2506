"""
Pytest configuration and fixtures.

Provides fixtures for:
- A file-backed SQLite database per test, with savepoint support
- Database sessions and a statistics provider bound to that database
- HTTP client with mocked Redis and overridden dependencies
- Auth headers for a test user
- A small achievement catalog and helpers to seed activity data
"""
from datetime import datetime, timedelta, timezone
from typing import AsyncGenerator
from unittest.mock import AsyncMock

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy import event
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

import progression.models  # noqa: F401  registers tables on Base.metadata
from progression.api.deps import get_cache, get_catalog, get_redis, get_statistics_provider
from progression.db.base import Base
from progression.db.session import get_db
from progression.gamification.catalog import (
    AchievementCatalog,
    AchievementCategory,
    AchievementDefinition,
    AchievementTier,
    Requirement,
)
from progression.gamification.statistics import Statistic
from progression.main import app
from progression.models import AssessmentResult, UserStats
from progression.repositories.cache_repo import CacheRepository
from progression.services.auth import create_access_token
from progression.services.statistics import SqlStatisticsProvider

TEST_USER_ID = 42


@pytest_asyncio.fixture(scope="function")
async def test_engine(tmp_path):
    """Create test database engine."""
    engine = create_async_engine(
        f"sqlite+aiosqlite:///{tmp_path / 'test.db'}",
        echo=False,
    )

    # pysqlite's own transaction handling breaks SAVEPOINT; let SQLAlchemy emit BEGIN
    @event.listens_for(engine.sync_engine, "connect")
    def _disable_pysqlite_transactions(dbapi_connection, connection_record):
        dbapi_connection.isolation_level = None

    @event.listens_for(engine.sync_engine, "begin")
    def _emit_begin(conn):
        conn.exec_driver_sql("BEGIN")

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    await engine.dispose()


@pytest.fixture
def session_factory(test_engine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(
        test_engine,
        class_=AsyncSession,
        expire_on_commit=False,
    )


@pytest_asyncio.fixture(scope="function")
async def db_session(session_factory) -> AsyncGenerator[AsyncSession, None]:
    """Create test database session."""
    async with session_factory() as session:
        yield session
        await session.rollback()


@pytest.fixture
def statistics_provider(session_factory) -> SqlStatisticsProvider:
    return SqlStatisticsProvider(session_factory)


@pytest.fixture
def mock_redis() -> AsyncMock:
    """Redis stand-in that always misses."""
    redis = AsyncMock()
    redis.get.return_value = None
    redis.setex.return_value = True
    redis.delete.return_value = 1
    return redis


@pytest_asyncio.fixture(scope="function")
async def client(db_session, statistics_provider, mock_redis) -> AsyncGenerator[AsyncClient, None]:
    """Create test HTTP client bound to the test database."""

    async def override_get_db():
        yield db_session

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_statistics_provider] = lambda: statistics_provider
    app.dependency_overrides[get_cache] = lambda: CacheRepository(mock_redis)
    app.dependency_overrides[get_redis] = lambda: mock_redis

    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac

    app.dependency_overrides.clear()


@pytest.fixture
def use_catalog():
    """Serve a different catalog from the API for one test."""

    def _use(catalog: AchievementCatalog) -> None:
        app.dependency_overrides[get_catalog] = lambda: catalog

    return _use


@pytest.fixture
def user_id() -> int:
    return TEST_USER_ID


@pytest.fixture
def auth_headers(user_id) -> dict:
    """Bearer token for the test user."""
    return {"Authorization": f"Bearer {create_access_token(user_id)}"}


# -----------------------------------------------------------------------------
# Catalog Fixtures
# -----------------------------------------------------------------------------

@pytest.fixture
def small_catalog() -> AchievementCatalog:
    """
    A catalog small enough to reason about by hand.

    read_1 (50) + read_5 (100) = 150 XP reaches level 2, which unlocks
    level_2 (50) in the same run.
    """
    reading = AchievementCategory.READING
    return AchievementCatalog([
        AchievementDefinition("read_1", "First Book", "Read one book",
                              reading, AchievementTier.BRONZE, 1, "book", 1),
        AchievementDefinition("read_5", "Five Books", "Read five books",
                              reading, AchievementTier.SILVER, 5, "books", 2),
        AchievementDefinition("retired", "Retired", "No longer awarded",
                              reading, AchievementTier.BRONZE, 1, "archive", 3, is_active=False),
        AchievementDefinition("streak_3", "Three Days", "Three-day streak",
                              AchievementCategory.STREAK, AchievementTier.BRONZE, 3, "flame", 4),
        AchievementDefinition("high_avg", "High Average", "Average 90+ over 3 assessments",
                              AchievementCategory.ASSESSMENTS, AchievementTier.SILVER, 90, "award", 5,
                              statistic=Statistic.AVERAGE_ASSESSMENT_SCORE,
                              requirements=(Requirement(Statistic.ASSESSMENTS_COMPLETED, 3),)),
        AchievementDefinition("level_2", "Level Two", "Reach level 2",
                              AchievementCategory.MILESTONES, AchievementTier.BRONZE, 2, "arrow-up", 6),
    ])


# -----------------------------------------------------------------------------
# Activity Data Fixtures
# -----------------------------------------------------------------------------

@pytest.fixture
def seed_stats(db_session):
    """Insert (and commit) a user_stats row."""

    async def _seed(user_id: int = TEST_USER_ID, **counters) -> UserStats:
        stats = UserStats(user_id=user_id, **counters)
        db_session.add(stats)
        await db_session.commit()
        return stats

    return _seed


@pytest.fixture
def seed_assessments(db_session):
    """Insert (and commit) assessment results, oldest first."""

    async def _seed(scores: list[float], user_id: int = TEST_USER_ID) -> None:
        start = datetime(2026, 1, 1, tzinfo=timezone.utc)
        for offset, score in enumerate(scores):
            db_session.add(
                AssessmentResult(
                    user_id=user_id,
                    score=score,
                    completed_at=start + timedelta(days=offset),
                )
            )
        await db_session.commit()

    return _seed
