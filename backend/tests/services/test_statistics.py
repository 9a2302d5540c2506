"""
Tests for SqlStatisticsProvider.
"""
from unittest.mock import patch

import pytest
from sqlalchemy.exc import IntegrityError, OperationalError

from progression.models import UserStats
from progression.services.statistics import SqlStatisticsProvider


@pytest.mark.asyncio
async def test_snapshot_from_rollup_and_assessments(statistics_provider, seed_stats, seed_assessments, user_id):
    await seed_stats(books_completed=12, current_streak=4, cards_reviewed=300, retention_rate=0.85)
    await seed_assessments([70, 85, 90, 60])

    snapshot = await statistics_provider.snapshot(user_id)

    assert snapshot.books_completed == 12
    assert snapshot.current_streak == 4
    assert snapshot.cards_reviewed == 300
    assert snapshot.retention_rate == pytest.approx(0.85)
    assert snapshot.followers_count == 0
    assert snapshot.avg_reading_speed is None
    assert snapshot.assessments_completed == 4
    assert snapshot.assessments_80_plus == 2
    assert snapshot.average_assessment_score == pytest.approx(76.25)
    # Most recent by completion time, not by highest score
    assert snapshot.latest_assessment_score == 60
    assert snapshot.level is None


@pytest.mark.asyncio
async def test_snapshot_for_unknown_user(statistics_provider):
    snapshot = await statistics_provider.snapshot(999)

    assert snapshot.books_completed is None
    assert snapshot.assessments_completed == 0
    assert snapshot.assessments_80_plus == 0
    assert snapshot.average_assessment_score is None
    assert snapshot.latest_assessment_score is None


@pytest.mark.asyncio
async def test_snapshot_isolated_per_user(statistics_provider, seed_stats, seed_assessments, user_id):
    await seed_stats(user_id=user_id, books_completed=1)
    await seed_stats(user_id=user_id + 1, books_completed=50)
    await seed_assessments([100], user_id=user_id + 1)

    snapshot = await statistics_provider.snapshot(user_id)

    assert snapshot.books_completed == 1
    assert snapshot.assessments_completed == 0


@pytest.mark.asyncio
async def test_failed_query_leaves_statistics_unmeasured(statistics_provider, seed_stats, seed_assessments, user_id):
    await seed_stats(books_completed=3)
    await seed_assessments([95])

    async def broken(session, user_id):
        raise OperationalError("SELECT", {}, Exception("timeout"))

    with patch.object(SqlStatisticsProvider, "_assessment_totals", staticmethod(broken)):
        snapshot = await statistics_provider.snapshot(user_id)

    assert snapshot.books_completed == 3
    assert snapshot.latest_assessment_score == 95
    assert snapshot.assessments_completed is None
    assert snapshot.average_assessment_score is None


@pytest.mark.asyncio
async def test_out_of_range_values_leave_only_those_statistics_unmeasured(statistics_provider, user_id):
    async def rollup(session, user_id):
        # Retention stored as a percentage and a corrupted streak
        return {"books_completed": 5, "retention_rate": 85.0, "current_streak": -2, "cards_reviewed": 40}

    with patch.object(SqlStatisticsProvider, "_rollup", staticmethod(rollup)):
        snapshot = await statistics_provider.snapshot(user_id)

    assert snapshot.books_completed == 5
    assert snapshot.cards_reviewed == 40
    assert snapshot.retention_rate is None
    assert snapshot.current_streak is None


@pytest.mark.asyncio
@pytest.mark.parametrize("values", [
    {"retention_rate": 85.0},
    {"retention_rate": -0.1},
    {"books_completed": -1},
    {"best_answers": -3},
    {"avg_reading_speed": -10.0},
])
async def test_user_stats_rejects_out_of_range_values(db_session, user_id, values):
    db_session.add(UserStats(user_id=user_id, **values))

    with pytest.raises(IntegrityError):
        await db_session.flush()
