"""
Statistics provider.

Builds a UserStatisticsSnapshot from persisted activity data. The queries
are independent, so they run concurrently, each on its own session. A
failed query leaves its statistics unmeasured instead of failing the
whole snapshot; achievements depending on them simply do not unlock
until a later check.
"""
import asyncio
from typing import Any, Awaitable, Callable, Protocol

import structlog
from pydantic import ValidationError
from sqlalchemy import case, func, select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from progression.gamification.statistics import UserStatisticsSnapshot
from progression.models.stats import AssessmentResult, UserStats

logger = structlog.get_logger()

HIGH_SCORE_THRESHOLD = 80

_ROLLUP_FIELDS = (
    "books_completed",
    "total_reading_minutes",
    "avg_reading_speed",
    "current_streak",
    "longest_streak",
    "cards_reviewed",
    "cards_mastered",
    "retention_rate",
    "highlights_created",
    "annotations_created",
    "followers_count",
    "groups_created",
    "public_curriculums_created",
    "best_answers",
)


def _valid_statistics(values: dict[str, Any]) -> tuple[dict[str, Any], list[str]]:
    """
    Split ``values`` into fields the snapshot accepts and names it rejects.

    Fields are checked one at a time, so a single bad row value (a negative
    counter, a percentage stored as 85 instead of 0.85) only leaves that
    statistic unmeasured.
    """
    accepted: dict[str, Any] = {}
    rejected: list[str] = []
    for name, value in values.items():
        try:
            UserStatisticsSnapshot.model_validate({name: value})
        except ValidationError:
            rejected.append(name)
            continue
        accepted[name] = value
    return accepted, rejected


class StatisticsProvider(Protocol):
    """Source of fresh statistics for achievement checks."""

    async def snapshot(self, user_id: int) -> UserStatisticsSnapshot:
        ...


class SqlStatisticsProvider:
    """Reads the user_stats rollup and assessment results."""

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]):
        self.session_factory = session_factory

    async def _run(self, query: Callable[[AsyncSession, int], Awaitable[dict[str, Any]]], user_id: int) -> dict[str, Any]:
        async with self.session_factory() as session:
            return await query(session, user_id)

    @staticmethod
    async def _rollup(session: AsyncSession, user_id: int) -> dict[str, Any]:
        result = await session.execute(select(UserStats).where(UserStats.user_id == user_id))
        stats = result.scalar_one_or_none()
        if stats is None:
            return {}
        return {name: getattr(stats, name) for name in _ROLLUP_FIELDS}

    @staticmethod
    async def _assessment_totals(session: AsyncSession, user_id: int) -> dict[str, Any]:
        result = await session.execute(
            select(
                func.count(AssessmentResult.id),
                func.coalesce(
                    func.sum(case((AssessmentResult.score >= HIGH_SCORE_THRESHOLD, 1), else_=0)),
                    0,
                ),
                func.avg(AssessmentResult.score),
            ).where(AssessmentResult.user_id == user_id)
        )
        completed, high_scores, average = result.one()
        return {
            "assessments_completed": int(completed),
            "assessments_80_plus": int(high_scores),
            "average_assessment_score": float(average) if average is not None else None,
        }

    @staticmethod
    async def _latest_assessment(session: AsyncSession, user_id: int) -> dict[str, Any]:
        result = await session.execute(
            select(AssessmentResult.score)
            .where(AssessmentResult.user_id == user_id)
            .order_by(AssessmentResult.completed_at.desc(), AssessmentResult.id.desc())
            .limit(1)
        )
        score = result.scalar_one_or_none()
        return {"latest_assessment_score": float(score) if score is not None else None}

    async def snapshot(self, user_id: int) -> UserStatisticsSnapshot:
        """
        Fresh snapshot for ``user_id``.

        ``level`` is left unset; the progression service fills it in.
        """
        queries = {
            "rollup": self._rollup,
            "assessment_totals": self._assessment_totals,
            "latest_assessment": self._latest_assessment,
        }
        results = await asyncio.gather(
            *(self._run(query, user_id) for query in queries.values()),
            return_exceptions=True,
        )

        values: dict[str, Any] = {}
        for name, result in zip(queries, results):
            if isinstance(result, Exception):
                logger.warning(
                    "Statistics query failed",
                    user_id=user_id,
                    query=name,
                    error=str(result),
                    error_type=type(result).__name__,
                )
                continue
            accepted, rejected = _valid_statistics(result)
            if rejected:
                logger.warning(
                    "Discarding out-of-range statistics",
                    user_id=user_id,
                    query=name,
                    fields=rejected,
                )
            values.update(accepted)

        return UserStatisticsSnapshot(**values)
