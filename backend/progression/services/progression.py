"""
Progression service.

Server-authoritative achievement awarding and XP/level bookkeeping.

An award run is a single transaction: every unlock row and the XP update
commit together or not at all. Each unlock insert runs in its own
savepoint, so a duplicate (another request already awarded it) only
skips that achievement.
"""
from dataclasses import dataclass, field
from datetime import datetime, timezone

import structlog
from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from progression.db.transaction import atomic
from progression.db.utils import get_or_create
from progression.gamification.catalog import AchievementCatalog, AchievementDefinition
from progression.gamification.criteria import unlockable
from progression.gamification.leveling import level_for_xp
from progression.models.progression import UserProgression
from progression.repositories.achievement_repo import AchievementRepository
from progression.schemas.achievement import (
    AchievementsCheckResponse,
    AchievementsListResponse,
    AchievementWithStatus,
    CategorySummary,
    ProgressionResponse,
    UnlockedAchievement,
)
from progression.services.statistics import StatisticsProvider

logger = structlog.get_logger()


def _definition_fields(definition: AchievementDefinition) -> dict:
    return {
        "code": definition.code,
        "name": definition.name,
        "description": definition.description,
        "category": definition.category.value,
        "tier": definition.tier.value,
        "threshold": definition.threshold,
        "xp_reward": definition.xp_reward,
        "icon": definition.icon,
        "color": definition.color,
        "sort_order": definition.sort_order,
        "is_active": definition.is_active,
    }


@dataclass
class AwardResult:
    """Outcome of one check_and_award run."""
    previous_xp: int
    new_xp: int
    previous_level: int
    new_level: int
    newly_unlocked: list[tuple[AchievementDefinition, datetime]] = field(default_factory=list)

    @property
    def total_xp_awarded(self) -> int:
        return self.new_xp - self.previous_xp

    @property
    def leveled_up(self) -> bool:
        return self.new_level > self.previous_level

    def to_response(self) -> AchievementsCheckResponse:
        return AchievementsCheckResponse(
            newly_unlocked=[
                UnlockedAchievement(**_definition_fields(definition), unlocked_at=unlocked_at)
                for definition, unlocked_at in self.newly_unlocked
            ],
            total_xp_awarded=self.total_xp_awarded,
            previous_xp=self.previous_xp,
            new_xp=self.new_xp,
            previous_level=self.previous_level,
            new_level=self.new_level,
            leveled_up=self.leveled_up,
        )


class ProgressionService:
    """
    Awards achievements and maintains XP and level for users.

    Usage:
        service = ProgressionService(db, DEFAULT_CATALOG, SqlStatisticsProvider(async_session_maker))
        result = await service.check_and_award(user_id)
    """

    def __init__(
        self,
        db: AsyncSession,
        catalog: AchievementCatalog,
        statistics_provider: StatisticsProvider,
    ):
        self.db = db
        self.catalog = catalog
        self.statistics = statistics_provider
        self.repo = AchievementRepository(db)

    async def _lock_progression(self, user_id: int) -> UserProgression:
        """
        Load the user's progression row, creating it on first use, and lock it.

        The row lock serializes award runs for the same user, so a second
        run waits and then sees the first run's unlocks.
        """
        await get_or_create(
            self.db,
            UserProgression,
            user_id=user_id,
            defaults={"total_xp": 0, "level": 1},
        )
        result = await self.db.execute(
            select(UserProgression)
            .where(UserProgression.user_id == user_id)
            .with_for_update()
            .execution_options(populate_existing=True)
        )
        return result.scalar_one()

    async def check_and_award(self, user_id: int) -> AwardResult:
        """
        Evaluate the catalog against fresh statistics and award new unlocks.

        Idempotent: a second call without new activity awards nothing.

        Raises:
            SQLAlchemyError: on persistence failures outside single unlock
                inserts; the whole run is rolled back
        """
        async with atomic(self.db, "check_achievements"):
            achievement_ids = await self.repo.ensure_catalog(self.catalog)
            progression = await self._lock_progression(user_id)
            unlocked = await self.repo.get_unlocked_codes(user_id)
            snapshot = await self.statistics.snapshot(user_id)

            previous_xp = progression.total_xp
            previous_level = progression.level
            result = AwardResult(
                previous_xp=previous_xp,
                new_xp=previous_xp,
                previous_level=previous_level,
                new_level=previous_level,
            )

            # Awarded XP can raise the level, which can unlock milestone
            # achievements; repeat until a pass unlocks nothing new.
            level = previous_level
            attempted = set(unlocked)
            while True:
                candidates = unlockable(
                    self.catalog,
                    snapshot.model_copy(update={"level": level}),
                    attempted,
                )
                if not candidates:
                    break

                for definition in candidates:
                    attempted.add(definition.code)
                    unlocked_at = datetime.now(timezone.utc)
                    try:
                        record = await self.repo.create_unlock(
                            user_id, achievement_ids[definition.code], unlocked_at
                        )
                    except SQLAlchemyError as e:
                        logger.error(
                            "Failed to record achievement unlock",
                            user_id=user_id,
                            code=definition.code,
                            error=str(e),
                        )
                        continue
                    if record is None:
                        continue
                    result.newly_unlocked.append((definition, unlocked_at))
                    result.new_xp += definition.xp_reward

                level = level_for_xp(result.new_xp).level

            if result.newly_unlocked:
                progression.total_xp = result.new_xp
                progression.level = level_for_xp(result.new_xp).level
                await self.db.flush()
            result.new_level = progression.level

        logger.info(
            "Achievements check completed",
            user_id=user_id,
            unlocked=[definition.code for definition, _ in result.newly_unlocked],
            xp_awarded=result.total_xp_awarded,
            new_level=result.new_level,
        )
        return result

    async def list_with_status(self, user_id: int) -> AchievementsListResponse:
        """Full catalog with the user's unlock state. Read-only."""
        unlock_map = await self.repo.get_unlock_map(user_id)

        achievements = []
        categories: dict[str, CategorySummary] = {}
        for definition in self.catalog:
            unlocked_at = unlock_map.get(definition.code)
            achievements.append(
                AchievementWithStatus(
                    **_definition_fields(definition),
                    is_unlocked=unlocked_at is not None,
                    unlocked_at=unlocked_at,
                )
            )
            summary = categories.setdefault(
                definition.category.value,
                CategorySummary(name=definition.category.value, total=0, unlocked=0),
            )
            summary.total += 1
            if unlocked_at is not None:
                summary.unlocked += 1

        unlocked_codes = [code for code in unlock_map if code in self.catalog]
        return AchievementsListResponse(
            achievements=achievements,
            total_count=len(achievements),
            unlocked_count=len(unlocked_codes),
            total_xp_earned=self.catalog.total_xp(unlocked_codes),
            categories=list(categories.values()),
        )

    async def get_progression(self, user_id: int) -> ProgressionResponse:
        """Current XP and level; users without a row are at 0 XP, level 1."""
        result = await self.db.execute(
            select(UserProgression.total_xp).where(UserProgression.user_id == user_id)
        )
        total_xp = result.scalar_one_or_none() or 0
        info = level_for_xp(total_xp)
        return ProgressionResponse(
            user_id=user_id,
            total_xp=total_xp,
            level=info.level,
            title=info.title,
            current_level_xp=info.current_level_xp,
            next_level_xp=info.next_level_xp,
            progress_percent=info.progress_percent,
        )

    async def add_xp(self, user_id: int, amount: int, source: str) -> tuple[int, int]:
        """
        Award activity XP outside of achievements.

        Args:
            user_id: User receiving the XP
            amount: XP to add, e.g. ``XP_REWARDS["book_completed"]``
            source: Activity that earned it, for logging

        Returns:
            Tuple of (previous_level, new_level)

        Raises:
            ValueError: amount is not positive
        """
        if amount <= 0:
            raise ValueError(f"XP amount must be positive, got {amount}")

        async with atomic(self.db, "add_xp"):
            progression = await self._lock_progression(user_id)
            previous_level = progression.level
            progression.total_xp += amount
            progression.level = level_for_xp(progression.total_xp).level
            await self.db.flush()

        logger.info(
            "XP awarded",
            user_id=user_id,
            amount=amount,
            source=source,
            total_xp=progression.total_xp,
            level=progression.level,
        )
        return previous_level, progression.level
