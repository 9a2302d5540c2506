"""
Achievement repository.

Materializes the in-code catalog into rows and reads and writes a user's
unlock records. Unlock inserts rely on the (user_id, achievement_id)
unique constraint, so concurrent checks cannot award twice.
"""
from datetime import datetime
from typing import Optional

import structlog
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from progression.db.transaction import savepoint
from progression.db.utils import get_or_create
from progression.gamification.catalog import AchievementCatalog, AchievementDefinition
from progression.models.achievement import Achievement, UserAchievement

logger = structlog.get_logger()


def _row_values(definition: AchievementDefinition) -> dict:
    return {
        "name": definition.name,
        "description": definition.description,
        "category": definition.category.value,
        "tier": definition.tier.value,
        "threshold": float(definition.threshold),
        "xp_reward": definition.xp_reward,
        "icon": definition.icon,
        "color": definition.color,
        "sort_order": definition.sort_order,
        "is_active": definition.is_active,
    }


class AchievementRepository:
    """Data access for achievements and unlock records."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def ensure_catalog(self, catalog: AchievementCatalog) -> dict[str, int]:
        """
        Make sure every catalog entry exists as a row.

        Missing rows are created with get-or-create semantics, so a concurrent
        creator of the same code is tolerated. Existing rows whose metadata
        drifted from the catalog are updated in place.

        Returns:
            Mapping of achievement code to row id
        """
        result = await self.db.execute(select(Achievement))
        existing = {row.code: row for row in result.scalars().all()}

        ids: dict[str, int] = {}
        created = 0
        for definition in catalog:
            values = _row_values(definition)
            row = existing.get(definition.code)
            if row is None:
                row, was_created = await get_or_create(
                    self.db, Achievement, defaults=values, code=definition.code
                )
                created += int(was_created)
            else:
                for attr, value in values.items():
                    if getattr(row, attr) != value:
                        setattr(row, attr, value)
            ids[definition.code] = row.id

        if created:
            logger.info("Achievement catalog seeded", created=created, total=len(ids))
        return ids

    async def get_unlock_map(self, user_id: int) -> dict[str, datetime]:
        """Achievement code to unlock time for every unlock the user holds."""
        result = await self.db.execute(
            select(Achievement.code, UserAchievement.unlocked_at)
            .join(UserAchievement, UserAchievement.achievement_id == Achievement.id)
            .where(UserAchievement.user_id == user_id)
        )
        return {code: unlocked_at for code, unlocked_at in result.all()}

    async def get_unlocked_codes(self, user_id: int) -> set[str]:
        return set(await self.get_unlock_map(user_id))

    async def create_unlock(
        self,
        user_id: int,
        achievement_id: int,
        unlocked_at: datetime,
    ) -> Optional[UserAchievement]:
        """
        Insert an unlock record inside its own savepoint.

        Returns:
            The new record, or None when the user already holds this unlock
        """
        try:
            async with savepoint(self.db, "unlock_achievement"):
                unlock = UserAchievement(
                    user_id=user_id,
                    achievement_id=achievement_id,
                    unlocked_at=unlocked_at,
                    notified=False,
                )
                self.db.add(unlock)
                await self.db.flush()
        except IntegrityError:
            logger.info(
                "Achievement already unlocked",
                user_id=user_id,
                achievement_id=achievement_id,
            )
            return None
        return unlock
