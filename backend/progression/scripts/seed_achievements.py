"""
Materialize the achievement catalog into the database.

Award runs create missing rows on demand; running this after a deploy
syncs metadata changes up front.

Usage:
    python -m progression.scripts.seed_achievements
"""
import asyncio

import structlog

from progression.core.logging import setup_logging
from progression.db.session import async_session_maker, engine
from progression.db.transaction import atomic
from progression.gamification.catalog import DEFAULT_CATALOG, AchievementCatalog
from progression.repositories.achievement_repo import AchievementRepository

logger = structlog.get_logger()


async def seed_achievements(catalog: AchievementCatalog = DEFAULT_CATALOG) -> dict[str, int]:
    """Create or update one row per catalog entry; returns code to row id."""
    async with async_session_maker() as db:
        async with atomic(db, "seed_achievements"):
            return await AchievementRepository(db).ensure_catalog(catalog)


async def main():
    setup_logging()
    logger.info("Starting achievement catalog seed", definitions=len(DEFAULT_CATALOG))
    try:
        ids = await seed_achievements()
        logger.info("Achievement catalog seed complete", rows=len(ids))
    finally:
        await engine.dispose()


if __name__ == "__main__":
    asyncio.run(main())
