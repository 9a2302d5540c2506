"""
Health and service info endpoints.
"""
from datetime import datetime, timezone
from typing import Annotated

import structlog
from fastapi import APIRouter, Depends
from redis.asyncio import Redis
from redis.exceptions import RedisError
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from progression import __version__
from progression.api.deps import get_catalog, get_redis
from progression.core.config import settings
from progression.db.session import get_db
from progression.gamification.catalog import AchievementCatalog

logger = structlog.get_logger()

router = APIRouter()


@router.get("/health")
async def health_check(
    db: Annotated[AsyncSession, Depends(get_db)],
    redis: Annotated[Redis, Depends(get_redis)],
    catalog: Annotated[AchievementCatalog, Depends(get_catalog)],
):
    """
    Database and cache connectivity.

    Always 200; ``status`` is "degraded" when a backing service is down.
    Without the cache lists are just recomputed, without the database
    nothing works.
    """
    services = {"api": "ok", "database": "ok", "cache": "ok"}

    try:
        await db.execute(text("SELECT 1"))
    except (SQLAlchemyError, OSError) as e:
        logger.warning("Health check: database unavailable", error=str(e))
        services["database"] = "error"

    try:
        await redis.ping()
    except (RedisError, OSError) as e:
        logger.warning("Health check: cache unavailable", error=str(e))
        services["cache"] = "error"

    return {
        "status": "healthy" if all(v == "ok" for v in services.values()) else "degraded",
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "services": services,
        "achievements": len(catalog.active()),
    }


@router.get("/")
async def root():
    return {
        "name": settings.app_name,
        "version": __version__,
        "docs": "/docs",
    }
