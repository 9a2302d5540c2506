"""
API dependencies: authentication, services and cache.
"""
from datetime import timedelta
from typing import Annotated, Optional

from fastapi import Depends, HTTPException, Request, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from redis.asyncio import Redis
from sqlalchemy.ext.asyncio import AsyncSession

from progression.core.config import settings
from progression.db.session import async_session_maker, get_db
from progression.gamification.catalog import AchievementCatalog
from progression.repositories.cache_repo import CacheRepository
from progression.services.auth import decode_access_token
from progression.services.progression import ProgressionService
from progression.services.statistics import SqlStatisticsProvider, StatisticsProvider

# Security scheme for JWT bearer tokens
security = HTTPBearer(auto_error=False)


def _unauthorized(detail: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=detail,
        headers={"WWW-Authenticate": "Bearer"},
    )


async def get_current_user_id(
    credentials: Annotated[Optional[HTTPAuthorizationCredentials], Depends(security)],
) -> int:
    """
    User id from the bearer token.

    Users live in the account service, so the token's subject is trusted
    once the signature checks out. Raises 401 on a missing or invalid token.
    """
    if not credentials:
        raise _unauthorized("Not authenticated")

    payload = decode_access_token(credentials.credentials)
    if not payload:
        raise _unauthorized("Invalid or expired token")

    try:
        return int(payload.sub)
    except (ValueError, TypeError):
        raise _unauthorized("Invalid token payload")


CurrentUserId = Annotated[int, Depends(get_current_user_id)]


def get_catalog(request: Request) -> AchievementCatalog:
    """Catalog loaded at startup."""
    return request.app.state.catalog


def get_statistics_provider() -> StatisticsProvider:
    return SqlStatisticsProvider(async_session_maker)


async def get_progression_service(
    db: Annotated[AsyncSession, Depends(get_db)],
    catalog: Annotated[AchievementCatalog, Depends(get_catalog)],
    statistics_provider: Annotated[StatisticsProvider, Depends(get_statistics_provider)],
) -> ProgressionService:
    return ProgressionService(db, catalog, statistics_provider)


_redis_client: Redis | None = None


async def get_redis() -> Redis:
    """
    Get the async Redis client.

    Creates a single client instance that is reused across requests.
    """
    global _redis_client
    if _redis_client is None:
        _redis_client = Redis.from_url(settings.redis_url, decode_responses=True)
    return _redis_client


async def close_redis() -> None:
    global _redis_client
    if _redis_client is not None:
        await _redis_client.aclose()
        _redis_client = None


async def get_cache(
    redis: Annotated[Redis, Depends(get_redis)],
) -> CacheRepository:
    return CacheRepository(
        redis,
        default_ttl=timedelta(seconds=settings.achievements_cache_ttl_seconds),
    )


# Type aliases for cleaner dependency injection
Cache = Annotated[CacheRepository, Depends(get_cache)]
Progression = Annotated[ProgressionService, Depends(get_progression_service)]
