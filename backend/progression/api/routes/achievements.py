"""
Achievements API routes.

Endpoints:
- GET /achievements - Catalog with the current user's unlock state
- POST /achievements/check - Evaluate and award new achievements
- GET /achievements/progression - Current user's XP and level
"""
import structlog
from typing import Annotated, Optional

from fastapi import APIRouter, Header, HTTPException, status
from sqlalchemy.exc import SQLAlchemyError

from progression.api.deps import Cache, CurrentUserId, Progression
from progression.schemas.achievement import (
    AchievementsCheckResponse,
    AchievementsListResponse,
    ProgressionResponse,
)

logger = structlog.get_logger()

router = APIRouter(prefix="/achievements", tags=["Achievements"])

CHECK_FAILED_DETAIL = "Failed to check achievements. Please try again."


@router.get("", response_model=AchievementsListResponse)
async def list_achievements(
    user_id: CurrentUserId,
    service: Progression,
    cache: Cache,
    cache_control: Annotated[Optional[str], Header()] = None,
):
    """
    Get every achievement with the current user's unlock state.

    Cached briefly per user; a check that awards anything drops the entry.
    Send ``Cache-Control: no-cache`` to skip the cached copy (the fresh
    result still replaces it), e.g. right after a check.
    """
    async def compute() -> dict:
        response = await service.list_with_status(user_id)
        return response.model_dump(mode="json")

    key = ("achievements", user_id)
    if cache_control and "no-cache" in cache_control.lower():
        data = await compute()
        await cache.set(*key, value=data)
    else:
        data = await cache.get_or_compute(key, compute)
    return AchievementsListResponse.model_validate(data)


@router.post("/check", response_model=AchievementsCheckResponse)
async def check_achievements(
    user_id: CurrentUserId,
    service: Progression,
    cache: Cache,
):
    """
    Evaluate the catalog against the user's current statistics.

    Newly met achievements are unlocked and their XP awarded. Calling this
    again without new activity awards nothing.
    """
    try:
        result = await service.check_and_award(user_id)
    except SQLAlchemyError as e:
        logger.error(
            "Achievements check failed",
            user_id=user_id,
            error=str(e),
            error_type=type(e).__name__,
        )
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=CHECK_FAILED_DETAIL,
        )

    if result.newly_unlocked:
        await cache.invalidate_user_achievements(user_id)

    return result.to_response()


@router.get("/progression", response_model=ProgressionResponse)
async def get_progression(
    user_id: CurrentUserId,
    service: Progression,
):
    """Get the current user's XP, level and progress to the next level."""
    return await service.get_progression(user_id)
