"""
Pydantic schemas for API request/response validation.
"""
from progression.schemas.achievement import (
    AchievementResponse,
    AchievementWithStatus,
    AchievementsCheckResponse,
    AchievementsListResponse,
    CategorySummary,
    ProgressionResponse,
    UnlockedAchievement,
)
from progression.schemas.auth import TokenPayload

__all__ = [
    "AchievementResponse",
    "AchievementWithStatus",
    "AchievementsCheckResponse",
    "AchievementsListResponse",
    "CategorySummary",
    "ProgressionResponse",
    "UnlockedAchievement",
    "TokenPayload",
]
