"""
Achievement and progression schemas for API responses.

These models are also what the client parses, so both sides share one
wire format.
"""
from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


# ============ Achievement Schemas ============


class AchievementResponse(BaseModel):
    """Catalog entry as exposed over the API."""
    model_config = ConfigDict(from_attributes=True)

    code: str
    name: str
    description: Optional[str] = None
    category: str
    tier: str
    threshold: float
    xp_reward: int
    icon: Optional[str] = None
    color: Optional[str] = None
    sort_order: int = 0
    is_active: bool = True


class AchievementWithStatus(AchievementResponse):
    """Catalog entry merged with the user's unlock state."""
    is_unlocked: bool = False
    unlocked_at: Optional[datetime] = None


class CategorySummary(BaseModel):
    """Unlock counts for one category."""
    name: str
    total: int
    unlocked: int


class AchievementsListResponse(BaseModel):
    """Full catalog with the user's unlock state."""
    achievements: list[AchievementWithStatus]
    total_count: int
    unlocked_count: int
    total_xp_earned: int = 0
    categories: list[CategorySummary]


class UnlockedAchievement(AchievementResponse):
    """Achievement awarded by a check."""
    unlocked_at: datetime


class AchievementsCheckResponse(BaseModel):
    """Outcome of an achievement check."""
    newly_unlocked: list[UnlockedAchievement]
    total_xp_awarded: int
    previous_xp: int
    new_xp: int
    previous_level: int
    new_level: int
    leveled_up: bool


# ============ Progression Schemas ============


class ProgressionResponse(BaseModel):
    """A user's XP and level."""
    user_id: int
    total_xp: int = Field(..., ge=0)
    level: int = Field(..., ge=1)
    title: str
    current_level_xp: int
    next_level_xp: int
    progress_percent: float
