"""
Gamification rules: leveling curve, achievement catalog and criteria.

Everything in this package is pure and shared by the server service and
the client store.
"""
from progression.gamification.catalog import (
    DEFAULT_CATALOG,
    TIER_XP,
    AchievementCatalog,
    AchievementCategory,
    AchievementDefinition,
    AchievementTier,
    Requirement,
)
from progression.gamification.criteria import (
    CATEGORY_STATISTICS,
    meets,
    statistic_for,
    unlockable,
)
from progression.gamification.leveling import (
    XP_REWARDS,
    LevelInfo,
    level_for_xp,
    title_for_level,
    xp_for_level,
)
from progression.gamification.statistics import Statistic, UserStatisticsSnapshot

__all__ = [
    "DEFAULT_CATALOG",
    "TIER_XP",
    "AchievementCatalog",
    "AchievementCategory",
    "AchievementDefinition",
    "AchievementTier",
    "Requirement",
    "CATEGORY_STATISTICS",
    "meets",
    "statistic_for",
    "unlockable",
    "XP_REWARDS",
    "LevelInfo",
    "level_for_xp",
    "title_for_level",
    "xp_for_level",
    "Statistic",
    "UserStatisticsSnapshot",
]
