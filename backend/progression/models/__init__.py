"""
SQLAlchemy models for the progression service.
"""
from progression.models.achievement import Achievement, UserAchievement
from progression.models.progression import UserProgression
from progression.models.stats import AssessmentResult, UserStats

__all__ = [
    "Achievement",
    "UserAchievement",
    "UserProgression",
    "UserStats",
    "AssessmentResult",
]
