"""
Repository layer for data access.

Repositories hide SQL and cache details from the services.
"""
from progression.repositories.achievement_repo import AchievementRepository
from progression.repositories.cache_repo import CacheRepository

__all__ = [
    "AchievementRepository",
    "CacheRepository",
]
