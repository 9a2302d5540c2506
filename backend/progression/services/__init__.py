"""
Business logic services.
"""
from progression.services.progression import AwardResult, ProgressionService
from progression.services.statistics import SqlStatisticsProvider, StatisticsProvider

__all__ = [
    "AwardResult",
    "ProgressionService",
    "SqlStatisticsProvider",
    "StatisticsProvider",
]
