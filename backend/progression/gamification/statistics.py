"""
User statistics snapshot.

A snapshot is a flat, read-only set of counters and rates taken at one
point in time. Every field is optional: ``None`` means the statistic was
not measured, which is not the same as zero.
"""
from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class Statistic(str, Enum):
    """Named statistics; values match UserStatisticsSnapshot field names."""
    BOOKS_COMPLETED = "books_completed"
    TOTAL_READING_MINUTES = "total_reading_minutes"
    AVG_READING_SPEED = "avg_reading_speed"
    CURRENT_STREAK = "current_streak"
    LONGEST_STREAK = "longest_streak"
    CARDS_REVIEWED = "cards_reviewed"
    CARDS_MASTERED = "cards_mastered"
    RETENTION_RATE = "retention_rate"
    HIGHLIGHTS_CREATED = "highlights_created"
    ANNOTATIONS_CREATED = "annotations_created"
    FOLLOWERS_COUNT = "followers_count"
    GROUPS_CREATED = "groups_created"
    PUBLIC_CURRICULUMS_CREATED = "public_curriculums_created"
    BEST_ANSWERS = "best_answers"
    ASSESSMENTS_COMPLETED = "assessments_completed"
    ASSESSMENTS_80_PLUS = "assessments_80_plus"
    AVERAGE_ASSESSMENT_SCORE = "average_assessment_score"
    LATEST_ASSESSMENT_SCORE = "latest_assessment_score"
    LEVEL = "level"


class UserStatisticsSnapshot(BaseModel):
    """Point-in-time statistics for one user. Never persisted as-is."""

    model_config = ConfigDict(frozen=True, extra="ignore")

    # Reading
    books_completed: Optional[int] = Field(None, ge=0)
    total_reading_minutes: Optional[int] = Field(None, ge=0)
    avg_reading_speed: Optional[float] = Field(None, ge=0)  # words per minute

    # Streaks
    current_streak: Optional[int] = Field(None, ge=0)
    longest_streak: Optional[int] = Field(None, ge=0)

    # Flashcards
    cards_reviewed: Optional[int] = Field(None, ge=0)
    cards_mastered: Optional[int] = Field(None, ge=0)
    retention_rate: Optional[float] = Field(None, ge=0, le=1)

    # Social
    highlights_created: Optional[int] = Field(None, ge=0)
    annotations_created: Optional[int] = Field(None, ge=0)
    followers_count: Optional[int] = Field(None, ge=0)
    groups_created: Optional[int] = Field(None, ge=0)
    public_curriculums_created: Optional[int] = Field(None, ge=0)
    best_answers: Optional[int] = Field(None, ge=0)

    # Assessments
    assessments_completed: Optional[int] = Field(None, ge=0)
    assessments_80_plus: Optional[int] = Field(None, ge=0)
    average_assessment_score: Optional[float] = Field(None, ge=0, le=100)
    latest_assessment_score: Optional[float] = Field(None, ge=0, le=100)

    # Progression
    level: Optional[int] = Field(None, ge=1)

    def value_of(self, statistic: Statistic | str) -> Optional[float]:
        """Value of ``statistic``, or None when it was not measured."""
        return getattr(self, Statistic(statistic).value)
