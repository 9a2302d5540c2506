"""
Activity statistics consumed by achievement checks.

These rows are written by the rest of the application (reading sessions,
flashcard reviews, social features); this service only reads them.
"""
from datetime import datetime
from typing import Optional

from sqlalchemy import CheckConstraint, DateTime, Float, Index, Integer
from sqlalchemy.orm import Mapped, mapped_column

from progression.db.base import Base

COUNTER_COLUMNS = (
    "books_completed",
    "total_reading_minutes",
    "current_streak",
    "longest_streak",
    "cards_reviewed",
    "cards_mastered",
    "highlights_created",
    "annotations_created",
    "followers_count",
    "groups_created",
    "public_curriculums_created",
    "best_answers",
)


class UserStats(Base):
    """Rolled-up activity counters for a user."""

    __tablename__ = "user_stats"

    user_id: Mapped[int] = mapped_column(
        Integer,
        nullable=False,
        unique=True,
        index=True,
    )

    # Reading
    books_completed: Mapped[int] = mapped_column(default=0, nullable=False)
    total_reading_minutes: Mapped[int] = mapped_column(default=0, nullable=False)
    avg_reading_speed: Mapped[Optional[float]] = mapped_column(Float, nullable=True)

    # Streaks
    current_streak: Mapped[int] = mapped_column(default=0, nullable=False)
    longest_streak: Mapped[int] = mapped_column(default=0, nullable=False)

    # Flashcards
    cards_reviewed: Mapped[int] = mapped_column(default=0, nullable=False)
    cards_mastered: Mapped[int] = mapped_column(default=0, nullable=False)
    retention_rate: Mapped[Optional[float]] = mapped_column(Float, nullable=True)  # 0.0 - 1.0

    # Social
    highlights_created: Mapped[int] = mapped_column(default=0, nullable=False)
    annotations_created: Mapped[int] = mapped_column(default=0, nullable=False)
    followers_count: Mapped[int] = mapped_column(default=0, nullable=False)
    groups_created: Mapped[int] = mapped_column(default=0, nullable=False)
    public_curriculums_created: Mapped[int] = mapped_column(default=0, nullable=False)
    best_answers: Mapped[int] = mapped_column(default=0, nullable=False)

    __table_args__ = (
        CheckConstraint(
            " AND ".join(f"{column} >= 0" for column in COUNTER_COLUMNS),
            name="counters_non_negative",
        ),
        CheckConstraint("avg_reading_speed >= 0", name="avg_reading_speed_non_negative"),
        CheckConstraint("retention_rate >= 0 AND retention_rate <= 1", name="retention_rate_range"),
    )

    def __repr__(self) -> str:
        return f"<UserStats user_id={self.user_id} books={self.books_completed}>"


class AssessmentResult(Base):
    """Score for one completed assessment."""

    __tablename__ = "assessment_results"

    user_id: Mapped[int] = mapped_column(Integer, nullable=False, index=True)
    score: Mapped[float] = mapped_column(Float, nullable=False)  # 0 - 100
    completed_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)

    __table_args__ = (
        CheckConstraint("score >= 0 AND score <= 100", name="score_range"),
        Index("ix_assessment_results_user_completed", "user_id", "completed_at"),
    )

    def __repr__(self) -> str:
        return f"<AssessmentResult user_id={self.user_id} score={self.score}>"
