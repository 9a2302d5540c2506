"""
Achievement models.

- Achievement: materialized catalog entry, one row per code
- UserAchievement: a user's unlock of an achievement
"""
from datetime import datetime
from typing import Optional

from sqlalchemy import (
    Boolean,
    DateTime,
    Float,
    ForeignKey,
    Integer,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from progression.db.base import Base


class Achievement(Base):
    """
    Catalog entry as stored in the database.

    Rows are created from the in-code catalog on first reference and keyed
    by ``code``; the in-code definition stays the source of truth.
    """

    __tablename__ = "achievements"

    # Stable identifier shared with the catalog and the client
    code: Mapped[str] = mapped_column(
        String(50),
        unique=True,
        nullable=False,
        index=True,
    )

    # Display information
    name: Mapped[str] = mapped_column(String(100), nullable=False)
    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    icon: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    color: Mapped[Optional[str]] = mapped_column(String(20), nullable=True)

    # Categorization
    category: Mapped[str] = mapped_column(
        String(30),
        nullable=False,
        index=True,
    )  # reading, streak, flashcards, assessments, social, milestones
    tier: Mapped[str] = mapped_column(
        String(20),
        nullable=False,
    )  # bronze, silver, gold, platinum

    # Unlock criteria and reward
    threshold: Mapped[float] = mapped_column(Float, nullable=False)
    xp_reward: Mapped[int] = mapped_column(Integer, default=0, nullable=False)

    sort_order: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)

    # Relationships
    user_achievements: Mapped[list["UserAchievement"]] = relationship(
        "UserAchievement",
        back_populates="achievement",
        cascade="all, delete-orphan",
    )

    def __repr__(self) -> str:
        return f"<Achievement code={self.code} tier={self.tier}>"


class UserAchievement(Base):
    """
    Unlock record. At most one per (user, achievement).

    Users are owned by the external account service, so ``user_id`` carries
    no foreign key.
    """

    __tablename__ = "user_achievements"

    user_id: Mapped[int] = mapped_column(
        Integer,
        nullable=False,
        index=True,
    )
    achievement_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("achievements.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )

    unlocked_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
    )

    # Set once the user has been shown the unlock
    notified: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)

    achievement: Mapped["Achievement"] = relationship(
        "Achievement",
        back_populates="user_achievements",
    )

    __table_args__ = (
        UniqueConstraint(
            "user_id",
            "achievement_id",
            name="uq_user_achievement",
        ),
    )

    def __repr__(self) -> str:
        return f"<UserAchievement user_id={self.user_id} achievement_id={self.achievement_id}>"
