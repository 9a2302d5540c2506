"""User XP and level."""
from sqlalchemy import CheckConstraint, Integer
from sqlalchemy.orm import Mapped, mapped_column

from progression.db.base import Base


class UserProgression(Base):
    """
    Cumulative XP and the level derived from it.

    ``level`` is always written together with ``total_xp`` so it matches
    ``level_for_xp(total_xp)``.
    """

    __tablename__ = "user_progressions"

    user_id: Mapped[int] = mapped_column(
        Integer,
        nullable=False,
        unique=True,
        index=True,
    )
    total_xp: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    level: Mapped[int] = mapped_column(Integer, default=1, nullable=False)

    __table_args__ = (
        CheckConstraint("total_xp >= 0", name="total_xp_non_negative"),
        CheckConstraint("level >= 1", name="level_positive"),
    )

    def __repr__(self) -> str:
        return f"<UserProgression user_id={self.user_id} xp={self.total_xp} level={self.level}>"
