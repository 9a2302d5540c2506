"""
XP to level conversion.

Levels 1-10 follow a hand-tuned threshold table; every further
XP_PER_LEVEL_AFTER_10 points past level 10 adds one level, without limit.
"""
import math
from dataclasses import dataclass

# (level, xp required, title)
LEVEL_THRESHOLDS: tuple[tuple[int, int, str], ...] = (
    (1, 0, "Novice Reader"),
    (2, 100, "Apprentice"),
    (3, 300, "Page Turner"),
    (4, 600, "Bookworm"),
    (5, 1000, "Avid Reader"),
    (6, 1500, "Literature Lover"),
    (7, 2500, "Scholar"),
    (8, 4000, "Bibliophile"),
    (9, 6000, "Sage"),
    (10, 10000, "Master Reader"),
)

MAX_TABLE_LEVEL = LEVEL_THRESHOLDS[-1][0]
MAX_TABLE_LEVEL_XP = LEVEL_THRESHOLDS[-1][1]
XP_PER_LEVEL_AFTER_10 = 5000
GRAND_MASTER_TITLE = "Grand Master"

# Totals above this are treated as this; keeps level arithmetic finite
MAX_TRACKED_XP = 10**15

# XP granted for activity outside of achievements
XP_REWARDS: dict[str, int] = {
    "book_completed": 100,
    "flashcard_correct": 5,
    "daily_review_complete": 25,
    "assessment_completed": 50,
    "annotation_created": 2,
    "best_answer": 50,
    "daily_activity": 10,
}


@dataclass(frozen=True)
class LevelInfo:
    """
    Level reached for a cumulative XP total.

    Attributes:
        level: Level number, always >= 1
        title: Display title for the level
        current_level_xp: Total XP at which this level starts
        next_level_xp: Total XP at which the next level starts
        progress_percent: Progress through the current level (0-100)
    """
    level: int
    title: str
    current_level_xp: int
    next_level_xp: int
    progress_percent: float


def xp_for_level(level: int) -> int:
    """Total XP required to reach ``level``."""
    if level <= 1:
        return 0
    if level <= MAX_TABLE_LEVEL:
        return LEVEL_THRESHOLDS[level - 1][1]
    return MAX_TABLE_LEVEL_XP + (level - MAX_TABLE_LEVEL) * XP_PER_LEVEL_AFTER_10


def title_for_level(level: int) -> str:
    """Display title for ``level``."""
    if level <= 1:
        return LEVEL_THRESHOLDS[0][2]
    if level <= MAX_TABLE_LEVEL:
        return LEVEL_THRESHOLDS[level - 1][2]
    return GRAND_MASTER_TITLE


def _level_number(total_xp: float) -> int:
    if total_xp >= MAX_TABLE_LEVEL_XP:
        return MAX_TABLE_LEVEL + int((total_xp - MAX_TABLE_LEVEL_XP) // XP_PER_LEVEL_AFTER_10)
    for level, xp_required, _ in reversed(LEVEL_THRESHOLDS):
        if total_xp >= xp_required:
            return level
    return 1


def level_for_xp(total_xp: float) -> LevelInfo:
    """
    Compute the level for a cumulative XP total.

    Negative totals and NaN are treated as 0 and totals above
    MAX_TRACKED_XP (including infinity) as MAX_TRACKED_XP, so the function
    never raises and always returns level >= 1. Monotonic: more XP never
    yields a lower level.

    Args:
        total_xp: Cumulative XP

    Returns:
        LevelInfo for the total
    """
    if math.isnan(total_xp):
        total_xp = 0
    total_xp = min(max(0, total_xp), MAX_TRACKED_XP)
    level = _level_number(total_xp)

    current_level_xp = xp_for_level(level)
    next_level_xp = xp_for_level(level + 1)
    span = next_level_xp - current_level_xp
    progress = (total_xp - current_level_xp) / span * 100

    return LevelInfo(
        level=level,
        title=title_for_level(level),
        current_level_xp=current_level_xp,
        next_level_xp=next_level_xp,
        progress_percent=min(100.0, max(0.0, progress)),
    )
