"""
Criteria evaluation.

Decides whether a snapshot satisfies an achievement. Pure functions; the
server service and the client store share them so both sides agree on
what unlocks.
"""
from typing import Collection, Optional

from progression.gamification.catalog import (
    AchievementCatalog,
    AchievementCategory,
    AchievementDefinition,
)
from progression.gamification.statistics import Statistic, UserStatisticsSnapshot

# Default statistic measured for each category
CATEGORY_STATISTICS: dict[AchievementCategory, Statistic] = {
    AchievementCategory.READING: Statistic.BOOKS_COMPLETED,
    AchievementCategory.STREAK: Statistic.CURRENT_STREAK,
    AchievementCategory.FLASHCARDS: Statistic.CARDS_REVIEWED,
    AchievementCategory.ASSESSMENTS: Statistic.ASSESSMENTS_COMPLETED,
    AchievementCategory.SOCIAL: Statistic.FOLLOWERS_COUNT,
    AchievementCategory.MILESTONES: Statistic.LEVEL,
}

_unmapped = set(AchievementCategory) - set(CATEGORY_STATISTICS)
if _unmapped:
    raise RuntimeError(
        f"No statistic mapped for categories: {sorted(c.value for c in _unmapped)}"
    )


def statistic_for(definition: AchievementDefinition) -> Statistic:
    """Statistic compared against the definition's threshold."""
    if definition.statistic is not None:
        return definition.statistic
    return CATEGORY_STATISTICS[definition.category]


def _at_least(value: Optional[float], minimum: float) -> bool:
    # Unmeasured statistics never satisfy a criterion
    return value is not None and value >= minimum


def meets(definition: AchievementDefinition, snapshot: UserStatisticsSnapshot) -> bool:
    """
    Whether ``snapshot`` satisfies the definition's criteria.

    The primary statistic must reach the threshold and every extra
    requirement must reach its minimum. Activity state is not checked here.
    """
    if not _at_least(snapshot.value_of(statistic_for(definition)), definition.threshold):
        return False
    return all(
        _at_least(snapshot.value_of(req.statistic), req.minimum)
        for req in definition.requirements
    )


def unlockable(
    catalog: AchievementCatalog,
    snapshot: UserStatisticsSnapshot,
    already_unlocked: Collection[str] = (),
) -> list[AchievementDefinition]:
    """
    Active definitions not yet unlocked whose criteria ``snapshot`` meets.

    Returned in catalog order.
    """
    unlocked = set(already_unlocked)
    return [
        definition
        for definition in catalog.active()
        if definition.code not in unlocked and meets(definition, snapshot)
    ]
