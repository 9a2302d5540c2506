"""
Achievement catalog.

Definitions live in code and are immutable. The service materializes them
into ``achievements`` rows on first use; the client store evaluates them
locally against the same rules.
"""
from dataclasses import dataclass, field
from enum import Enum
from typing import Iterable, Iterator, Optional

from progression.gamification.statistics import Statistic


class AchievementCategory(str, Enum):
    """Achievement categories."""
    READING = "reading"
    STREAK = "streak"
    FLASHCARDS = "flashcards"
    ASSESSMENTS = "assessments"
    SOCIAL = "social"
    MILESTONES = "milestones"


class AchievementTier(str, Enum):
    """Badge tiers, each with a fixed XP reward."""
    BRONZE = "bronze"
    SILVER = "silver"
    GOLD = "gold"
    PLATINUM = "platinum"


TIER_XP: dict[AchievementTier, int] = {
    AchievementTier.BRONZE: 50,
    AchievementTier.SILVER: 100,
    AchievementTier.GOLD: 250,
    AchievementTier.PLATINUM: 500,
}

TIER_COLORS: dict[AchievementTier, str] = {
    AchievementTier.BRONZE: "#CD7F32",
    AchievementTier.SILVER: "#C0C0C0",
    AchievementTier.GOLD: "#FFD700",
    AchievementTier.PLATINUM: "#E5E4E2",
}


@dataclass(frozen=True)
class Requirement:
    """An extra minimum that must hold alongside the primary threshold."""
    statistic: Statistic
    minimum: float


@dataclass(frozen=True)
class AchievementDefinition:
    """
    Immutable catalog entry.

    ``statistic`` overrides the category's default statistic; ``requirements``
    lists further minimums that must all be met.

    Raises:
        ValueError: threshold is not positive or xp_reward does not match tier
    """
    code: str
    name: str
    description: str
    category: AchievementCategory
    tier: AchievementTier
    threshold: float
    icon: str
    sort_order: int
    xp_reward: int = -1
    color: str = ""
    is_active: bool = True
    statistic: Optional[Statistic] = None
    requirements: tuple[Requirement, ...] = field(default_factory=tuple)

    def __post_init__(self) -> None:
        if not self.code:
            raise ValueError("Achievement code must not be empty")
        if self.threshold <= 0:
            raise ValueError(f"Achievement {self.code!r}: threshold must be > 0, got {self.threshold}")

        expected_xp = TIER_XP[self.tier]
        # frozen: defaults are filled in through object.__setattr__
        if self.xp_reward == -1:
            object.__setattr__(self, "xp_reward", expected_xp)
        elif self.xp_reward != expected_xp:
            raise ValueError(
                f"Achievement {self.code!r}: xp_reward {self.xp_reward} does not match "
                f"{self.tier.value} tier reward {expected_xp}"
            )
        if not self.color:
            object.__setattr__(self, "color", TIER_COLORS[self.tier])


class AchievementCatalog:
    """
    Ordered, read-only collection of achievement definitions.

    Iteration yields definitions by ``sort_order`` (ties keep insertion order).
    """

    def __init__(self, definitions: Iterable[AchievementDefinition]):
        ordered = sorted(definitions, key=lambda d: d.sort_order)
        by_code: dict[str, AchievementDefinition] = {}
        for definition in ordered:
            if definition.code in by_code:
                raise ValueError(f"Duplicate achievement code: {definition.code!r}")
            by_code[definition.code] = definition
        self._definitions = tuple(ordered)
        self._by_code = by_code

    def __iter__(self) -> Iterator[AchievementDefinition]:
        return iter(self._definitions)

    def __len__(self) -> int:
        return len(self._definitions)

    def __contains__(self, code: object) -> bool:
        return code in self._by_code

    @property
    def codes(self) -> tuple[str, ...]:
        return tuple(d.code for d in self._definitions)

    def get(self, code: str) -> Optional[AchievementDefinition]:
        return self._by_code.get(code)

    def by_category(self, category: AchievementCategory | str) -> list[AchievementDefinition]:
        category = AchievementCategory(category)
        return [d for d in self._definitions if d.category == category]

    def active(self) -> list[AchievementDefinition]:
        return [d for d in self._definitions if d.is_active]

    def total_xp(self, codes: Iterable[str]) -> int:
        """Sum of XP rewards for ``codes``; unknown codes contribute nothing."""
        total = 0
        for code in set(codes):
            definition = self._by_code.get(code)
            if definition is not None:
                total += definition.xp_reward
        return total


def _build_default_catalog() -> AchievementCatalog:
    reading = AchievementCategory.READING
    streak = AchievementCategory.STREAK
    cards = AchievementCategory.FLASHCARDS
    tests = AchievementCategory.ASSESSMENTS
    social = AchievementCategory.SOCIAL
    milestones = AchievementCategory.MILESTONES
    bronze = AchievementTier.BRONZE
    silver = AchievementTier.SILVER
    gold = AchievementTier.GOLD
    platinum = AchievementTier.PLATINUM

    definitions = [
        # Reading
        AchievementDefinition("first_book", "First Chapter", "Complete your first book",
                              reading, bronze, 1, "book-open", 1),
        AchievementDefinition("bookworm", "Bookworm", "Complete 10 books",
                              reading, silver, 10, "books", 2),
        AchievementDefinition("bibliophile", "Bibliophile", "Complete 50 books",
                              reading, gold, 50, "library", 3),
        AchievementDefinition("library_master", "Library Master", "Complete 100 books",
                              reading, platinum, 100, "crown", 4),
        AchievementDefinition("hour_reader", "Hour Reader", "Read for a total of 1 hour",
                              reading, bronze, 60, "clock", 5,
                              statistic=Statistic.TOTAL_READING_MINUTES),
        AchievementDefinition("dedicated_reader", "Dedicated Reader", "Read for a total of 10 hours",
                              reading, silver, 600, "hourglass", 6,
                              statistic=Statistic.TOTAL_READING_MINUTES),
        AchievementDefinition("reading_marathon", "Reading Marathon", "Read for a total of 50 hours",
                              reading, gold, 3000, "timer", 7,
                              statistic=Statistic.TOTAL_READING_MINUTES),
        AchievementDefinition("speed_reader", "Speed Reader", "Average 500 words per minute",
                              reading, silver, 500, "zap", 8,
                              statistic=Statistic.AVG_READING_SPEED),
        # Streaks
        AchievementDefinition("streak_starter", "Streak Starter", "Maintain a 3-day reading streak",
                              streak, bronze, 3, "flame", 10),
        AchievementDefinition("week_warrior", "Week Warrior", "Maintain a 7-day reading streak",
                              streak, silver, 7, "calendar", 11),
        AchievementDefinition("month_champion", "Month Champion", "Maintain a 30-day reading streak",
                              streak, gold, 30, "trophy", 12),
        AchievementDefinition("streak_legend", "Streak Legend", "Maintain a 100-day reading streak",
                              streak, platinum, 100, "star", 13),
        # Flashcards
        AchievementDefinition("flash_learner", "Flash Learner", "Review 50 flashcards",
                              cards, bronze, 50, "layers", 20),
        AchievementDefinition("memory_master", "Memory Master", "Review 250 flashcards",
                              cards, silver, 250, "brain", 21),
        AchievementDefinition("knowledge_keeper", "Knowledge Keeper", "Review 1,000 flashcards",
                              cards, gold, 1000, "archive", 22),
        AchievementDefinition("flashcard_sage", "Flashcard Sage", "Review 5,000 flashcards",
                              cards, platinum, 5000, "sparkles", 23),
        AchievementDefinition("mastered_50", "Card Master", "Master 50 flashcards",
                              cards, silver, 50, "check-circle", 24,
                              statistic=Statistic.CARDS_MASTERED),
        AchievementDefinition("retention_90", "Perfect Recall", "Reach a 90% retention rate",
                              cards, gold, 0.9, "target", 25,
                              statistic=Statistic.RETENTION_RATE),
        # Assessments
        AchievementDefinition("test_taker", "Test Taker", "Complete 5 assessments",
                              tests, bronze, 5, "clipboard", 30),
        AchievementDefinition("high_achiever", "High Achiever",
                              "Average 90% or higher across at least 3 assessments",
                              tests, silver, 90, "award", 31,
                              statistic=Statistic.AVERAGE_ASSESSMENT_SCORE,
                              requirements=(Requirement(Statistic.ASSESSMENTS_COMPLETED, 3),)),
        AchievementDefinition("perfect_score", "Perfect Score", "Score 100% on an assessment",
                              tests, gold, 100, "medal", 32,
                              statistic=Statistic.LATEST_ASSESSMENT_SCORE),
        AchievementDefinition("consistent", "Consistent Learner", "Score 80% or higher on 10 assessments",
                              tests, gold, 10, "trending-up", 33,
                              statistic=Statistic.ASSESSMENTS_80_PLUS),
        AchievementDefinition("assessment_expert", "Assessment Expert", "Complete 50 assessments",
                              tests, platinum, 50, "graduation-cap", 34),
        # Social
        AchievementDefinition("first_highlight", "Highlighter", "Create your first highlight",
                              social, bronze, 1, "highlighter", 40,
                              statistic=Statistic.HIGHLIGHTS_CREATED),
        AchievementDefinition("social_butterfly", "Social Butterfly", "Gain 10 followers",
                              social, bronze, 10, "users", 41),
        AchievementDefinition("group_founder", "Group Founder", "Create a reading group",
                              social, bronze, 1, "user-plus", 42,
                              statistic=Statistic.GROUPS_CREATED),
        AchievementDefinition("curriculum_creator", "Curriculum Creator", "Publish a public curriculum",
                              social, silver, 1, "map", 43,
                              statistic=Statistic.PUBLIC_CURRICULUMS_CREATED),
        AchievementDefinition("annotator", "Annotator", "Create 100 annotations",
                              social, silver, 100, "pen-tool", 44,
                              statistic=Statistic.ANNOTATIONS_CREATED),
        AchievementDefinition("influencer", "Influencer", "Gain 100 followers",
                              social, gold, 100, "megaphone", 45),
        AchievementDefinition("helpful", "Helpful", "Have 10 forum answers marked best",
                              social, gold, 10, "thumbs-up", 46,
                              statistic=Statistic.BEST_ANSWERS),
        # Milestones
        AchievementDefinition("level_5", "Rising Star", "Reach level 5",
                              milestones, bronze, 5, "arrow-up", 50),
        AchievementDefinition("level_10", "Dedicated Learner", "Reach level 10",
                              milestones, silver, 10, "chevrons-up", 51),
        AchievementDefinition("level_25", "Expert Reader", "Reach level 25",
                              milestones, gold, 25, "gem", 52),
        AchievementDefinition("level_50", "Legendary Reader", "Reach level 50",
                              milestones, platinum, 50, "crown", 53),
    ]
    return AchievementCatalog(definitions)


DEFAULT_CATALOG = _build_default_catalog()
