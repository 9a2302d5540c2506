"""
Client progression store.

Optimistic, local copy of a user's achievement progress. It evaluates the
same criteria as the server so unlocks can be shown immediately, and it
defers to the server whenever the two disagree: reconciliation overwrites
local state with the server's view.

Single-threaded and synchronous; every mutation is persisted right away.
"""
from datetime import datetime, timezone
from typing import Any, Callable, Mapping, Optional

import structlog
from pydantic import ValidationError

from progression.client.storage import (
    AchievementProgress,
    MemoryStorage,
    PersistedState,
    ProgressStorage,
)
from progression.gamification.catalog import (
    DEFAULT_CATALOG,
    AchievementCatalog,
    AchievementDefinition,
)
from progression.gamification.criteria import statistic_for, unlockable
from progression.gamification.statistics import UserStatisticsSnapshot
from progression.schemas.achievement import (
    AchievementsCheckResponse,
    AchievementsListResponse,
)

logger = structlog.get_logger()


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class ProgressionStore:
    """
    Achievement progress keyed by achievement code.

    Args:
        catalog: Definitions to track
        storage: Where state is persisted (in memory by default)
        clock: Source of unlock timestamps
    """

    def __init__(
        self,
        catalog: AchievementCatalog = DEFAULT_CATALOG,
        storage: Optional[ProgressStorage] = None,
        clock: Callable[[], datetime] = _utcnow,
    ):
        self.catalog = catalog
        self.storage = storage if storage is not None else MemoryStorage()
        self.clock = clock

        self.progress: dict[str, AchievementProgress] = self._initial_progress()
        self.newly_unlocked: list[str] = []
        self.last_updated: Optional[datetime] = None
        self.server_total_xp: Optional[int] = None
        self.server_level: Optional[int] = None
        self.server_achievement_xp: Optional[int] = None

        self._restore()

    # ------------------------------------------------------------------
    # Persistence
    # ------------------------------------------------------------------

    def _initial_progress(self) -> dict[str, AchievementProgress]:
        return {code: AchievementProgress(achievement_id=code) for code in self.catalog.codes}

    def _restore(self) -> None:
        try:
            state = self.storage.load()
        except ValidationError as e:
            logger.warning("Discarding invalid persisted progress", errors=e.error_count())
            return
        if state is None:
            return

        for code, entry in state.progress.items():
            # Codes dropped from the catalog are forgotten
            if code in self.progress:
                self.progress[code] = entry
        self.last_updated = state.last_updated

    def _persist(self) -> None:
        self.last_updated = self.clock()
        self.storage.save(
            PersistedState(
                progress=self.progress,
                last_updated=self.last_updated,
            )
        )

    # ------------------------------------------------------------------
    # Local mutations
    # ------------------------------------------------------------------

    def _unlock(self, code: str, unlocked_at: Optional[datetime]) -> bool:
        entry = self.progress.get(code)
        if entry is None or entry.is_unlocked:
            return False
        entry.is_unlocked = True
        entry.unlocked_at = unlocked_at or self.clock()
        if code not in self.newly_unlocked:
            self.newly_unlocked.append(code)
        return True

    def update_progress(self, code: str, delta: float) -> None:
        """
        Add ``delta`` (possibly negative) to the achievement's value.

        The value never drops below 0. Reaching the threshold unlocks the
        achievement locally and queues it for notification. Unlocked,
        inactive and unknown achievements are left alone.
        """
        definition = self.catalog.get(code)
        entry = self.progress.get(code)
        if definition is None or entry is None or not definition.is_active or entry.is_unlocked:
            return

        entry.current_value = max(0.0, entry.current_value + delta)
        if entry.current_value >= definition.threshold:
            self._unlock(code, None)
        self._persist()

    def unlock_achievement(self, code: str, unlocked_at: Optional[datetime] = None) -> None:
        """Unlock regardless of progress. No-op if already unlocked."""
        if self._unlock(code, unlocked_at):
            self._persist()

    def check_achievements_from_stats(
        self,
        stats: UserStatisticsSnapshot | Mapping[str, Any],
    ) -> list[str]:
        """
        Evaluate the catalog against ``stats`` and unlock whatever it meets.

        Progress values of locked achievements are refreshed from the
        snapshot as a side effect.

        Returns:
            Codes unlocked by this call, in catalog order
        """
        snapshot = (
            stats if isinstance(stats, UserStatisticsSnapshot)
            else UserStatisticsSnapshot.model_validate(dict(stats))
        )

        for definition in self.catalog.active():
            entry = self.progress[definition.code]
            value = snapshot.value_of(statistic_for(definition))
            if not entry.is_unlocked and value is not None:
                entry.current_value = float(value)

        already_unlocked = {code for code, entry in self.progress.items() if entry.is_unlocked}
        unlocked = [
            definition.code
            for definition in unlockable(self.catalog, snapshot, already_unlocked)
            if self._unlock(definition.code, None)
        ]
        self._persist()
        return unlocked

    def clear_newly_unlocked(self) -> None:
        """Drain the notification queue."""
        self.newly_unlocked = []

    def reset(self) -> None:
        """Back to all locked, zero progress."""
        self.progress = self._initial_progress()
        self.newly_unlocked = []
        self.server_total_xp = None
        self.server_level = None
        self.server_achievement_xp = None
        self._persist()

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    def get_progress(self, code: str) -> AchievementProgress:
        entry = self.progress.get(code)
        if entry is None:
            return AchievementProgress(achievement_id=code)
        return entry.model_copy()

    def unlocked_achievements(self) -> list[AchievementDefinition]:
        return [d for d in self.catalog if self.progress[d.code].is_unlocked]

    def locked_achievements(self) -> list[AchievementDefinition]:
        return [d for d in self.catalog if not self.progress[d.code].is_unlocked]

    def total_achievement_xp(self) -> int:
        return self.catalog.total_xp(d.code for d in self.unlocked_achievements())

    def unlock_count(self) -> int:
        return len(self.unlocked_achievements())

    # ------------------------------------------------------------------
    # Server reconciliation
    # ------------------------------------------------------------------

    def reconcile_with_list(self, response: AchievementsListResponse) -> None:
        """
        Adopt the server's full view of unlocks.

        Server unlocks are confirmed with the server's timestamp. Unconfirmed
        local unlocks the server does not list are reverted and dropped from
        the notification queue. Nothing new is queued.

        Confirmed unlocks are never reverted: server unlocks are permanent, so
        a list missing one is older than the response that confirmed it (a
        cached list, for instance).
        """
        server_unlocks = {
            item.code: item.unlocked_at
            for item in response.achievements
            if item.is_unlocked
        }

        reverted = []
        stale = []
        for code, entry in self.progress.items():
            if code in server_unlocks:
                definition = self.catalog.get(code)
                entry.is_unlocked = True
                entry.unlocked_at = server_unlocks[code] or entry.unlocked_at or self.clock()
                entry.confirmed = True
                entry.current_value = max(entry.current_value, float(definition.threshold))
            elif entry.confirmed:
                stale.append(code)
            elif entry.is_unlocked:
                entry.is_unlocked = False
                entry.unlocked_at = None
                entry.confirmed = False
                reverted.append(code)

        if reverted:
            logger.info("Reverted unconfirmed local unlocks", codes=reverted)
            self.newly_unlocked = [code for code in self.newly_unlocked if code not in reverted]
        if stale:
            logger.warning("Achievement list is missing confirmed unlocks", codes=stale)

        self.server_achievement_xp = response.total_xp_earned
        self._persist()

    def reconcile_with_check(self, response: AchievementsCheckResponse) -> None:
        """
        Apply the result of a server-side check.

        Every unlock the server reports is confirmed with the server's
        timestamp; ones this client had not detected are also queued.
        """
        for item in response.newly_unlocked:
            entry = self.progress.get(item.code)
            if entry is None:
                continue
            self._unlock(item.code, item.unlocked_at)
            entry.unlocked_at = item.unlocked_at
            entry.confirmed = True

        self.server_total_xp = response.new_xp
        self.server_level = response.new_level
        self._persist()
