"""
Local persistence for the client progression store.

Only the progress map and the last update time are persisted; the
notification queue is session-only. The stored state is a cache of the
server's view, so unreadable state is discarded rather than repaired.
"""
import json
from datetime import datetime
from pathlib import Path
from typing import Optional, Protocol

import structlog
from pydantic import BaseModel, Field, ValidationError

logger = structlog.get_logger()

STORAGE_KEY = "read-master-achievements"


class AchievementProgress(BaseModel):
    """Client-side progress toward one achievement."""
    achievement_id: str
    current_value: float = Field(0, ge=0)
    is_unlocked: bool = False
    unlocked_at: Optional[datetime] = None
    confirmed: bool = False  # server has recorded this unlock


class PersistedState(BaseModel):
    """What survives a restart."""
    progress: dict[str, AchievementProgress] = Field(default_factory=dict)
    last_updated: Optional[datetime] = None


class ProgressStorage(Protocol):
    def load(self) -> Optional[PersistedState]:
        ...

    def save(self, state: PersistedState) -> None:
        ...

    def clear(self) -> None:
        ...


class MemoryStorage:
    """Keeps the serialized state in memory."""

    def __init__(self):
        self._data: Optional[str] = None

    def load(self) -> Optional[PersistedState]:
        if self._data is None:
            return None
        return PersistedState.model_validate_json(self._data)

    def save(self, state: PersistedState) -> None:
        self._data = state.model_dump_json()

    def clear(self) -> None:
        self._data = None


class JsonFileStorage:
    """
    JSON file holding state under STORAGE_KEY.

    Other keys in the file are preserved, so several stores can share one
    file.
    """

    def __init__(self, path: Path | str, key: str = STORAGE_KEY):
        self.path = Path(path)
        self.key = key

    def _read_document(self) -> dict:
        if not self.path.exists():
            return {}
        try:
            document = json.loads(self.path.read_text(encoding="utf-8"))
        except (OSError, json.JSONDecodeError) as e:
            logger.warning("Progress storage unreadable, starting fresh", path=str(self.path), error=str(e))
            return {}
        if not isinstance(document, dict):
            logger.warning("Progress storage malformed, starting fresh", path=str(self.path))
            return {}
        return document

    def load(self) -> Optional[PersistedState]:
        raw = self._read_document().get(self.key)
        if raw is None:
            return None
        try:
            return PersistedState.model_validate(raw)
        except ValidationError as e:
            logger.warning(
                "Discarding invalid persisted progress",
                path=str(self.path),
                errors=e.error_count(),
            )
            return None

    def save(self, state: PersistedState) -> None:
        document = self._read_document()
        document[self.key] = state.model_dump(mode="json")
        self.path.parent.mkdir(parents=True, exist_ok=True)
        tmp_path = self.path.with_suffix(self.path.suffix + ".tmp")
        tmp_path.write_text(json.dumps(document, indent=2), encoding="utf-8")
        tmp_path.replace(self.path)

    def clear(self) -> None:
        document = self._read_document()
        if document.pop(self.key, None) is not None:
            self.path.write_text(json.dumps(document, indent=2), encoding="utf-8")
