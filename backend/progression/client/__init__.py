"""
Client-side progression: optimistic local store, persistence and sync.
"""
from progression.client.api_client import ProgressionAPIError, ProgressionClient
from progression.client.storage import (
    STORAGE_KEY,
    AchievementProgress,
    JsonFileStorage,
    MemoryStorage,
    PersistedState,
)
from progression.client.store import ProgressionStore

__all__ = [
    "ProgressionAPIError",
    "ProgressionClient",
    "STORAGE_KEY",
    "AchievementProgress",
    "JsonFileStorage",
    "MemoryStorage",
    "PersistedState",
    "ProgressionStore",
]
