"""
Client-side fixtures: a fixed clock and server response builders.
"""
from datetime import datetime, timezone

import pytest

from progression.schemas.achievement import (
    AchievementsCheckResponse,
    AchievementsListResponse,
    AchievementWithStatus,
    UnlockedAchievement,
)

SERVER_TIME = datetime(2026, 5, 1, 9, 30, tzinfo=timezone.utc)
LOCAL_TIME = datetime(2026, 5, 2, 18, 0, tzinfo=timezone.utc)


def _fields(definition) -> dict:
    return {
        "code": definition.code,
        "name": definition.name,
        "description": definition.description,
        "category": definition.category.value,
        "tier": definition.tier.value,
        "threshold": definition.threshold,
        "xp_reward": definition.xp_reward,
        "icon": definition.icon,
        "color": definition.color,
        "sort_order": definition.sort_order,
        "is_active": definition.is_active,
    }


@pytest.fixture
def clock():
    return lambda: LOCAL_TIME


@pytest.fixture
def server_time():
    return SERVER_TIME


@pytest.fixture
def list_response(small_catalog):
    """Server list response with ``unlocked`` codes unlocked at SERVER_TIME."""

    def _build(*unlocked: str) -> AchievementsListResponse:
        achievements = [
            AchievementWithStatus(
                **_fields(d),
                is_unlocked=d.code in unlocked,
                unlocked_at=SERVER_TIME if d.code in unlocked else None,
            )
            for d in small_catalog
        ]
        return AchievementsListResponse(
            achievements=achievements,
            total_count=len(achievements),
            unlocked_count=len(unlocked),
            total_xp_earned=small_catalog.total_xp(unlocked),
            categories=[],
        )

    return _build


@pytest.fixture
def check_response(small_catalog):
    """Server check response reporting ``codes`` as newly unlocked."""

    def _build(*codes: str, previous_xp: int = 0) -> AchievementsCheckResponse:
        awarded = small_catalog.total_xp(codes)
        return AchievementsCheckResponse(
            newly_unlocked=[
                UnlockedAchievement(**_fields(small_catalog.get(code)), unlocked_at=SERVER_TIME)
                for code in codes
            ],
            total_xp_awarded=awarded,
            previous_xp=previous_xp,
            new_xp=previous_xp + awarded,
            previous_level=1,
            new_level=2 if previous_xp + awarded >= 100 else 1,
            leveled_up=previous_xp + awarded >= 100,
        )

    return _build
