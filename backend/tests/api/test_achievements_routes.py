"""
Tests for achievements endpoints.
"""
import json
from datetime import timedelta
from unittest.mock import patch

import pytest
from httpx import AsyncClient
from sqlalchemy.exc import OperationalError

from progression.api.routes.achievements import CHECK_FAILED_DETAIL
from progression.gamification.catalog import DEFAULT_CATALOG
from progression.services.auth import create_access_token
from progression.services.progression import ProgressionService


@pytest.mark.asyncio
@pytest.mark.parametrize("method,path", [
    ("GET", "/api/achievements"),
    ("POST", "/api/achievements/check"),
    ("GET", "/api/achievements/progression"),
])
async def test_requires_authentication(client: AsyncClient, method, path):
    response = await client.request(method, path)

    assert response.status_code == 401
    assert response.json()["detail"] == "Not authenticated"


@pytest.mark.asyncio
async def test_rejects_invalid_token(client: AsyncClient):
    response = await client.get(
        "/api/achievements",
        headers={"Authorization": "Bearer not-a-jwt"},
    )

    assert response.status_code == 401
    assert response.json()["detail"] == "Invalid or expired token"


@pytest.mark.asyncio
async def test_rejects_expired_token(client: AsyncClient, user_id):
    token = create_access_token(user_id, expires_delta=timedelta(seconds=-1))

    response = await client.get(
        "/api/achievements",
        headers={"Authorization": f"Bearer {token}"},
    )

    assert response.status_code == 401


@pytest.mark.asyncio
async def test_list_default_catalog(client: AsyncClient, auth_headers):
    response = await client.get("/api/achievements", headers=auth_headers)

    assert response.status_code == 200
    data = response.json()
    assert data["total_count"] == len(DEFAULT_CATALOG)
    assert data["unlocked_count"] == 0
    assert data["total_xp_earned"] == 0
    assert [a["code"] for a in data["achievements"]] == list(DEFAULT_CATALOG.codes)
    assert all(a["is_unlocked"] is False for a in data["achievements"])
    assert {c["name"] for c in data["categories"]} == {
        "reading", "streak", "flashcards", "assessments", "social", "milestones",
    }


@pytest.mark.asyncio
async def test_list_is_cached(client: AsyncClient, auth_headers, mock_redis, user_id):
    await client.get("/api/achievements", headers=auth_headers)

    key, ttl, _ = mock_redis.setex.await_args.args
    assert key == f"cache:achievements:{user_id}"
    assert ttl == 30


@pytest.mark.asyncio
async def test_list_served_from_cache(client: AsyncClient, auth_headers, mock_redis):
    cached = {
        "achievements": [],
        "total_count": 0,
        "unlocked_count": 0,
        "total_xp_earned": 0,
        "categories": [],
    }
    mock_redis.get.return_value = json.dumps(cached)

    response = await client.get("/api/achievements", headers=auth_headers)

    assert response.status_code == 200
    assert response.json() == cached
    mock_redis.setex.assert_not_awaited()


@pytest.mark.asyncio
async def test_list_no_cache_skips_stale_entry(
    client: AsyncClient, auth_headers, mock_redis, use_catalog, small_catalog, seed_stats, user_id
):
    use_catalog(small_catalog)
    await seed_stats(books_completed=1)
    await client.post("/api/achievements/check", headers=auth_headers)
    # Entry written before the check, left behind by a failed delete
    mock_redis.get.return_value = json.dumps({
        "achievements": [],
        "total_count": 0,
        "unlocked_count": 0,
        "total_xp_earned": 0,
        "categories": [],
    })

    response = await client.get(
        "/api/achievements",
        headers={**auth_headers, "Cache-Control": "no-cache"},
    )

    data = response.json()
    assert data["unlocked_count"] == 1
    assert [a["code"] for a in data["achievements"] if a["is_unlocked"]] == ["read_1"]
    mock_redis.get.assert_not_awaited()
    key, _, value = mock_redis.setex.await_args.args
    assert key == f"cache:achievements:{user_id}"
    assert json.loads(value)["unlocked_count"] == 1


@pytest.mark.asyncio
async def test_check_awards_achievements(
    client: AsyncClient, auth_headers, use_catalog, small_catalog, seed_stats
):
    use_catalog(small_catalog)
    await seed_stats(books_completed=5)

    response = await client.post("/api/achievements/check", headers=auth_headers)

    assert response.status_code == 200
    data = response.json()
    assert [a["code"] for a in data["newly_unlocked"]] == ["read_1", "read_5", "level_2"]
    assert all(a["unlocked_at"] for a in data["newly_unlocked"])
    assert data["total_xp_awarded"] == 200
    assert data["previous_xp"] == 0
    assert data["new_xp"] == 200
    assert data["previous_level"] == 1
    assert data["new_level"] == 2
    assert data["leveled_up"] is True


@pytest.mark.asyncio
async def test_check_twice_awards_once(
    client: AsyncClient, auth_headers, use_catalog, small_catalog, seed_stats
):
    use_catalog(small_catalog)
    await seed_stats(books_completed=1)
    await client.post("/api/achievements/check", headers=auth_headers)

    response = await client.post("/api/achievements/check", headers=auth_headers)

    data = response.json()
    assert data["newly_unlocked"] == []
    assert data["total_xp_awarded"] == 0
    assert data["previous_xp"] == data["new_xp"] == 50
    assert data["leveled_up"] is False


@pytest.mark.asyncio
async def test_check_invalidates_cache_only_on_unlock(
    client: AsyncClient, auth_headers, use_catalog, small_catalog, seed_stats, mock_redis, user_id
):
    use_catalog(small_catalog)

    await client.post("/api/achievements/check", headers=auth_headers)
    mock_redis.delete.assert_not_awaited()

    await seed_stats(books_completed=1)
    await client.post("/api/achievements/check", headers=auth_headers)
    mock_redis.delete.assert_awaited_once_with(f"cache:achievements:{user_id}")


@pytest.mark.asyncio
async def test_check_then_list_shows_unlocks(
    client: AsyncClient, auth_headers, use_catalog, small_catalog, seed_stats
):
    use_catalog(small_catalog)
    await seed_stats(books_completed=1, current_streak=3)
    await client.post("/api/achievements/check", headers=auth_headers)

    response = await client.get("/api/achievements", headers=auth_headers)

    data = response.json()
    unlocked = [a["code"] for a in data["achievements"] if a["is_unlocked"]]
    assert unlocked == ["read_1", "streak_3", "level_2"]
    assert data["unlocked_count"] == 3
    assert data["total_xp_earned"] == 150


@pytest.mark.asyncio
async def test_check_failure_returns_500(client: AsyncClient, auth_headers):
    async def broken(self, user_id):
        raise OperationalError("SELECT", {}, Exception("connection lost"))

    with patch.object(ProgressionService, "check_and_award", broken):
        response = await client.post("/api/achievements/check", headers=auth_headers)

    assert response.status_code == 500
    assert response.json()["detail"] == CHECK_FAILED_DETAIL


@pytest.mark.asyncio
async def test_progression_for_new_user(client: AsyncClient, auth_headers, user_id):
    response = await client.get("/api/achievements/progression", headers=auth_headers)

    assert response.status_code == 200
    assert response.json() == {
        "user_id": user_id,
        "total_xp": 0,
        "level": 1,
        "title": "Novice Reader",
        "current_level_xp": 0,
        "next_level_xp": 100,
        "progress_percent": 0.0,
    }


@pytest.mark.asyncio
async def test_progression_after_check(
    client: AsyncClient, auth_headers, use_catalog, small_catalog, seed_stats
):
    use_catalog(small_catalog)
    await seed_stats(books_completed=5)
    await client.post("/api/achievements/check", headers=auth_headers)

    response = await client.get("/api/achievements/progression", headers=auth_headers)

    data = response.json()
    assert data["total_xp"] == 200
    assert data["level"] == 2
    assert data["current_level_xp"] == 100
    assert data["next_level_xp"] == 300
    assert data["progress_percent"] == pytest.approx(50.0)
