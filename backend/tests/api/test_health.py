"""
Tests for health check endpoints.
"""
from unittest.mock import patch

import pytest
from httpx import AsyncClient
from redis.exceptions import ConnectionError as RedisConnectionError
from sqlalchemy.exc import OperationalError
from sqlalchemy.ext.asyncio import AsyncSession

from progression.gamification.catalog import DEFAULT_CATALOG


@pytest.mark.asyncio
async def test_health_check(client: AsyncClient):
    """Test health check endpoint returns ok."""
    response = await client.get("/health")
    assert response.status_code == 200
    data = response.json()
    assert data["status"] == "healthy"
    assert data["services"] == {"api": "ok", "database": "ok", "cache": "ok"}
    assert data["achievements"] == len(DEFAULT_CATALOG.active())
    assert "timestamp" in data


@pytest.mark.asyncio
async def test_health_check_database_down(client: AsyncClient):
    """Database failures are reported, not raised."""
    async def broken(self, *args, **kwargs):
        raise OperationalError("SELECT 1", {}, Exception("connection refused"))

    with patch.object(AsyncSession, "execute", broken):
        response = await client.get("/health")

    assert response.status_code == 200
    data = response.json()
    assert data["status"] == "degraded"
    assert data["services"]["database"] == "error"


@pytest.mark.asyncio
async def test_health_check_cache_down(client: AsyncClient, mock_redis):
    mock_redis.ping.side_effect = RedisConnectionError("connection refused")

    response = await client.get("/health")

    data = response.json()
    assert data["status"] == "degraded"
    assert data["services"]["cache"] == "error"
    assert data["services"]["database"] == "ok"


@pytest.mark.asyncio
async def test_root_endpoint(client: AsyncClient):
    """Test root endpoint returns API info."""
    response = await client.get("/")
    assert response.status_code == 200
    data = response.json()
    assert data["name"] == "Read Master Progression"
    assert "version" in data
