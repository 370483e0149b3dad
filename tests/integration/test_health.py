"""Tests for health check and root endpoints."""

from collections.abc import AsyncGenerator

import pytest
from httpx import AsyncClient

from swapi_fusion.config import Settings
from swapi_fusion.core.database import close_db, init_db
from swapi_fusion.services.cache import set_redis_client
from tests.conftest import InMemoryRedis


@pytest.fixture
async def backends(test_settings: Settings) -> AsyncGenerator[None, None]:
    """Initialize the database engine and a Redis stand-in."""
    await init_db(test_settings)
    set_redis_client(InMemoryRedis())  # type: ignore[arg-type]
    yield
    set_redis_client(None)
    await close_db()


@pytest.mark.asyncio
async def test_liveness_probe(async_client: AsyncClient) -> None:
    """Test that liveness probe returns OK."""
    response = await async_client.get("/health/live")

    assert response.status_code == 200
    assert response.json()["status"] == "ok"


@pytest.mark.asyncio
async def test_readiness_probe(async_client: AsyncClient, backends: None) -> None:
    """Test that readiness probe returns OK when both stores answer."""
    response = await async_client.get("/health/ready")

    assert response.status_code == 200
    data = response.json()
    assert data["status"] == "ok"
    assert data["checks"] == {"database": "ok", "redis": "ok"}


@pytest.mark.asyncio
async def test_readiness_probe_degraded(async_client: AsyncClient) -> None:
    """Test that readiness fails when nothing is initialized."""
    response = await async_client.get("/health/ready")

    assert response.status_code == 503
    data = response.json()
    assert data["status"] == "degraded"
    assert data["checks"]["database"] == "error"
    assert data["checks"]["redis"] == "error"


@pytest.mark.asyncio
async def test_root_endpoint(async_client: AsyncClient) -> None:
    """Test that root endpoint returns service info."""
    response = await async_client.get("/")

    assert response.status_code == 200
    data = response.json()
    assert data["service"] == "SWAPI Fusion"
    assert data["version"] == "1.0.0"
    assert data["docs"] == "/docs"
    assert data["health"] == "/health/live"


@pytest.mark.asyncio
async def test_custom_request_id(async_client: AsyncClient) -> None:
    """Test that custom X-Request-ID is echoed back."""
    custom_id = "test-request-id-12345"
    response = await async_client.get(
        "/health/live", headers={"X-Request-ID": custom_id}
    )

    assert response.status_code == 200
    assert response.headers["X-Request-ID"] == custom_id
