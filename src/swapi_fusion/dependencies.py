"""FastAPI dependency injection container.

This module provides dependency injection functions for use with FastAPI's
Depends() pattern. Every service is built per request from the settings
stored on app.state, so tests can swap any of them through
app.dependency_overrides.
"""

from collections.abc import AsyncGenerator
from typing import Annotated

from fastapi import Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from swapi_fusion.config import Settings
from swapi_fusion.core.logging import get_logger
from swapi_fusion.repositories.history import HistoryRepository
from swapi_fusion.services.cache import CacheService, get_cache_service
from swapi_fusion.services.fusion import FusionService
from swapi_fusion.services.history import HistoryService
from swapi_fusion.services.rate_limiter import RateLimiter, client_ip_from_request
from swapi_fusion.services.swapi import SwapiService
from swapi_fusion.services.weather import WeatherService

logger = get_logger(__name__)


# ========================================
# Settings Dependencies
# ========================================
def get_settings_from_request(request: Request) -> Settings:
    """Get settings from request state (set in create_app)."""
    return request.app.state.settings


SettingsDep = Annotated[Settings, Depends(get_settings_from_request)]


# ========================================
# Database Dependencies
# ========================================
async def get_db_session() -> AsyncGenerator[AsyncSession, None]:
    """Get an async database session for the current request."""
    from swapi_fusion.core.database import get_async_session

    async for session in get_async_session():
        yield session


def get_history_repository(
    session: Annotated[AsyncSession, Depends(get_db_session)],
) -> HistoryRepository:
    return HistoryRepository(session)


# ========================================
# External Service Dependencies
# ========================================
async def get_swapi_service(
    settings: SettingsDep,
) -> AsyncGenerator[SwapiService, None]:
    """Yield a SWAPI client closed when the request ends."""
    service = SwapiService(settings)
    try:
        yield service
    finally:
        await service.close()


async def get_weather_service(
    settings: SettingsDep,
) -> AsyncGenerator[WeatherService, None]:
    """Yield a weather client closed when the request ends."""
    service = WeatherService(settings)
    try:
        yield service
    finally:
        await service.close()


# ========================================
# Domain Service Dependencies
# ========================================
def get_fusion_service(
    settings: SettingsDep,
    swapi: Annotated[SwapiService, Depends(get_swapi_service)],
    weather: Annotated[WeatherService, Depends(get_weather_service)],
    cache: Annotated[CacheService, Depends(get_cache_service)],
    history: Annotated[HistoryRepository, Depends(get_history_repository)],
) -> FusionService:
    return FusionService(swapi, weather, cache, history, settings)


def get_history_service(
    settings: SettingsDep,
    repository: Annotated[HistoryRepository, Depends(get_history_repository)],
) -> HistoryService:
    return HistoryService(repository, settings)


# ========================================
# Rate Limiting
# ========================================
def get_rate_limiter(settings: SettingsDep) -> RateLimiter | None:
    """Build the rate limiter, or None when the cache is not available."""
    try:
        cache = get_cache_service()
    except RuntimeError as e:
        logger.warning("rate_limiter_unavailable", error=str(e))
        return None
    return RateLimiter(
        cache,
        requests_limit=settings.rate_limit_requests,
        window_minutes=settings.rate_limit_window_minutes,
    )


async def enforce_rate_limit(
    request: Request,
    limiter: Annotated[RateLimiter | None, Depends(get_rate_limiter)],
) -> None:
    """Route dependency counting the request against its fixed window.

    Raises:
        RateLimitExceededError: If the client exhausted the current window
    """
    if limiter is None:
        return
    await limiter.check(
        client_ip_from_request(request),
        request.method,
        request.url.path,
    )
