"""Services package for SWAPI Fusion.

This module exports the upstream clients, the stores' service layer and the
fusion orchestrator.
"""

from swapi_fusion.services.cache import (
    CacheEntry,
    CacheService,
    get_cache_service,
    set_redis_client,
)
from swapi_fusion.services.swapi import (
    Character,
    Planet,
    SwapiError,
    SwapiNotFoundError,
    SwapiService,
)
from swapi_fusion.services.weather import (
    Weather,
    WeatherService,
    WeatherServiceError,
)
from swapi_fusion.services.fusion import (
    Compatibility,
    FusionOutcome,
    FusionService,
)
from swapi_fusion.services.rate_limiter import RateLimiter
from swapi_fusion.services.history import HistoryQuery, HistoryService

__all__ = [
    # Cache
    "CacheEntry",
    "CacheService",
    "get_cache_service",
    "set_redis_client",
    # SWAPI
    "Character",
    "Planet",
    "SwapiError",
    "SwapiNotFoundError",
    "SwapiService",
    # Weather
    "Weather",
    "WeatherService",
    "WeatherServiceError",
    # Fusion
    "Compatibility",
    "FusionOutcome",
    "FusionService",
    # Rate limiting
    "RateLimiter",
    # History
    "HistoryQuery",
    "HistoryService",
]
