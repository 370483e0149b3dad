"""FusionService - merge a SWAPI character, its homeworld and live weather.

Pipeline for one character id:

    cache lookup ─hit──────────────────────────────────────────▶ return cached
         │miss
         ▼
    character ─fail──▶ CharacterUnavailableError (planet/weather never fetched)
         ▼
    planet ─fail──▶ "Unknown" sentinel, quality "partial"
         ▼
    weather ─fail──▶ simulated weather, quality "fallback", compatibility "unknown"
         ▼
    assemble ─▶ cache write ─▶ history append (best effort) ─▶ return

Each stage is timed and the response reports the sum of stage durations.
"""

import time
from collections.abc import Callable
from dataclasses import dataclass
from enum import Enum
from typing import Any

import structlog

from swapi_fusion.config import Settings
from swapi_fusion.core.exceptions import CharacterUnavailableError
from swapi_fusion.repositories.history import HistoryRepository
from swapi_fusion.services.cache import CacheService
from swapi_fusion.services.swapi import Character, Planet, SwapiError, SwapiService
from swapi_fusion.services.weather import (
    Weather,
    WeatherService,
    WeatherServiceError,
    map_planet_to_location,
)

logger = structlog.get_logger(__name__)

FUSION_SOURCE = "SWAPI + OpenWeatherMap"


class Compatibility(str, Enum):
    """How well current real-world weather matches the planet's climate."""

    PERFECT = "perfect match"
    GOOD = "good match"
    FAIR = "fair match"
    POOR = "poor match"
    UNKNOWN = "unknown"


class DataQuality(str, Enum):
    """Quality tag attached to each fused component."""

    COMPLETE = "complete"
    PARTIAL = "partial"
    FALLBACK = "fallback"


def calculate_compatibility(climate: str, weather: Weather) -> Compatibility:
    """Rate the planet climate against the weather, first matching rule wins.

    Simulated weather always rates as unknown.
    """
    if weather.is_fallback:
        return Compatibility.UNKNOWN

    climate = climate.lower()
    temp = weather.temperature
    conditions = weather.condition_description.lower()

    if "desert" in climate:
        if temp > 25 and "clear" in conditions:
            return Compatibility.PERFECT
        if temp > 15:
            return Compatibility.GOOD
        return Compatibility.POOR

    if "frozen" in climate or "cold" in climate:
        if temp < 0:
            return Compatibility.PERFECT
        if temp < 10:
            return Compatibility.GOOD
        return Compatibility.POOR

    if "temperate" in climate:
        if 15 <= temp <= 25:
            return Compatibility.PERFECT
        if 5 <= temp <= 30:
            return Compatibility.GOOD
        return Compatibility.FAIR

    if "tropical" in climate or "jungle" in climate:
        if temp > 20 and weather.humidity > 70:
            return Compatibility.PERFECT
        if temp > 15:
            return Compatibility.GOOD
        return Compatibility.FAIR

    return Compatibility.FAIR


@dataclass
class FusionOutcome:
    """Result of one fusion request."""

    data: dict[str, Any]
    cached: bool
    processing_time_ms: int
    stored: bool = False


class FusionService:
    """Orchestrates the fusion pipeline.

    Usage:
        ```python
        service = FusionService(swapi, weather, cache, history_repo, settings)
        outcome = await service.fuse("1", request_id="abc")
        ```
    """

    def __init__(
        self,
        swapi: SwapiService,
        weather: WeatherService,
        cache: CacheService,
        history: HistoryRepository,
        settings: Settings,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self.swapi = swapi
        self.weather = weather
        self.cache = cache
        self.history = history
        self.settings = settings
        self.clock = clock

    async def fuse(self, character_id: str, request_id: str | None = None) -> FusionOutcome:
        """Produce the fusion result for a character.

        Args:
            character_id: SWAPI person id
            request_id: Correlation id recorded in the result meta

        Returns:
            FusionOutcome with the camelCase result payload

        Raises:
            CharacterUnavailableError: If the character cannot be fetched
        """
        cache_key = CacheService.fusion_key(character_id)

        entry = await self.cache.get(cache_key)
        if entry is not None:
            logger.info("fusion_cache_hit", character_id=character_id)
            return FusionOutcome(data=entry.value, cached=True, processing_time_ms=0)

        logger.info("fusion_cache_miss", character_id=character_id)

        # Character
        started = time.perf_counter()
        try:
            character = await self.swapi.get_character(character_id)
        except SwapiError as e:
            logger.warning(
                "fusion_character_unavailable",
                character_id=character_id,
                error=str(e),
            )
            raise CharacterUnavailableError(character_id, reason=e.message) from e
        character_ms = _elapsed_ms(started)

        # Planet
        started = time.perf_counter()
        planet_quality = DataQuality.COMPLETE
        try:
            planet = await self.swapi.get_planet(character.homeworld_id)
        except SwapiError as e:
            logger.warning(
                "fusion_planet_unavailable",
                planet_id=character.homeworld_id,
                error=str(e),
            )
            planet = Planet.unknown(character.homeworld_id)
            planet_quality = DataQuality.PARTIAL
        planet_ms = _elapsed_ms(started)

        # Weather
        started = time.perf_counter()
        weather_quality = DataQuality.COMPLETE
        location = map_planet_to_location(planet.name)
        try:
            weather = await self.weather.get_current_weather(location)
        except WeatherServiceError as e:
            logger.warning(
                "fusion_weather_fallback",
                planet=planet.name,
                location=location,
                error=str(e),
            )
            weather = self.weather.simulate(planet.name, reason=e.message)
            weather_quality = DataQuality.FALLBACK
        weather_ms = _elapsed_ms(started)

        processing_time = {
            "character": character_ms,
            "planet": planet_ms,
            "weather": weather_ms,
        }
        data = self._assemble(
            character,
            planet,
            weather,
            planet_quality=planet_quality,
            weather_quality=weather_quality,
            request_id=request_id,
            processing_time=processing_time,
        )
        total_ms = character_ms + planet_ms + weather_ms

        await self.cache.set(cache_key, data, self.settings.cache_ttl_seconds)
        stored = await self._append_history(character_id, data, request_id, total_ms)

        logger.info(
            "fusion_completed",
            character_id=character_id,
            compatibility=data["fusion"]["compatibility"],
            processing_time_ms=total_ms,
            stored=stored,
        )
        return FusionOutcome(
            data=data, cached=False, processing_time_ms=total_ms, stored=stored
        )

    def _assemble(
        self,
        character: Character,
        planet: Planet,
        weather: Weather,
        *,
        planet_quality: DataQuality,
        weather_quality: DataQuality,
        request_id: str | None,
        processing_time: dict[str, int],
    ) -> dict[str, Any]:
        climate = planet.climate_text or "Unknown"
        terrain = planet.terrain_text or "Unknown"
        conditions = weather.condition_description or "unknown conditions"

        return {
            "character": {
                "id": character.id,
                "name": character.name,
                "height": character.height,
                "mass": character.mass,
                "hairColor": character.hair_color,
                "eyeColor": character.eye_color,
                "birthYear": character.birth_year,
                "gender": character.gender,
                "homeworldId": character.homeworld_id,
            },
            "homeworld": {
                "id": planet.id,
                "name": planet.name,
                "climate": climate,
                "terrain": terrain,
                "population": planet.population,
            },
            "weather": {
                "location": weather.location,
                "country": weather.country,
                "temperature": weather.temperature,
                "feelsLike": weather.feels_like,
                "humidity": weather.humidity,
                "pressure": weather.pressure,
                "visibility": weather.visibility,
                "windSpeed": weather.wind_speed,
                "windDirection": weather.wind_direction,
                "conditions": weather.condition_description,
                "source": weather.source,
                "isFallback": weather.is_fallback,
            },
            "fusion": {
                "summary": (
                    f"{character.name} from {planet.name} - Currently {conditions}"
                ),
                "compatibility": calculate_compatibility(climate, weather).value,
                "dataQuality": {
                    "character": DataQuality.COMPLETE.value,
                    "planet": planet_quality.value,
                    "weather": weather_quality.value,
                },
            },
            "meta": {
                "source": FUSION_SOURCE,
                "requestId": request_id,
                "version": self.settings.app_version,
                "processingTime": processing_time,
            },
        }

    async def _append_history(
        self,
        character_id: str,
        data: dict[str, Any],
        request_id: str | None,
        processing_time_ms: int,
    ) -> bool:
        now = self.clock()
        ttl = self.settings.history_fusion_ttl_seconds
        try:
            await self.history.add_fusion(
                character_id=character_id,
                data=data,
                timestamp_ms=int(now * 1000),
                expires_at=int(now) + ttl if ttl > 0 else None,
                metadata={
                    "requestId": request_id,
                    "processingTime": processing_time_ms,
                },
            )
        except Exception as e:
            logger.error(
                "history_append_failed",
                character_id=character_id,
                error=str(e),
            )
            return False

        try:
            purged = await self.history.purge_expired(int(now))
        except Exception as e:
            logger.warning("history_purge_failed", error=str(e))
        else:
            if purged:
                logger.info("history_purged", count=purged)
        return True


def _elapsed_ms(started: float) -> int:
    return int(round((time.perf_counter() - started) * 1000))
