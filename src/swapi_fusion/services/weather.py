"""OpenWeatherMap client service with a simulated fallback.

Fictional planets are mapped to real-world stand-in locations, current
weather for that location is fetched in metric units, and the response is
normalized into a canonical Weather DTO. When live weather cannot be
obtained the caller can ask for simulated weather, generated from an
injectable ``random.Random`` so results are reproducible under a seed.

See: https://openweathermap.org/current
"""

import random
from dataclasses import dataclass
from datetime import UTC, datetime
from typing import Any

import httpx
import structlog

from swapi_fusion.config import Settings
from swapi_fusion.core.exceptions import UpstreamUnavailableError

logger = structlog.get_logger(__name__)

SOURCE_LIVE = "OPENWEATHERMAP"
SOURCE_SIMULATED = "SIMULATED"

DEFAULT_LOCATION = "London,UK"
SIMULATED_COUNTRY = "Galaxy Far Far Away"
SIMULATED_DESCRIPTION = "Simulated weather conditions"
SIMULATED_CONDITIONS = ("Clear", "Clouds", "Rain", "Mist")

PLANET_LOCATIONS: dict[str, str] = {
    "Tatooine": "Tucson,US",
    "Alderaan": "Geneva,CH",
    "Yavin IV": "Manaus,BR",
    "Hoth": "Anchorage,US",
    "Dagobah": "New Orleans,US",
    "Bespin": "Denver,US",
    "Endor": "Vancouver,CA",
    "Naboo": "Rome,IT",
    "Coruscant": "New York,US",
    "Kamino": "Reykjavik,IS",
}


def map_planet_to_location(planet_name: str) -> str:
    """Map a SWAPI planet name to a real-world "City,CC" location."""
    return PLANET_LOCATIONS.get(planet_name, DEFAULT_LOCATION)


# -----------------------------------------------------------------------------
# DTOs (Canonical Internal Models)
# -----------------------------------------------------------------------------


@dataclass
class Weather:
    """Normalized current weather.

    Temperatures are in Celsius and wind speed in km/h.
    """

    location: str
    country: str
    latitude: float
    longitude: float
    temperature: int
    feels_like: int
    humidity: int
    pressure: int
    visibility: int
    wind_speed: int
    wind_direction: int
    condition_main: str
    condition_description: str
    source: str
    is_fallback: bool
    observed_at: str
    fallback_reason: str | None = None


class WeatherServiceError(UpstreamUnavailableError):
    """Raised when live weather cannot be obtained."""

    code: str = "WEATHER_UNAVAILABLE"
    message: str = "Weather service unavailable"


# -----------------------------------------------------------------------------
# Service
# -----------------------------------------------------------------------------


class WeatherService:
    """Async OpenWeatherMap client.

    Usage:
        ```python
        service = WeatherService(settings, rng=random.Random(42))
        try:
            weather = await service.get_current_weather("Tucson,US")
        except WeatherServiceError as e:
            weather = service.simulate("Tatooine", reason=str(e))
        ```
    """

    def __init__(
        self,
        settings: Settings,
        rng: random.Random | None = None,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        """Initialize the weather service.

        Args:
            settings: Application settings
            rng: Random source for simulated weather
            client: Optional pre-built HTTP client (used in tests)
        """
        self._settings = settings
        self._rng = rng or random.Random(settings.fallback_weather_seed)
        self._client = client

    @property
    def has_api_key(self) -> bool:
        return self._settings.has_weather_credentials

    async def _get_client(self) -> httpx.AsyncClient:
        """Get or create the HTTP client."""
        if self._client is None or self._client.is_closed:
            self._client = httpx.AsyncClient(
                base_url=self._settings.openweather_base_url,
                timeout=self._settings.http_timeout,
            )
        return self._client

    async def close(self) -> None:
        """Close the HTTP client."""
        if self._client and not self._client.is_closed:
            await self._client.aclose()
            self._client = None

    async def get_current_weather(self, location: str) -> Weather:
        """Fetch current weather for a "City,CC" location.

        Raises:
            WeatherServiceError: If no API key is configured, or on any
                HTTP, transport or payload failure
        """
        if not self.has_api_key:
            logger.warning("weather_api_key_missing", location=location)
            raise WeatherServiceError(
                "OpenWeatherMap API key not configured", service="openweathermap"
            )

        client = await self._get_client()
        api_key = self._settings.openweather_api_key
        params = {
            "q": location,
            "appid": api_key.get_secret_value() if api_key else "",
            "units": "metric",
        }

        try:
            response = await client.get("/weather", params=params)
            response.raise_for_status()
            data = response.json()
            return self._parse_weather(data, location)
        except httpx.HTTPStatusError as e:
            status = e.response.status_code
            logger.error("weather_fetch_failed", location=location, status_code=status)
            raise WeatherServiceError(
                f"Weather request failed: {status}",
                service="openweathermap",
                status_code=status,
            ) from e
        except httpx.RequestError as e:
            logger.error("weather_request_error", location=location, error=str(e))
            raise WeatherServiceError(
                f"Weather request failed: {e}", service="openweathermap"
            ) from e
        except (ValueError, KeyError, TypeError, IndexError) as e:
            logger.error("weather_invalid_response", location=location, error=str(e))
            raise WeatherServiceError(
                "Weather service returned an unexpected payload",
                service="openweathermap",
            ) from e

    def simulate(self, planet_name: str, reason: str | None = None) -> Weather:
        """Generate plausible weather tagged as a fallback."""
        rng = self._rng
        return Weather(
            location=planet_name,
            country=SIMULATED_COUNTRY,
            latitude=0.0,
            longitude=0.0,
            temperature=round(rng.uniform(-10, 30)),
            feels_like=round(rng.uniform(-10, 30)),
            humidity=round(rng.uniform(0, 100)),
            pressure=round(rng.uniform(1000, 1050)),
            visibility=round(rng.uniform(0, 10000)),
            wind_speed=round(rng.uniform(0, 20)),
            wind_direction=round(rng.uniform(0, 360)),
            condition_main=rng.choice(SIMULATED_CONDITIONS),
            condition_description=SIMULATED_DESCRIPTION,
            source=SOURCE_SIMULATED,
            is_fallback=True,
            observed_at=_utc_now_iso(),
            fallback_reason=reason,
        )

    # -------------------------------------------------------------------------
    # Private Methods - Response Parsing
    # -------------------------------------------------------------------------

    def _parse_weather(self, data: dict[str, Any], location: str) -> Weather:
        main = data["main"]
        wind = data.get("wind") or {}
        coord = data.get("coord") or {}
        conditions = (data.get("weather") or [{}])[0]
        observed = data.get("dt")

        return Weather(
            location=data.get("name") or location,
            country=(data.get("sys") or {}).get("country") or "Unknown",
            latitude=float(coord.get("lat") or 0),
            longitude=float(coord.get("lon") or 0),
            temperature=round(main["temp"]),
            feels_like=round(main.get("feels_like", main["temp"])),
            humidity=int(main.get("humidity") or 0),
            pressure=int(main.get("pressure") or 0),
            visibility=int(data.get("visibility") or 0),
            # m/s to km/h
            wind_speed=round((wind.get("speed") or 0) * 3.6),
            wind_direction=int(wind.get("deg") or 0),
            condition_main=conditions.get("main") or "Unknown",
            condition_description=conditions.get("description") or "No description",
            source=SOURCE_LIVE,
            is_fallback=False,
            observed_at=(
                datetime.fromtimestamp(observed, UTC).isoformat()
                if observed
                else _utc_now_iso()
            ),
        )


def _utc_now_iso() -> str:
    return datetime.now(UTC).isoformat()
