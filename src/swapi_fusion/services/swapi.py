"""Star Wars API (SWAPI) client service.

This service provides async access to the SWAPI people and planets
resources and normalizes both into canonical internal DTOs.

See: https://swapi.dev/documentation
"""

import re
from dataclasses import dataclass, field
from typing import Any

import httpx
import structlog

from swapi_fusion.config import Settings
from swapi_fusion.core.exceptions import UpstreamUnavailableError

logger = structlog.get_logger(__name__)

UNKNOWN_VALUES = frozenset({"unknown", "n/a", "none", ""})
DEFAULT_PLANET_ID = "1"

_PLANET_ID_PATTERN = re.compile(r"/planets/(\d+)/?")


# -----------------------------------------------------------------------------
# DTOs (Canonical Internal Models)
# -----------------------------------------------------------------------------


@dataclass
class Character:
    """Normalized SWAPI person."""

    id: str
    name: str
    height: int | float | None
    mass: int | float | None
    hair_color: str
    skin_color: str
    eye_color: str
    birth_year: str
    gender: str
    homeworld_id: str
    homeworld_url: str | None = None
    films: list[str] = field(default_factory=list)
    url: str | None = None


@dataclass
class Planet:
    """Normalized SWAPI planet.

    Climate and terrain are split into their ordered terms, e.g.
    "temperate, tropical" becomes ["temperate", "tropical"].
    """

    id: str
    name: str
    climate: list[str]
    terrain: list[str]
    population: int | float | None = None
    diameter: int | float | None = None
    gravity: str | None = None
    url: str | None = None

    @property
    def climate_text(self) -> str:
        return ", ".join(self.climate)

    @property
    def terrain_text(self) -> str:
        return ", ".join(self.terrain)

    @classmethod
    def unknown(cls, planet_id: str) -> "Planet":
        """Sentinel used when the homeworld cannot be fetched."""
        return cls(
            id=planet_id,
            name="Unknown",
            climate=["Unknown"],
            terrain=["Unknown"],
        )


# -----------------------------------------------------------------------------
# Exceptions
# -----------------------------------------------------------------------------


class SwapiError(UpstreamUnavailableError):
    """Raised when SWAPI cannot serve a request."""

    code: str = "SWAPI_UNAVAILABLE"
    message: str = "Star Wars API unavailable"


class SwapiNotFoundError(SwapiError):
    """Raised when SWAPI answers 404 for a resource."""

    code: str = "SWAPI_NOT_FOUND"
    message: str = "Resource not found in Star Wars API"


# -----------------------------------------------------------------------------
# Normalization helpers
# -----------------------------------------------------------------------------


def parse_numeric(value: Any) -> int | float | None:
    """Parse a SWAPI numeric string.

    "unknown" and "n/a" become None, thousands separators are stripped,
    and integral values are returned as int.

    Examples:
        >>> parse_numeric("1,358")
        1358
        >>> parse_numeric("77.5")
        77.5
        >>> parse_numeric("unknown") is None
        True
    """
    if value is None:
        return None
    if isinstance(value, (int, float)):
        return value
    text = str(value).strip().lower()
    if text in UNKNOWN_VALUES:
        return None
    try:
        number = float(text.replace(",", ""))
    except ValueError:
        return None
    return int(number) if number.is_integer() else number


def parse_list(value: Any) -> list[str]:
    """Split a comma separated SWAPI attribute into trimmed terms."""
    if not value:
        return []
    return [part.strip() for part in str(value).split(",") if part.strip()]


def extract_planet_id(url: str | None) -> str:
    """Extract the planet id from a SWAPI planet URL, defaulting to "1"."""
    if url:
        match = _PLANET_ID_PATTERN.search(url)
        if match:
            return match.group(1)
    return DEFAULT_PLANET_ID


# -----------------------------------------------------------------------------
# Service
# -----------------------------------------------------------------------------


class SwapiService:
    """Async SWAPI client.

    Usage:
        ```python
        swapi = SwapiService(settings)
        character = await swapi.get_character("1")
        planet = await swapi.get_planet(character.homeworld_id)
        await swapi.close()
        ```
    """

    def __init__(
        self,
        settings: Settings,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        """Initialize the SWAPI service.

        Args:
            settings: Application settings
            client: Optional pre-built HTTP client (used in tests)
        """
        self._settings = settings
        self._client = client

    @property
    def _user_agent(self) -> str:
        return f"{self._settings.app_name}/{self._settings.app_version}"

    async def _get_client(self) -> httpx.AsyncClient:
        """Get or create the HTTP client."""
        if self._client is None or self._client.is_closed:
            self._client = httpx.AsyncClient(
                base_url=self._settings.swapi_base_url,
                timeout=self._settings.http_timeout,
                headers={"User-Agent": self._user_agent},
            )
        return self._client

    async def close(self) -> None:
        """Close the HTTP client."""
        if self._client and not self._client.is_closed:
            await self._client.aclose()
            self._client = None

    async def get_character(self, character_id: str) -> Character:
        """Fetch and normalize a person.

        Raises:
            SwapiNotFoundError: If the character does not exist
            SwapiError: On any other API or transport failure
        """
        data = await self._fetch(f"/people/{character_id}/", resource="character")
        return self._parse_character(data, character_id)

    async def get_planet(self, planet_id: str) -> Planet:
        """Fetch and normalize a planet.

        Raises:
            SwapiNotFoundError: If the planet does not exist
            SwapiError: On any other API or transport failure
        """
        data = await self._fetch(f"/planets/{planet_id}/", resource="planet")
        return self._parse_planet(data, planet_id)

    # -------------------------------------------------------------------------
    # Private Methods - API Fetching
    # -------------------------------------------------------------------------

    async def _fetch(self, path: str, *, resource: str) -> dict[str, Any]:
        client = await self._get_client()

        try:
            response = await client.get(path)
            response.raise_for_status()
            data = response.json()
        except httpx.HTTPStatusError as e:
            status = e.response.status_code
            logger.error("swapi_fetch_failed", path=path, status_code=status)
            if status == 404:
                raise SwapiNotFoundError(
                    f"SWAPI {resource} not found: {path}",
                    service="swapi",
                    status_code=status,
                ) from e
            raise SwapiError(
                f"SWAPI request failed: {status}",
                service="swapi",
                status_code=status,
            ) from e
        except httpx.RequestError as e:
            logger.error("swapi_request_error", path=path, error=str(e))
            raise SwapiError(f"SWAPI request failed: {e}", service="swapi") from e
        except ValueError as e:
            logger.error("swapi_invalid_response", path=path, error=str(e))
            raise SwapiError("SWAPI returned invalid JSON", service="swapi") from e

        if not isinstance(data, dict):
            raise SwapiError("SWAPI returned an unexpected payload", service="swapi")
        return data

    # -------------------------------------------------------------------------
    # Private Methods - Response Parsing
    # -------------------------------------------------------------------------

    def _parse_character(self, data: dict[str, Any], character_id: str) -> Character:
        homeworld_url = data.get("homeworld")
        return Character(
            id=character_id,
            name=data.get("name", "Unknown"),
            height=parse_numeric(data.get("height")),
            mass=parse_numeric(data.get("mass")),
            hair_color=data.get("hair_color", "unknown"),
            skin_color=data.get("skin_color", "unknown"),
            eye_color=data.get("eye_color", "unknown"),
            birth_year=data.get("birth_year", "unknown"),
            gender=data.get("gender", "unknown"),
            homeworld_id=extract_planet_id(homeworld_url),
            homeworld_url=homeworld_url,
            films=list(data.get("films") or []),
            url=data.get("url"),
        )

    def _parse_planet(self, data: dict[str, Any], planet_id: str) -> Planet:
        return Planet(
            id=planet_id,
            name=data.get("name", "Unknown"),
            climate=parse_list(data.get("climate")),
            terrain=parse_list(data.get("terrain")),
            population=parse_numeric(data.get("population")),
            diameter=parse_numeric(data.get("diameter")),
            gravity=data.get("gravity"),
            url=data.get("url"),
        )
