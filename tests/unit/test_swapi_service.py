"""Tests for SwapiService.

Upstream HTTP is stubbed with httpx.MockTransport.
"""

import httpx
import pytest

from swapi_fusion.config import Settings
from swapi_fusion.services.swapi import (
    Planet,
    SwapiError,
    SwapiNotFoundError,
    SwapiService,
    extract_planet_id,
    parse_list,
    parse_numeric,
)
from tests.mocks.upstream_responses import (
    JABBA_RESPONSE,
    LUKE_RESPONSE,
    NABOO_RESPONSE,
    TATOOINE_RESPONSE,
    UNKNOWN_MASS_RESPONSE,
)

# =============================================================================
# Helpers
# =============================================================================


def make_service(settings: Settings, handler) -> SwapiService:
    client = httpx.AsyncClient(
        transport=httpx.MockTransport(handler),
        base_url=settings.swapi_base_url,
    )
    return SwapiService(settings, client=client)


def routes(mapping: dict[str, dict]):
    def handler(request: httpx.Request) -> httpx.Response:
        for suffix, payload in mapping.items():
            if request.url.path.endswith(suffix):
                return httpx.Response(200, json=payload)
        return httpx.Response(404, json={"detail": "Not found"})

    return handler


# =============================================================================
# Normalization Helper Tests
# =============================================================================


class TestParseNumeric:
    def test_integer_string(self) -> None:
        assert parse_numeric("172") == 172

    def test_thousands_separator(self) -> None:
        assert parse_numeric("1,358") == 1358

    def test_decimal(self) -> None:
        assert parse_numeric("77.5") == 77.5

    @pytest.mark.parametrize("value", ["unknown", "n/a", "UNKNOWN", "", None])
    def test_unknown_values(self, value) -> None:
        assert parse_numeric(value) is None

    def test_garbage(self) -> None:
        assert parse_numeric("tall") is None


class TestParseHelpers:
    def test_parse_list_preserves_order(self) -> None:
        assert parse_list("temperate, tropical") == ["temperate", "tropical"]

    def test_parse_list_empty(self) -> None:
        assert parse_list("") == []

    def test_extract_planet_id(self) -> None:
        assert extract_planet_id("https://swapi.dev/api/planets/24/") == "24"

    def test_extract_planet_id_defaults_to_one(self) -> None:
        assert extract_planet_id(None) == "1"
        assert extract_planet_id("https://swapi.dev/api/people/1/") == "1"

    def test_unknown_planet_sentinel(self) -> None:
        planet = Planet.unknown("7")
        assert planet.id == "7"
        assert planet.name == "Unknown"
        assert planet.climate_text == "Unknown"
        assert planet.terrain_text == "Unknown"


# =============================================================================
# Fetch Tests
# =============================================================================


class TestGetCharacter:
    @pytest.mark.asyncio
    async def test_normalizes_character(self, test_settings: Settings) -> None:
        service = make_service(test_settings, routes({"/people/1/": LUKE_RESPONSE}))

        character = await service.get_character("1")

        assert character.id == "1"
        assert character.name == "Luke Skywalker"
        assert character.height == 172
        assert character.mass == 77
        assert character.hair_color == "blond"
        assert character.homeworld_id == "1"
        assert character.homeworld_url == "https://swapi.dev/api/planets/1/"
        assert len(character.films) == 2
        await service.close()

    @pytest.mark.asyncio
    async def test_numeric_normalization(self, test_settings: Settings) -> None:
        service = make_service(
            test_settings,
            routes({"/people/16/": JABBA_RESPONSE, "/people/29/": UNKNOWN_MASS_RESPONSE}),
        )

        jabba = await service.get_character("16")
        arvel = await service.get_character("29")

        assert jabba.mass == 1358
        assert jabba.homeworld_id == "24"
        assert arvel.mass is None
        assert arvel.height is None

    @pytest.mark.asyncio
    async def test_not_found(self, test_settings: Settings) -> None:
        service = make_service(test_settings, routes({}))

        with pytest.raises(SwapiNotFoundError):
            await service.get_character("999")

    @pytest.mark.asyncio
    async def test_server_error(self, test_settings: Settings) -> None:
        service = make_service(test_settings, lambda request: httpx.Response(503))

        with pytest.raises(SwapiError) as exc_info:
            await service.get_character("1")

        assert not isinstance(exc_info.value, SwapiNotFoundError)
        assert exc_info.value.details["upstreamStatus"] == 503

    @pytest.mark.asyncio
    async def test_transport_error(self, test_settings: Settings) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectTimeout("timed out", request=request)

        service = make_service(test_settings, handler)

        with pytest.raises(SwapiError):
            await service.get_character("1")

    @pytest.mark.asyncio
    async def test_invalid_json(self, test_settings: Settings) -> None:
        service = make_service(
            test_settings, lambda request: httpx.Response(200, text="<html>")
        )

        with pytest.raises(SwapiError):
            await service.get_character("1")


class TestGetPlanet:
    @pytest.mark.asyncio
    async def test_normalizes_planet(self, test_settings: Settings) -> None:
        service = make_service(test_settings, routes({"/planets/1/": TATOOINE_RESPONSE}))

        planet = await service.get_planet("1")

        assert planet.name == "Tatooine"
        assert planet.climate == ["arid"]
        assert planet.terrain == ["desert"]
        assert planet.population == 200000
        assert planet.diameter == 10465

    @pytest.mark.asyncio
    async def test_multi_term_terrain(self, test_settings: Settings) -> None:
        service = make_service(test_settings, routes({"/planets/8/": NABOO_RESPONSE}))

        planet = await service.get_planet("8")

        assert planet.terrain == ["grassy hills", "swamps", "forests", "mountains"]
        assert planet.terrain_text == "grassy hills, swamps, forests, mountains"
