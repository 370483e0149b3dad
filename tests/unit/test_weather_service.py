"""Tests for WeatherService."""

import random

import httpx
import pytest
from pydantic import SecretStr

from swapi_fusion.config import Settings
from swapi_fusion.services.weather import (
    DEFAULT_LOCATION,
    SIMULATED_CONDITIONS,
    SOURCE_LIVE,
    SOURCE_SIMULATED,
    WeatherService,
    WeatherServiceError,
    map_planet_to_location,
)
from tests.mocks.upstream_responses import TUCSON_WEATHER_RESPONSE


@pytest.fixture
def live_settings(test_settings: Settings) -> Settings:
    return test_settings.model_copy(
        update={"openweather_api_key": SecretStr("test-key")}
    )


def make_service(settings: Settings, handler, seed: int = 1) -> WeatherService:
    client = httpx.AsyncClient(
        transport=httpx.MockTransport(handler),
        base_url=settings.openweather_base_url,
    )
    return WeatherService(settings, rng=random.Random(seed), client=client)


# =============================================================================
# Location Mapping Tests
# =============================================================================


class TestLocationMapping:
    @pytest.mark.parametrize(
        ("planet", "location"),
        [
            ("Tatooine", "Tucson,US"),
            ("Alderaan", "Geneva,CH"),
            ("Yavin IV", "Manaus,BR"),
            ("Hoth", "Anchorage,US"),
            ("Dagobah", "New Orleans,US"),
            ("Bespin", "Denver,US"),
            ("Endor", "Vancouver,CA"),
            ("Naboo", "Rome,IT"),
            ("Coruscant", "New York,US"),
            ("Kamino", "Reykjavik,IS"),
        ],
    )
    def test_known_planets(self, planet: str, location: str) -> None:
        assert map_planet_to_location(planet) == location

    def test_unmapped_planet_uses_default(self) -> None:
        assert map_planet_to_location("Kashyyyk") == DEFAULT_LOCATION
        assert map_planet_to_location("Unknown") == "London,UK"


# =============================================================================
# Live Weather Tests
# =============================================================================


class TestGetCurrentWeather:
    @pytest.mark.asyncio
    async def test_missing_api_key_raises(self, test_settings: Settings) -> None:
        calls = []

        def handler(request: httpx.Request) -> httpx.Response:
            calls.append(request)
            return httpx.Response(200, json=TUCSON_WEATHER_RESPONSE)

        service = make_service(test_settings, handler)

        with pytest.raises(WeatherServiceError):
            await service.get_current_weather("Tucson,US")
        assert calls == []

    @pytest.mark.asyncio
    async def test_normalizes_response(self, live_settings: Settings) -> None:
        seen: dict[str, str] = {}

        def handler(request: httpx.Request) -> httpx.Response:
            seen.update(request.url.params)
            return httpx.Response(200, json=TUCSON_WEATHER_RESPONSE)

        service = make_service(live_settings, handler)

        weather = await service.get_current_weather("Tucson,US")

        assert seen == {"q": "Tucson,US", "appid": "test-key", "units": "metric"}
        assert weather.location == "Tucson"
        assert weather.country == "US"
        assert weather.temperature == 31
        assert weather.feels_like == 30
        assert weather.humidity == 12
        assert weather.wind_speed == 15  # 4.12 m/s in km/h, rounded
        assert weather.wind_direction == 220
        assert weather.condition_main == "Clear"
        assert weather.condition_description == "clear sky"
        assert weather.source == SOURCE_LIVE
        assert weather.is_fallback is False

    @pytest.mark.asyncio
    async def test_http_error_raises(self, live_settings: Settings) -> None:
        service = make_service(live_settings, lambda request: httpx.Response(401))

        with pytest.raises(WeatherServiceError) as exc_info:
            await service.get_current_weather("Tucson,US")

        assert exc_info.value.details["upstreamStatus"] == 401

    @pytest.mark.asyncio
    async def test_timeout_raises(self, live_settings: Settings) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ReadTimeout("timed out", request=request)

        service = make_service(live_settings, handler)

        with pytest.raises(WeatherServiceError):
            await service.get_current_weather("Tucson,US")

    @pytest.mark.asyncio
    async def test_unexpected_payload_raises(self, live_settings: Settings) -> None:
        service = make_service(
            live_settings, lambda request: httpx.Response(200, json={"cod": 200})
        )

        with pytest.raises(WeatherServiceError):
            await service.get_current_weather("Tucson,US")


# =============================================================================
# Simulated Weather Tests
# =============================================================================


class TestSimulate:
    def test_simulated_weather_is_tagged(self, test_settings: Settings) -> None:
        service = WeatherService(test_settings, rng=random.Random(7))

        weather = service.simulate("Hoth", reason="no key")

        assert weather.is_fallback is True
        assert weather.source == SOURCE_SIMULATED
        assert weather.location == "Hoth"
        assert weather.country == "Galaxy Far Far Away"
        assert weather.fallback_reason == "no key"
        assert weather.condition_description == "Simulated weather conditions"

    def test_simulated_ranges(self, test_settings: Settings) -> None:
        service = WeatherService(test_settings, rng=random.Random(123))

        for _ in range(200):
            weather = service.simulate("Tatooine")
            assert -10 <= weather.temperature <= 30
            assert 0 <= weather.humidity <= 100
            assert 1000 <= weather.pressure <= 1050
            assert 0 <= weather.visibility <= 10000
            assert 0 <= weather.wind_speed <= 20
            assert 0 <= weather.wind_direction <= 360
            assert weather.condition_main in SIMULATED_CONDITIONS

    def test_same_seed_same_weather(self, test_settings: Settings) -> None:
        first = WeatherService(test_settings, rng=random.Random(99)).simulate("Endor")
        second = WeatherService(test_settings, rng=random.Random(99)).simulate("Endor")

        assert first.temperature == second.temperature
        assert first.humidity == second.humidity
        assert first.condition_main == second.condition_main

    def test_seed_from_settings(self, test_settings: Settings) -> None:
        first = WeatherService(test_settings).simulate("Endor")
        second = WeatherService(test_settings).simulate("Endor")

        assert first.temperature == second.temperature
        assert first.wind_speed == second.wind_speed
