"""Mock payloads for SWAPI and OpenWeatherMap calls.

These mocks allow testing without making real upstream calls.
"""

from typing import Any

# =============================================================================
# SWAPI People
# =============================================================================

LUKE_RESPONSE: dict[str, Any] = {
    "name": "Luke Skywalker",
    "height": "172",
    "mass": "77",
    "hair_color": "blond",
    "skin_color": "fair",
    "eye_color": "blue",
    "birth_year": "19BBY",
    "gender": "male",
    "homeworld": "https://swapi.dev/api/planets/1/",
    "films": [
        "https://swapi.dev/api/films/1/",
        "https://swapi.dev/api/films/2/",
    ],
    "url": "https://swapi.dev/api/people/1/",
}

JABBA_RESPONSE: dict[str, Any] = {
    "name": "Jabba Desilijic Tiure",
    "height": "175",
    "mass": "1,358",
    "hair_color": "n/a",
    "skin_color": "green-tan, brown",
    "eye_color": "orange",
    "birth_year": "600BBY",
    "gender": "hermaphrodite",
    "homeworld": "https://swapi.dev/api/planets/24/",
    "films": [],
    "url": "https://swapi.dev/api/people/16/",
}

UNKNOWN_MASS_RESPONSE: dict[str, Any] = {
    "name": "Arvel Crynyd",
    "height": "unknown",
    "mass": "unknown",
    "hair_color": "brown",
    "skin_color": "fair",
    "eye_color": "brown",
    "birth_year": "unknown",
    "gender": "male",
    "homeworld": "https://swapi.dev/api/planets/28/",
    "films": [],
    "url": "https://swapi.dev/api/people/29/",
}

# =============================================================================
# SWAPI Planets
# =============================================================================

TATOOINE_RESPONSE: dict[str, Any] = {
    "name": "Tatooine",
    "rotation_period": "23",
    "orbital_period": "304",
    "diameter": "10465",
    "climate": "arid",
    "gravity": "1 standard",
    "terrain": "desert",
    "surface_water": "1",
    "population": "200000",
    "url": "https://swapi.dev/api/planets/1/",
}

NABOO_RESPONSE: dict[str, Any] = {
    "name": "Naboo",
    "diameter": "12120",
    "climate": "temperate",
    "gravity": "1 standard",
    "terrain": "grassy hills, swamps, forests, mountains",
    "population": "4500000000",
    "url": "https://swapi.dev/api/planets/8/",
}

# =============================================================================
# OpenWeatherMap
# =============================================================================

TUCSON_WEATHER_RESPONSE: dict[str, Any] = {
    "coord": {"lon": -110.9265, "lat": 32.2217},
    "weather": [
        {"id": 800, "main": "Clear", "description": "clear sky", "icon": "01d"}
    ],
    "main": {
        "temp": 31.4,
        "feels_like": 29.8,
        "temp_min": 29.0,
        "temp_max": 33.0,
        "pressure": 1012,
        "humidity": 12,
    },
    "visibility": 10000,
    "wind": {"speed": 4.12, "deg": 220},
    "dt": 1700000000,
    "sys": {"country": "US"},
    "name": "Tucson",
}
