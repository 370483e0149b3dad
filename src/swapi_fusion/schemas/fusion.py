"""Schemas for the /fusion endpoint."""

from pydantic import ConfigDict, Field

from swapi_fusion.schemas.common import BaseSchema

Number = int | float


class FusionCharacter(BaseSchema):
    id: str
    name: str
    height: Number | None = None
    mass: Number | None = None
    hair_color: str
    eye_color: str
    birth_year: str
    gender: str
    homeworld_id: str


class FusionHomeworld(BaseSchema):
    id: str
    name: str
    climate: str
    terrain: str
    population: Number | None = None


class FusionWeather(BaseSchema):
    location: str
    country: str
    temperature: Number
    feels_like: Number
    humidity: Number
    pressure: Number
    visibility: Number
    wind_speed: Number = Field(..., description="Wind speed in km/h")
    wind_direction: Number
    conditions: str
    source: str = Field(..., description="OPENWEATHERMAP or SIMULATED")
    is_fallback: bool


class DataQualityTags(BaseSchema):
    character: str
    planet: str = Field(..., description="complete or partial")
    weather: str = Field(..., description="complete or fallback")


class FusionSummary(BaseSchema):
    summary: str
    compatibility: str = Field(
        ...,
        description="perfect match, good match, fair match, poor match or unknown",
    )
    data_quality: DataQualityTags


class ProcessingTime(BaseSchema):
    character: int
    planet: int
    weather: int


class FusionMeta(BaseSchema):
    source: str
    request_id: str | None = None
    version: str
    processing_time: ProcessingTime


class FusionResult(BaseSchema):
    """Character, homeworld and weather merged for one character id."""

    character: FusionCharacter
    homeworld: FusionHomeworld
    weather: FusionWeather
    fusion: FusionSummary
    meta: FusionMeta

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "character": {
                    "id": "1",
                    "name": "Luke Skywalker",
                    "height": 172,
                    "mass": 77,
                    "hairColor": "blond",
                    "eyeColor": "blue",
                    "birthYear": "19BBY",
                    "gender": "male",
                    "homeworldId": "1",
                },
                "homeworld": {
                    "id": "1",
                    "name": "Tatooine",
                    "climate": "arid",
                    "terrain": "desert",
                    "population": 200000,
                },
                "weather": {
                    "location": "Tucson",
                    "country": "US",
                    "temperature": 31,
                    "feelsLike": 30,
                    "humidity": 12,
                    "pressure": 1012,
                    "visibility": 10000,
                    "windSpeed": 14,
                    "windDirection": 220,
                    "conditions": "clear sky",
                    "source": "OPENWEATHERMAP",
                    "isFallback": False,
                },
                "fusion": {
                    "summary": "Luke Skywalker from Tatooine - Currently clear sky",
                    "compatibility": "fair match",
                    "dataQuality": {
                        "character": "complete",
                        "planet": "complete",
                        "weather": "complete",
                    },
                },
                "meta": {
                    "source": "SWAPI + OpenWeatherMap",
                    "requestId": "abc-123",
                    "version": "1.0.0",
                    "processingTime": {"character": 120, "planet": 95, "weather": 80},
                },
            }
        }
    )
