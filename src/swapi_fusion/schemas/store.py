"""Schemas for the /store endpoint."""

from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator

from swapi_fusion.schemas.common import BaseSchema


class StoreMetadata(BaseModel):
    """Optional client metadata; unknown keys are kept."""

    model_config = ConfigDict(extra="allow")

    description: str | None = None
    tags: list[str] | None = None
    category: str | None = None


class StoreRequest(BaseModel):
    """Body of POST /store."""

    data: Any = Field(..., description="Any JSON value to store")
    metadata: StoreMetadata | None = None

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "data": {"note": "Hoth was colder than expected"},
                "metadata": {"description": "Field report", "tags": ["hoth"]},
            }
        }
    )

    @field_validator("data")
    @classmethod
    def data_not_null(cls, value: Any) -> Any:
        if value is None:
            raise ValueError('Field "data" is required')
        return value


class StoredRecord(BaseSchema):
    """A custom record as returned after storing it."""

    id: str
    timestamp: int
    data: Any
    stored: bool = True
    size: int = Field(..., description="Serialized length of data")
