"""Common Pydantic schemas used across the API.

This module provides shared schemas for:
- The success envelope ({success, data, meta})
- Error responses (consistent error format)
- Health checks

Field names are snake_case in Python and camelCase on the wire.
"""

from datetime import UTC, datetime
from typing import Any, Generic, TypeVar

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

# Generic type for enveloped responses
T = TypeVar("T")


# =============================================================================
# Base Configuration
# =============================================================================


class BaseSchema(BaseModel):
    """Base schema with common configuration."""

    model_config = ConfigDict(
        from_attributes=True,
        populate_by_name=True,  # Allow both alias and field name
        alias_generator=to_camel,
    )


# =============================================================================
# Envelope Schemas
# =============================================================================


class ResponseMeta(BaseSchema):
    """Metadata attached to every response.

    Endpoint specific extras (characterId, processingTime, ...) are kept.
    """

    model_config = ConfigDict(extra="allow")

    timestamp: str = Field(..., description="Response time (ISO 8601, UTC)")
    request_id: str | None = Field(None, description="Request correlation ID")
    version: str = Field(..., description="Service version")
    cached: bool = Field(False, description="Whether data came from the cache")


class ApiResponse(BaseSchema, Generic[T]):
    """Standard success envelope."""

    success: bool = True
    data: T
    meta: ResponseMeta


# =============================================================================
# Error Schemas
# =============================================================================


class ErrorDetail(BaseModel):
    """Details of an error response.

    Attributes:
        code: Machine-readable error code (e.g., "VALIDATION_ERROR")
        message: Human-readable error description
        details: Additional error context (optional)
    """

    code: str = Field(..., description="Machine-readable error code")
    message: str = Field(..., description="Human-readable error description")
    details: dict[str, Any] | None = Field(None, description="Additional error context")

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "code": "VALIDATION_ERROR",
                "message": "Limit must be a positive integer",
                "details": {"field": "limit"},
            }
        }
    )


class ErrorResponse(BaseModel):
    """Standard error response wrapper.

    All API errors return this format for consistency.
    """

    success: bool = False
    error: ErrorDetail
    meta: dict[str, Any] | None = None

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "success": False,
                "error": {
                    "code": "CHARACTER_UNAVAILABLE",
                    "message": "Character 999 not found or unavailable",
                    "details": {"characterId": "999"},
                },
                "meta": {
                    "timestamp": "2024-01-01T12:00:00.000Z",
                    "requestId": "abc-123-def-456",
                    "version": "1.0.0",
                },
            }
        }
    )


# =============================================================================
# Health Check Schemas
# =============================================================================


class HealthResponse(BaseModel):
    """Readiness probe response."""

    status: str = Field(..., pattern="^(ok|degraded)$")
    checks: dict[str, str]


def build_meta(
    *,
    request_id: str | None,
    version: str,
    cached: bool = False,
    **extra: Any,
) -> ResponseMeta:
    """Build the meta block for a success envelope."""
    timestamp = datetime.now(UTC).isoformat(timespec="milliseconds")
    return ResponseMeta(
        timestamp=timestamp.replace("+00:00", "Z"),
        request_id=request_id,
        version=version,
        cached=cached,
        **extra,
    )
