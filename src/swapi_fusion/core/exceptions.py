"""Custom exception hierarchy for SWAPI Fusion.

This module defines a consistent exception hierarchy that enables:
- Structured error envelopes with machine-readable codes
- Consistent HTTP status code mapping
- Graceful degradation decisions at the service layer

Usage:
    from swapi_fusion.core.exceptions import CharacterUnavailableError

    raise CharacterUnavailableError(character_id="1")
"""

from datetime import UTC, datetime
from typing import Any


class FusionAPIError(Exception):
    """Base exception for all SWAPI Fusion errors.

    Attributes:
        code: Machine-readable error code (e.g., "VALIDATION_ERROR")
        message: Human-readable error message
        status_code: HTTP status code to return
        details: Additional error details (optional)
        headers: Extra response headers (optional)
    """

    code: str = "INTERNAL_ERROR"
    message: str = "An unexpected error occurred"
    status_code: int = 500

    def __init__(
        self,
        message: str | None = None,
        code: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        """Initialize the exception.

        Args:
            message: Override default message
            code: Override default error code
            details: Additional error details
        """
        if message:
            self.message = message
        if code:
            self.code = code
        self.details = details or {}
        self.headers: dict[str, str] = {}
        super().__init__(self.message)

    def to_dict(
        self, request_id: str | None = None, version: str | None = None
    ) -> dict[str, Any]:
        """Convert exception to the API error envelope.

        Args:
            request_id: Request correlation ID
            version: Service version echoed in meta

        Returns:
            Error response dictionary
        """
        error: dict[str, Any] = {
            "code": self.code,
            "message": self.message,
        }
        if self.details:
            error["details"] = self.details
        return {
            "success": False,
            "error": error,
            "meta": error_meta(request_id, version),
        }


def error_meta(request_id: str | None, version: str | None) -> dict[str, Any]:
    """Build the meta block attached to error envelopes."""
    meta: dict[str, Any] = {
        "timestamp": datetime.now(UTC).isoformat().replace("+00:00", "Z"),
        "requestId": request_id,
    }
    if version:
        meta["version"] = version
    return meta


# =============================================================================
# Validation Errors (400)
# =============================================================================


class ValidationError(FusionAPIError):
    """Raised when request validation fails."""

    code: str = "VALIDATION_ERROR"
    message: str = "Invalid request"
    status_code: int = 400

    def __init__(
        self,
        message: str | None = None,
        field: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        """Initialize with the offending field.

        Args:
            message: Error message
            field: Name of the field that failed validation
            details: Additional validation details
        """
        all_details = details or {}
        if field:
            all_details["field"] = field
        super().__init__(message=message, details=all_details or None)


class CharacterUnavailableError(FusionAPIError):
    """Raised when the character stage of the fusion pipeline fails."""

    code: str = "CHARACTER_UNAVAILABLE"
    message: str = "Character not found or unavailable"
    status_code: int = 400

    def __init__(self, character_id: str, reason: str | None = None) -> None:
        details: dict[str, Any] = {"characterId": character_id}
        if reason:
            details["reason"] = reason
        super().__init__(
            message=f"Character {character_id} not found or unavailable",
            details=details,
        )


# =============================================================================
# Infrastructure Errors (502/503)
# =============================================================================


class UpstreamUnavailableError(FusionAPIError):
    """Base class for failures of an external data provider.

    Provider clients raise subclasses of this error; the fusion pipeline
    decides whether the failure aborts the request or triggers a fallback.
    """

    code: str = "UPSTREAM_UNAVAILABLE"
    message: str = "Upstream service unavailable"
    status_code: int = 502

    def __init__(
        self,
        message: str | None = None,
        service: str | None = None,
        status_code: int | None = None,
    ) -> None:
        details: dict[str, Any] = {}
        if service:
            details["service"] = service
        if status_code is not None:
            details["upstreamStatus"] = status_code
        super().__init__(message=message, details=details or None)


class StoreUnavailableError(FusionAPIError):
    """Raised when the history or cache backend cannot be reached."""

    code: str = "STORE_UNAVAILABLE"
    message: str = "Storage backend unavailable"
    status_code: int = 503

    def __init__(self, message: str | None = None, store: str | None = None) -> None:
        details = {"store": store} if store else None
        super().__init__(message=message, details=details)


# =============================================================================
# Rate Limiting (429)
# =============================================================================


class RateLimitExceededError(FusionAPIError):
    """Raised when a client exhausts its request window."""

    code: str = "RATE_LIMIT_EXCEEDED"
    message: str = "Rate limit exceeded"
    status_code: int = 429

    def __init__(self, limit: int, window_minutes: int, retry_after: int) -> None:
        """Initialize with the limiter configuration.

        Args:
            limit: Maximum requests allowed per window
            window_minutes: Window length in minutes
            retry_after: Seconds until the current window resets
        """
        super().__init__(
            message=(
                f"Rate limit exceeded. Maximum {limit} requests allowed "
                f"per {window_minutes} minutes."
            ),
            details={
                "limit": limit,
                "windowMinutes": window_minutes,
                "retryAfter": retry_after,
            },
        )
        self.headers = {"Retry-After": str(retry_after)}
