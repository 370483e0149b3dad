"""Fusion endpoint.

Merges a SWAPI character with its homeworld and the current weather of the
homeworld's real-world stand-in location.
"""

import re
from typing import Annotated

from fastapi import APIRouter, Depends, Query, Request, status

from swapi_fusion.core.exceptions import ValidationError
from swapi_fusion.core.logging import get_logger, log_context
from swapi_fusion.dependencies import (
    SettingsDep,
    enforce_rate_limit,
    get_fusion_service,
)
from swapi_fusion.schemas.common import ApiResponse, ErrorResponse, build_meta
from swapi_fusion.schemas.fusion import FusionResult
from swapi_fusion.services.fusion import FusionService

logger = get_logger(__name__)

router = APIRouter(dependencies=[Depends(enforce_rate_limit)])

DEFAULT_CHARACTER_ID = "1"
_CHARACTER_ID_PATTERN = re.compile(r"^[1-9][0-9]*$")


@router.get(
    "/fusion",
    response_model=ApiResponse[FusionResult],
    status_code=status.HTTP_200_OK,
    summary="Fuse a character with live weather",
    description=(
        "Fetches a SWAPI character and its homeworld, looks up the current "
        "weather of a real-world location standing in for the homeworld and "
        "merges everything. Results are cached for 30 minutes."
    ),
    responses={
        400: {"model": ErrorResponse, "description": "Invalid or unavailable character"},
        429: {"model": ErrorResponse, "description": "Rate limit exceeded"},
        500: {"model": ErrorResponse, "description": "Unexpected error"},
    },
)
async def get_fusion(
    request: Request,
    settings: SettingsDep,
    fusion: Annotated[FusionService, Depends(get_fusion_service)],
    character: Annotated[
        str | None, Query(description="SWAPI character id (default 1)")
    ] = None,
) -> ApiResponse[FusionResult]:
    """Return the fusion result for a character id."""
    character_id = (character or DEFAULT_CHARACTER_ID).strip()
    if not _CHARACTER_ID_PATTERN.match(character_id):
        raise ValidationError(
            "Character id must be a positive integer", field="character"
        )

    request_id = getattr(request.state, "request_id", None)
    with log_context(character_id=character_id):
        logger.info("fusion_request")
        outcome = await fusion.fuse(character_id, request_id=request_id)
        logger.info(
            "fusion_success",
            cached=outcome.cached,
            processing_time_ms=outcome.processing_time_ms,
        )
    return ApiResponse[FusionResult](
        data=outcome.data,
        meta=build_meta(
            request_id=request_id,
            version=settings.app_version,
            cached=outcome.cached,
            characterId=character_id,
            processingTime=outcome.processing_time_ms,
            stored=outcome.stored,
        ),
    )
