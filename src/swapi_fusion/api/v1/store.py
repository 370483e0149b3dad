"""Custom storage endpoint."""

from typing import Annotated

from fastapi import APIRouter, Depends, Request, status

from swapi_fusion.core.logging import get_logger
from swapi_fusion.dependencies import (
    SettingsDep,
    enforce_rate_limit,
    get_history_service,
)
from swapi_fusion.schemas.common import ApiResponse, ErrorResponse, build_meta
from swapi_fusion.schemas.store import StoredRecord, StoreRequest
from swapi_fusion.services.history import HistoryService
from swapi_fusion.services.rate_limiter import client_ip_from_request

logger = get_logger(__name__)

router = APIRouter(dependencies=[Depends(enforce_rate_limit)])


@router.post(
    "/store",
    response_model=ApiResponse[StoredRecord],
    status_code=status.HTTP_201_CREATED,
    summary="Store a custom payload",
    description=(
        "Stores any JSON value (serialized length up to 1000 characters) "
        "in the history log. Custom records never expire."
    ),
    responses={
        400: {"model": ErrorResponse, "description": "Missing, invalid or oversized data"},
        429: {"model": ErrorResponse, "description": "Rate limit exceeded"},
        503: {"model": ErrorResponse, "description": "History store unavailable"},
    },
)
async def store_custom_data(
    request: Request,
    body: StoreRequest,
    settings: SettingsDep,
    history: Annotated[HistoryService, Depends(get_history_service)],
) -> ApiResponse[StoredRecord]:
    """Persist the payload and echo the stored record."""
    request_id = getattr(request.state, "request_id", None)
    logger.info("store_request", has_metadata=body.metadata is not None)

    stored = await history.store_custom(
        body.data,
        client_metadata=body.metadata.model_dump(exclude_none=True)
        if body.metadata
        else None,
        request_id=request_id,
        user_agent=request.headers.get("user-agent"),
        client_ip=client_ip_from_request(request),
    )

    return ApiResponse[StoredRecord](
        data=stored,
        meta=build_meta(
            request_id=request_id,
            version=settings.app_version,
            source="custom_storage",
        ),
    )
