"""History endpoint.

Pages through stored fusion results and custom records.
"""

from typing import Annotated

from fastapi import APIRouter, Depends, Query, Request, status

from swapi_fusion.core.logging import get_logger
from swapi_fusion.dependencies import (
    SettingsDep,
    enforce_rate_limit,
    get_history_service,
)
from swapi_fusion.schemas.common import ApiResponse, ErrorResponse, build_meta
from swapi_fusion.schemas.history import HistoryPage
from swapi_fusion.services.history import HistoryService

logger = get_logger(__name__)

router = APIRouter(dependencies=[Depends(enforce_rate_limit)])


@router.get(
    "/history",
    response_model=ApiResponse[HistoryPage],
    status_code=status.HTTP_200_OK,
    summary="List stored fusions and custom records",
    description=(
        "Returns history records filtered by source and time range. Pass the "
        "returned nextCursor back as cursor to fetch the next page."
    ),
    responses={
        400: {"model": ErrorResponse, "description": "Invalid query parameters"},
        429: {"model": ErrorResponse, "description": "Rate limit exceeded"},
        503: {"model": ErrorResponse, "description": "History store unavailable"},
    },
)
async def get_history(
    request: Request,
    settings: SettingsDep,
    history: Annotated[HistoryService, Depends(get_history_service)],
    source: Annotated[
        str | None, Query(description="fusion, custom or all (default all)")
    ] = None,
    limit: Annotated[
        str | None, Query(description="Items per page (default 10, max 100)")
    ] = None,
    cursor: Annotated[
        str | None, Query(description="Cursor returned by the previous page")
    ] = None,
    last_evaluated_key: Annotated[
        str | None,
        Query(alias="lastEvaluatedKey", description="Alias of cursor"),
    ] = None,
    start_time: Annotated[
        str | None, Query(alias="startTime", description="Epoch milliseconds")
    ] = None,
    end_time: Annotated[
        str | None, Query(alias="endTime", description="Epoch milliseconds")
    ] = None,
) -> ApiResponse[HistoryPage]:
    """Return one page of history."""
    request_id = getattr(request.state, "request_id", None)

    query = history.build_query(
        source=source,
        limit=limit,
        start_time=start_time,
        end_time=end_time,
        cursor=cursor or last_evaluated_key,
    )
    logger.info(
        "history_request",
        source=query.source,
        limit=query.limit,
        has_cursor=query.after is not None,
    )

    page = await history.query(query)

    return ApiResponse[HistoryPage](
        data=page,
        meta=build_meta(
            request_id=request_id,
            version=settings.app_version,
            count=page["pagination"]["count"],
            source=query.source,
            filtered=bool(
                query.start_time is not None
                or query.end_time is not None
                or query.source != "all"
            ),
        ),
    )
