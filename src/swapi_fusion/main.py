"""FastAPI application factory for SWAPI Fusion.

This module creates and configures the FastAPI application with:
- Lifespan management for startup/shutdown events
- Middleware configuration (CORS, security headers, request ID, logging)
- Exception handlers mapping errors to the response envelope
- API routers
"""

import time
import uuid
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from typing import Any

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from redis.asyncio import Redis
from starlette.responses import Response

from swapi_fusion.config import Settings, get_settings
from swapi_fusion.core.exceptions import FusionAPIError, error_meta
from swapi_fusion.core.logging import (
    bind_request_context,
    clear_request_context,
    configure_logging,
    get_logger,
)
from swapi_fusion.schemas.common import HealthResponse
from swapi_fusion.services.cache import get_cache_service, set_redis_client

# Initialize logger for this module
logger = get_logger(__name__)

SECURITY_HEADERS = {
    "X-Content-Type-Options": "nosniff",
    "X-Frame-Options": "DENY",
    "X-XSS-Protection": "1; mode=block",
}


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Manage application lifespan events.

    Handles initialization and cleanup of:
    - Logging configuration
    - Database engine (history store)
    - Redis connection (cache store and rate limit counters)

    Args:
        app: The FastAPI application instance

    Yields:
        None: Control back to the application
    """
    from swapi_fusion.core.database import close_db, create_tables, init_db

    settings: Settings = app.state.settings

    # ========================================
    # Startup
    # ========================================
    configure_logging(settings)
    startup_logger = get_logger(__name__)

    await init_db(settings)
    if settings.database_create_tables:
        await create_tables()

    redis = Redis.from_url(settings.redis_url, decode_responses=True)
    set_redis_client(redis)

    startup_logger.info(
        "Application starting",
        app_name=settings.app_name,
        version=settings.app_version,
        environment=settings.app_env.value,
        debug=settings.debug,
        weather_api_configured=settings.has_weather_credentials,
    )

    yield

    # ========================================
    # Shutdown
    # ========================================
    set_redis_client(None)
    await redis.aclose()
    await close_db()

    startup_logger.info("Application shutting down", app_name=settings.app_name)


def create_app(settings: Settings | None = None) -> FastAPI:
    """Create and configure the FastAPI application.

    Args:
        settings: Optional settings override for testing

    Returns:
        FastAPI: Configured application instance
    """
    if settings is None:
        settings = get_settings()

    app = FastAPI(
        title=settings.app_name,
        description=(
            "Fuses Star Wars characters from SWAPI with the current weather "
            "of a real-world location standing in for their homeworld."
        ),
        version=settings.app_version,
        docs_url="/docs",
        redoc_url=None,
        openapi_url="/docs/swagger.json",
        lifespan=lifespan,
    )
    app.state.settings = settings

    configure_middleware(app, settings)
    configure_exception_handlers(app, settings)
    configure_routes(app, settings)

    return app


def internal_error_response(
    request: Request, exc: Exception, settings: Settings
) -> JSONResponse:
    """Build the generic 500 envelope, with diagnostics outside production."""
    request_id = getattr(request.state, "request_id", None)
    error: dict[str, Any] = {
        "code": "INTERNAL_ERROR",
        "message": "An unexpected error occurred",
    }
    if not settings.is_production:
        error["details"] = {"type": type(exc).__name__, "message": str(exc)}
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={
            "success": False,
            "error": error,
            "meta": error_meta(request_id, settings.app_version),
        },
    )


def configure_middleware(app: FastAPI, settings: Settings) -> None:
    """Configure application middleware.

    Args:
        app: The FastAPI application instance
        settings: Application settings
    """
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=False,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.middleware("http")
    async def request_context_middleware(request: Request, call_next: Any) -> Response:
        """Bind the request ID, log the request and attach response headers."""
        request_id = request.headers.get("X-Request-ID") or str(uuid.uuid4())
        request.state.request_id = request_id
        bind_request_context(request_id, path=request.url.path)

        request_logger = get_logger("swapi_fusion.request")
        start_time = time.perf_counter()

        request_logger.info(
            "Request started",
            method=request.method,
            path=request.url.path,
            query=str(request.query_params) if request.query_params else None,
        )

        try:
            response = await call_next(request)
            duration_ms = (time.perf_counter() - start_time) * 1000
            request_logger.info(
                "Request completed",
                method=request.method,
                path=request.url.path,
                status_code=response.status_code,
                duration_ms=round(duration_ms, 2),
            )
        except Exception as exc:
            duration_ms = (time.perf_counter() - start_time) * 1000
            request_logger.exception(
                "Request failed",
                method=request.method,
                path=request.url.path,
                duration_ms=round(duration_ms, 2),
                error_type=type(exc).__name__,
                error=str(exc),
            )
            response = internal_error_response(request, exc, settings)
        finally:
            clear_request_context()

        response.headers["X-Request-ID"] = request_id
        for header, value in SECURITY_HEADERS.items():
            response.headers[header] = value
        return response


def configure_exception_handlers(app: FastAPI, settings: Settings) -> None:
    """Configure global exception handlers.

    Args:
        app: The FastAPI application instance
        settings: Application settings
    """
    exception_logger = get_logger("swapi_fusion.exceptions")

    @app.exception_handler(FusionAPIError)
    async def fusion_exception_handler(
        request: Request, exc: FusionAPIError
    ) -> JSONResponse:
        """Handle application exceptions with the error envelope."""
        request_id = getattr(request.state, "request_id", None)

        if exc.status_code >= 500:
            exception_logger.error(
                "Application error",
                error_code=exc.code,
                error_message=exc.message,
                status_code=exc.status_code,
                path=request.url.path,
            )
        else:
            exception_logger.warning(
                "Client error",
                error_code=exc.code,
                error_message=exc.message,
                status_code=exc.status_code,
                path=request.url.path,
            )

        return JSONResponse(
            status_code=exc.status_code,
            content=exc.to_dict(request_id=request_id, version=settings.app_version),
            headers=exc.headers or None,
        )

    @app.exception_handler(RequestValidationError)
    async def request_validation_handler(
        request: Request, exc: RequestValidationError
    ) -> JSONResponse:
        """Convert FastAPI request validation errors to a 400 envelope."""
        request_id = getattr(request.state, "request_id", None)
        message, field = describe_validation_error(exc.errors())

        exception_logger.warning(
            "Request validation failed",
            path=request.url.path,
            field=field,
            error_message=message,
        )

        details: dict[str, Any] = {"field": field} if field else {}
        error: dict[str, Any] = {"code": "VALIDATION_ERROR", "message": message}
        if details:
            error["details"] = details
        return JSONResponse(
            status_code=status.HTTP_400_BAD_REQUEST,
            content={
                "success": False,
                "error": error,
                "meta": error_meta(request_id, settings.app_version),
            },
        )

    @app.exception_handler(Exception)
    async def global_exception_handler(
        request: Request, exc: Exception
    ) -> JSONResponse:
        """Handle unexpected exceptions with a consistent error response."""
        exception_logger.exception(
            "Unhandled exception",
            error_type=type(exc).__name__,
            error_message=str(exc),
            path=request.url.path,
        )
        return internal_error_response(request, exc, settings)


def describe_validation_error(errors: Any) -> tuple[str, str | None]:
    """Turn the first pydantic error into a message naming the field."""
    errors = list(errors)
    if not errors:
        return "Invalid request", None

    first = errors[0]
    error_type = first.get("type", "")
    loc = [str(part) for part in first.get("loc", ())]
    field = loc[-1] if len(loc) > 1 else None

    if error_type == "json_invalid":
        return "Invalid JSON format in request body", "body"
    if loc == ["body"]:
        if error_type == "missing":
            return "Request body is required", "body"
        return "Request body must be a JSON object", "body"
    if error_type == "missing":
        return f'Field "{field}" is required', field

    message = str(first.get("msg", "Invalid request"))
    return message.removeprefix("Value error, "), field


def configure_routes(app: FastAPI, settings: Settings) -> None:
    """Configure application routes.

    Args:
        app: The FastAPI application instance
        settings: Application settings
    """

    @app.get(
        "/health/live",
        tags=["Health"],
        summary="Liveness probe",
        description="Returns OK if the service is running",
    )
    async def liveness() -> dict[str, str]:
        """Liveness probe for container orchestration."""
        return {"status": "ok"}

    @app.get(
        "/health/ready",
        tags=["Health"],
        summary="Readiness probe",
        description="Returns OK if the history database and Redis are reachable",
        response_model=HealthResponse,
        responses={503: {"model": HealthResponse, "description": "Not ready"}},
    )
    async def readiness() -> JSONResponse:
        """Readiness probe checking dependent services."""
        from swapi_fusion.core.database import check_db_connection

        db_ok = await check_db_connection()
        try:
            redis_ok = await get_cache_service().ping()
        except RuntimeError:
            redis_ok = False

        ready = db_ok and redis_ok
        return JSONResponse(
            status_code=status.HTTP_200_OK
            if ready
            else status.HTTP_503_SERVICE_UNAVAILABLE,
            content={
                "status": "ok" if ready else "degraded",
                "checks": {
                    "database": "ok" if db_ok else "error",
                    "redis": "ok" if redis_ok else "error",
                },
            },
        )

    @app.get(
        "/",
        tags=["Root"],
        summary="API root",
        description="Returns API information",
    )
    async def root() -> dict[str, Any]:
        """API root endpoint with service information."""
        return {
            "service": settings.app_name,
            "version": settings.app_version,
            "docs": "/docs",
            "health": "/health/live",
            "endpoints": ["/fusion", "/store", "/history"],
        }

    from swapi_fusion.api.v1.router import router as v1_router

    app.include_router(v1_router, prefix=settings.api_prefix)


# Create the application instance
app = create_app()


def cli() -> None:
    """CLI entry point for running the application."""
    import uvicorn

    settings = get_settings()
    uvicorn.run(
        "swapi_fusion.main:app",
        host=settings.host,
        port=settings.port,
        reload=settings.is_development,
        log_level=settings.log_level.value.lower(),
    )


if __name__ == "__main__":
    cli()
