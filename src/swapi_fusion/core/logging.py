"""structlog setup for SWAPI Fusion.

Both structlog loggers and plain stdlib loggers (uvicorn, httpx, SQLAlchemy)
end up in one stdout handler rendered as JSON lines or as coloured console
output, depending on ``Settings.log_format``.

Request scoped values live in structlog's context variables: the request
middleware binds ``request_id`` once and every log line written while the
request is handled carries it, including lines from services that never see
the request object.

Usage:
    from swapi_fusion.core.logging import configure_logging, get_logger

    configure_logging(settings)
    logger = get_logger(__name__)

    with log_context(character_id="1"):
        logger.info("fusion_started")
"""

import logging
import sys
from typing import Any

import structlog
from structlog.types import EventDict, Processor, WrappedLogger

from swapi_fusion.config import Settings

REQUEST_ID_KEY = "request_id"


# ========================================
# Request Context
# ========================================
def bind_request_context(request_id: str, **values: Any) -> None:
    """Bind the request id (and any extra values) for the current request."""
    structlog.contextvars.clear_contextvars()
    structlog.contextvars.bind_contextvars(**{REQUEST_ID_KEY: request_id}, **values)


def clear_request_context() -> None:
    structlog.contextvars.clear_contextvars()


def log_context(**kwargs: Any) -> structlog.contextvars.bound_contextvars:
    """Bind values to every log line written inside the block.

    Example:
        with log_context(character_id="1"):
            logger.info("fusion_started")  # carries character_id
    """
    return structlog.contextvars.bound_contextvars(**kwargs)


# ========================================
# Processors
# ========================================
class ServiceInfo:
    """Processor stamping service name, version and environment on entries."""

    def __init__(self, settings: Settings) -> None:
        self.fields = {
            "service": settings.app_name,
            "version": settings.app_version,
            "env": settings.app_env.value,
        }

    def __call__(
        self, logger: WrappedLogger, method_name: str, event_dict: EventDict
    ) -> EventDict:
        for key, value in self.fields.items():
            event_dict.setdefault(key, value)
        return event_dict


def _library_levels(settings: Settings) -> dict[str, int]:
    """Levels for third-party loggers; SQL echo follows the debug flag."""
    return {
        "uvicorn.access": logging.WARNING,
        "httpx": logging.WARNING,
        "httpcore": logging.WARNING,
        "sqlalchemy.engine": logging.INFO if settings.debug else logging.WARNING,
    }


def _renderer(settings: Settings) -> Processor:
    if settings.use_json_logs:
        return structlog.processors.JSONRenderer()
    return structlog.dev.ConsoleRenderer(colors=sys.stdout.isatty())


# ========================================
# Setup
# ========================================
def configure_logging(settings: Settings) -> None:
    """Route structlog and stdlib logging through a single stdout handler."""
    level = logging.getLevelName(settings.log_level.value)

    pre_chain: list[Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        ServiceInfo(settings),
        structlog.processors.TimeStamper(fmt="iso", utc=True),
    ]
    if settings.use_json_logs:
        pre_chain.append(structlog.processors.format_exc_info)

    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            *pre_chain,
            structlog.processors.StackInfoRenderer(),
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        wrapper_class=structlog.stdlib.BoundLogger,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(
        structlog.stdlib.ProcessorFormatter(
            foreign_pre_chain=pre_chain,
            processors=[
                structlog.stdlib.ProcessorFormatter.remove_processors_meta,
                _renderer(settings),
            ],
        )
    )

    root = logging.getLogger()
    root.handlers = [handler]
    root.setLevel(level)

    for name, library_level in _library_levels(settings).items():
        logging.getLogger(name).setLevel(library_level)


def get_logger(name: str | None = None) -> structlog.stdlib.BoundLogger:
    return structlog.get_logger(name)
