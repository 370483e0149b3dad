"""Tests for structlog configuration and request context binding."""

import json
import logging

import pytest
import structlog

from swapi_fusion.config import LogFormat, LogLevel, Settings
from swapi_fusion.core.logging import (
    bind_request_context,
    clear_request_context,
    configure_logging,
    get_logger,
    log_context,
)


@pytest.fixture(autouse=True)
def restore_logging():
    root = logging.getLogger()
    handlers, level = root.handlers[:], root.level
    yield
    root.handlers = handlers
    root.setLevel(level)
    structlog.reset_defaults()
    structlog.contextvars.clear_contextvars()


@pytest.fixture
def json_settings(test_settings: Settings) -> Settings:
    return test_settings.model_copy(
        update={"log_format": LogFormat.JSON, "app_name": "SWAPI Fusion Test"}
    )


def last_json_line(output: str) -> dict:
    return json.loads(output.strip().splitlines()[-1])


# =============================================================================
# Request Context Tests
# =============================================================================


class TestRequestContext:
    def test_bind_sets_request_id(self) -> None:
        bind_request_context("req-1", path="/fusion")

        assert structlog.contextvars.get_contextvars() == {
            "request_id": "req-1",
            "path": "/fusion",
        }

    def test_bind_replaces_previous_request(self) -> None:
        bind_request_context("req-1", path="/fusion")
        bind_request_context("req-2")

        assert structlog.contextvars.get_contextvars() == {"request_id": "req-2"}

    def test_clear(self) -> None:
        bind_request_context("req-1")

        clear_request_context()

        assert structlog.contextvars.get_contextvars() == {}

    def test_log_context_is_scoped(self) -> None:
        bind_request_context("req-1")

        with log_context(character_id="1"):
            assert structlog.contextvars.get_contextvars()["character_id"] == "1"

        assert structlog.contextvars.get_contextvars() == {"request_id": "req-1"}


# =============================================================================
# Output Tests
# =============================================================================


class TestJsonOutput:
    def test_structlog_line_carries_context_and_service(
        self, json_settings: Settings, capsys: pytest.CaptureFixture[str]
    ) -> None:
        configure_logging(json_settings)
        bind_request_context("req-42")

        get_logger("swapi_fusion.test").info("fusion_started", character_id="1")

        entry = last_json_line(capsys.readouterr().out)
        assert entry["event"] == "fusion_started"
        assert entry["level"] == "info"
        assert entry["request_id"] == "req-42"
        assert entry["character_id"] == "1"
        assert entry["service"] == "SWAPI Fusion Test"
        assert entry["env"] == "development"
        assert "timestamp" in entry

    def test_stdlib_records_share_the_handler(
        self, json_settings: Settings, capsys: pytest.CaptureFixture[str]
    ) -> None:
        configure_logging(json_settings)
        bind_request_context("req-7")

        logging.getLogger("uvicorn.error").warning("worker restarted")

        entry = last_json_line(capsys.readouterr().out)
        assert entry["event"] == "worker restarted"
        assert entry["level"] == "warning"
        assert entry["logger"] == "uvicorn.error"
        assert entry["request_id"] == "req-7"

    def test_below_threshold_is_dropped(
        self, json_settings: Settings, capsys: pytest.CaptureFixture[str]
    ) -> None:
        quiet = json_settings.model_copy(update={"log_level": LogLevel.WARNING})
        configure_logging(quiet)

        get_logger("swapi_fusion.test").info("quiet")

        assert capsys.readouterr().out == ""


class TestLibraryLevels:
    def test_sql_logging_follows_debug(self, test_settings: Settings) -> None:
        configure_logging(test_settings)
        assert logging.getLogger("sqlalchemy.engine").level == logging.WARNING

        configure_logging(test_settings.model_copy(update={"debug": True}))
        assert logging.getLogger("sqlalchemy.engine").level == logging.INFO

    def test_httpx_is_quieted(self, test_settings: Settings) -> None:
        configure_logging(test_settings)

        assert logging.getLogger("httpx").level == logging.WARNING
