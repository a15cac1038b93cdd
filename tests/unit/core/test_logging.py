"""Tests for structlog configuration."""

import json
import logging
from collections.abc import Iterator

import pytest
import structlog

from core.config import LoggingConfig
from core.logging import configure_logging


@pytest.fixture(autouse=True)
def restore_logging() -> Iterator[None]:
    root = logging.getLogger()
    handlers, level = root.handlers[:], root.level
    yield
    structlog.reset_defaults()
    root.handlers[:] = handlers
    root.setLevel(level)


def test_json_format_emits_one_object_per_event(capsys: pytest.CaptureFixture[str]) -> None:
    configure_logging(LoggingConfig(level="INFO", format="json"))

    structlog.get_logger("health.test").info("record_saved", record_id="r-1", synced=False)

    line = capsys.readouterr().out.strip().splitlines()[-1]
    event = json.loads(line)
    assert event["event"] == "record_saved"
    assert event["record_id"] == "r-1"
    assert event["level"] == "info"
    assert event["logger"] == "health.test"
    assert "timestamp" in event


def test_level_filter_drops_debug(capsys: pytest.CaptureFixture[str]) -> None:
    configure_logging(LoggingConfig(level="WARNING", format="json"))

    structlog.get_logger("health.test").debug("draft_written")

    assert capsys.readouterr().out == ""
