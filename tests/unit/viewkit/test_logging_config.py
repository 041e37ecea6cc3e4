"""Tests for logging configuration."""

import json
import logging

import pytest

from viewkit.logging_config import get_logger, log_with_context, setup_logging


@pytest.fixture(autouse=True)
def restore_root_logger():
    root = logging.getLogger()
    handlers, level = list(root.handlers), root.level
    yield
    for handler in root.handlers:
        handler.close()
    root.handlers[:] = handlers
    root.setLevel(level)


def test_setup_logging_console_only():
    root = setup_logging("warning")

    assert root.level == logging.WARNING
    assert len(root.handlers) == 1


def test_setup_logging_writes_json(tmp_path):
    root = setup_logging("DEBUG", tmp_path / "logs")
    logger = get_logger("viewkit.test")

    log_with_context(logger, "info", "Template resolved", location="views/posts/index.html", event_type="test_event")
    for handler in root.handlers:
        handler.flush()

    record = json.loads((tmp_path / "logs" / "viewkit.log").read_text(encoding="utf-8").splitlines()[-1])
    assert record["message"] == "Template resolved"
    assert record["location"] == "views/posts/index.html"
    assert record["event_type"] == "test_event"
