"""Unit tests for structured JSON logging."""

from __future__ import annotations

import json
import logging
import sys
from collections.abc import Iterator

import pytest

from offline_step_functions.logging import JsonFormatter, configure_logging


@pytest.fixture
def restore_root_logging() -> Iterator[None]:
    root = logging.getLogger()
    handlers, level = list(root.handlers), root.level
    yield
    root.handlers[:] = handlers
    root.setLevel(level)


def test_formatter_renders_extra_fields() -> None:
    record = logging.makeLogRecord(
        {
            "name": "offline_step_functions.test",
            "levelname": "INFO",
            "levelno": logging.INFO,
            "msg": "State machine created",
            "arn": "arn:aws:states:us-east-1:101010101010:stateMachine:orders",
        }
    )

    payload = json.loads(JsonFormatter().format(record))

    assert payload["message"] == "State machine created"
    assert payload["level"] == "INFO"
    assert payload["extra"] == {"arn": "arn:aws:states:us-east-1:101010101010:stateMachine:orders"}


def test_formatter_includes_exception() -> None:
    try:
        raise RuntimeError("boom")
    except RuntimeError:
        record = logging.getLogger("t").makeRecord(
            "t", logging.ERROR, __file__, 1, "failed", None, exc_info=sys.exc_info()
        )

    payload = json.loads(JsonFormatter().format(record))

    assert "RuntimeError: boom" in payload["exception"]


@pytest.mark.usefixtures("restore_root_logging")
def test_configure_logging_replaces_handlers() -> None:
    configure_logging("debug")

    root = logging.getLogger()
    assert root.level == logging.DEBUG
    assert len(root.handlers) == 1
    assert isinstance(root.handlers[0].formatter, JsonFormatter)
    assert logging.getLogger("botocore").level == logging.INFO
