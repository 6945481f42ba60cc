"""Structured logging tests — JSON records and root handler setup.

Tests cover:
    - Relay extra fields appear only when set
    - Exceptions rendered into the record
    - setup_logging leaves exactly one root handler, however often it runs
    - httpx request lines held back below WARNING
"""

import json
import logging
import sys

import pytest

from rsproxy.infrastructure.observability import JSONFormatter, setup_logging


@pytest.fixture
def restore_root():
    root = logging.getLogger()
    handlers, level = root.handlers[:], root.level
    httpx_level = logging.getLogger("httpx").level
    yield
    root.handlers = handlers
    root.setLevel(level)
    logging.getLogger("httpx").setLevel(httpx_level)


def _record(**extra) -> logging.LogRecord:
    record = logging.LogRecord(
        "rsproxy.test", logging.INFO, __file__, 1, "relay %s", ("ok",), None,
    )
    for key, value in extra.items():
        setattr(record, key, value)
    return record


def test_json_record_carries_relay_fields():
    out = json.loads(JSONFormatter().format(
        _record(stage="dispatch_upstream", method="ksoLogin", http_status=None),
    ))
    assert out["message"] == "relay ok"
    assert out["level"] == "INFO"
    assert out["stage"] == "dispatch_upstream"
    assert out["method"] == "ksoLogin"
    assert "http_status" not in out
    assert "upstream" not in out


def test_json_record_includes_exception():
    try:
        raise ValueError("boom")
    except ValueError:
        record = _record()
        record.exc_info = sys.exc_info()
    out = json.loads(JSONFormatter().format(record))
    assert "ValueError: boom" in out["exception"]


def test_setup_logging_replaces_root_handlers(restore_root):
    setup_logging("DEBUG", "json")
    handler = setup_logging("DEBUG", "text")
    root = logging.getLogger()
    assert root.handlers == [handler]
    assert root.level == logging.DEBUG
    assert not isinstance(handler.formatter, JSONFormatter)


def test_setup_logging_quiets_httpx(restore_root):
    setup_logging("DEBUG", "json")
    assert logging.getLogger("httpx").level == logging.WARNING
