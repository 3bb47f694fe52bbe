"""Structured Logging — formatter output and idempotent setup."""

import json
import logging

from business_profile.infrastructure.observability import (
    ConsoleFormatter, JSONFormatter, setup_logging,
)


def _record(**extra):
    record = logging.LogRecord(
        "business_profile.services.field_sync", logging.WARNING, __file__, 1,
        "Commit failed for %s", ("strategy.mision",), None,
    )
    record.__dict__.update(extra)
    return record


def test_json_formatter_includes_context():
    line = JSONFormatter().format(_record(tenant_id="t-1", error_code="STORE_UNAVAILABLE"))
    entry = json.loads(line)
    assert entry["message"] == "Commit failed for strategy.mision"
    assert entry["level"] == "WARNING"
    assert entry["tenant_id"] == "t-1"
    assert entry["error_code"] == "STORE_UNAVAILABLE"
    assert "session_id" not in entry


def test_console_formatter_appends_pairs():
    line = ConsoleFormatter().format(_record(resource="strategy", field="mision"))
    assert line.endswith("[resource=strategy field=mision]")
    assert "Commit failed for strategy.mision" in line


def test_setup_logging_replaces_handler():
    root = logging.getLogger()
    before = len(root.handlers)
    setup_logging("DEBUG", "text")
    setup_logging("INFO", "json")
    try:
        assert len(root.handlers) == before + 1
        assert isinstance(root.handlers[-1].formatter, JSONFormatter)
        assert root.level == logging.INFO
    finally:
        root.removeHandler(root.handlers[-1])
