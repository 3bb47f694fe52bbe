"""Structured Logging — JSON and console formatters carrying the editing identity.

Invariants:
    - Every line has timestamp, level, logger name and message
    - Editing identity (tenant_id, session_id) and sync details (resource, field,
      entity_id, error_code, attempt) appear whenever a call passed them in `extra`
    - setup_logging() is idempotent: calling it again swaps the handler, never stacks one

Design Decisions:
    - Hand-written formatters on stdlib logging: no extra dependency for a dozen keys
    - The console format appends the same keys as key=value pairs, so local runs and
      production logs can be grepped the same way
"""

import json
import logging
from datetime import datetime, timezone

CONTEXT_FIELDS = (
    "tenant_id", "session_id", "resource", "field", "entity_id",
    "error_code", "attempt", "source", "path",
)


def _context(record: logging.LogRecord) -> dict:
    return {
        key: record.__dict__[key] for key in CONTEXT_FIELDS
        if record.__dict__.get(key) is not None
    }


class JSONFormatter(logging.Formatter):
    """One JSON object per line."""

    def format(self, record: logging.LogRecord) -> str:
        entry = {
            "timestamp": datetime.fromtimestamp(record.created, timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            **_context(record),
        }
        if record.exc_info:
            entry["exception"] = self.formatException(record.exc_info)
        return json.dumps(entry, ensure_ascii=False, default=str)


class ConsoleFormatter(logging.Formatter):
    """Human-readable line with the context keys appended."""

    def __init__(self):
        super().__init__("%(asctime)s %(levelname)-7s %(name)s: %(message)s")

    def format(self, record: logging.LogRecord) -> str:
        line = super().format(record)
        pairs = " ".join(f"{k}={v}" for k, v in _context(record).items())
        return f"{line} [{pairs}]" if pairs else line


_handler: logging.Handler | None = None


def setup_logging(level: str = "INFO", fmt: str = "json") -> None:
    global _handler
    handler = logging.StreamHandler()
    handler.setFormatter(JSONFormatter() if fmt == "json" else ConsoleFormatter())
    root = logging.getLogger()
    if _handler is not None:
        root.removeHandler(_handler)
    _handler = handler
    root.addHandler(handler)
    root.setLevel(getattr(logging, level.upper(), logging.INFO))
