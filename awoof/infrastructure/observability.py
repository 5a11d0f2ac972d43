"""Structured Logging — JSON formatter and setup for production observability.

Invariants:
    - All logs include timestamp, level, logger name, and message
    - Extra fields (user_id, vendor_id, error_code, path, attempt) surfaced when present
    - Control characters in messages and extra values are neutralized (no forged log lines)
    - JSON format in production, human-readable in development

Design Decisions:
    - JSONFormatter over third-party libs: zero dependencies, full control
    - Sanitizing in the formatter, not at call sites: request data logged anywhere is covered
    - setup_logging called once on startup via lifespan
"""

import logging
import json
import re
from datetime import datetime, timezone

_CONTROL_CHARS = re.compile(r"[\x00-\x1f\x7f]")

EXTRA_KEYS = (
    "user_id", "vendor_id", "student_id", "error_code", "path",
    "attempt", "method", "reference", "service",
)


def sanitize_log_value(value: object) -> object:
    """Replace CR/LF and other control characters in strings with spaces."""
    if isinstance(value, str):
        return _CONTROL_CHARS.sub(" ", value)
    return value


class JSONFormatter(logging.Formatter):
    """Format logs as JSON for structured logging in production."""

    def format(self, record: logging.LogRecord) -> str:
        log = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": sanitize_log_value(record.getMessage()),
        }
        for key in EXTRA_KEYS:
            val = record.__dict__.get(key)
            if val is not None:
                log[key] = sanitize_log_value(val)
        if record.exc_info:
            log["exception"] = self.formatException(record.exc_info)
        return json.dumps(log, ensure_ascii=False, default=str)


class SanitizingFormatter(logging.Formatter):
    """Human-readable formatter with the same control-character guard."""

    def format(self, record: logging.LogRecord) -> str:
        record.msg = sanitize_log_value(record.getMessage())
        record.args = None
        return super().format(record)


def setup_logging(level: str = "INFO", fmt: str = "json"):
    """Configure logging for the application."""
    handler = logging.StreamHandler()
    if fmt == "json":
        handler.setFormatter(JSONFormatter())
    else:
        handler.setFormatter(SanitizingFormatter(
            "%(asctime)s %(levelname)s %(name)s - %(message)s",
        ))
    logging.root.addHandler(handler)
    logging.root.setLevel(getattr(logging, level.upper(), logging.INFO))
