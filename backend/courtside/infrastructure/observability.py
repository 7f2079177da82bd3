"""Structured Logging — JSON formatter and setup for client-side observability.

Invariants:
    - All logs include timestamp, level, logger name, and message
    - Extra fields (cache_key, function_name, error_code, ...) surfaced when present
    - JSON format by default, human-readable when fmt != "json"

Design Decisions:
    - setup_logging called once by the bootstrap factory, never on import
"""

import logging
import json
from datetime import datetime, timezone

_EXTRA_KEYS = (
    "cache_key", "function_name", "status_code", "idempotency_key",
    "item_count", "error_code", "table",
)


class JSONFormatter(logging.Formatter):
    """Format logs as JSON for structured logging."""

    def format(self, record: logging.LogRecord) -> str:
        log = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        for key in _EXTRA_KEYS:
            val = record.__dict__.get(key)
            if val is not None:
                log[key] = val
        if record.exc_info:
            log["exception"] = self.formatException(record.exc_info)
        return json.dumps(log, ensure_ascii=False)


def setup_logging(level: str = "INFO", fmt: str = "json") -> logging.Handler:
    """Configure root logging. Returns the installed handler."""
    handler = logging.StreamHandler()
    if fmt == "json":
        handler.setFormatter(JSONFormatter())
    else:
        handler.setFormatter(logging.Formatter(
            "%(asctime)s %(levelname)s %(name)s — %(message)s",
        ))
    logging.root.addHandler(handler)
    logging.root.setLevel(getattr(logging, level.upper(), logging.INFO))
    return handler
