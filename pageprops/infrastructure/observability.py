"""Structured Logging: JSON formatter and setup for resolution observability.

Invariants:
    - All logs include timestamp, level, logger name, and message
    - Extra fields (component, prop_path, session_id, error_code, group) surfaced when present
    - JSON format in production, human-readable otherwise

Design Decisions:
    - setup_logging called once by the host application on startup
"""

import json
import logging
from datetime import datetime, timezone

_EXTRA_FIELDS = ("component", "prop_path", "session_id", "error_code", "group")


class JSONFormatter(logging.Formatter):
    """Format logs as JSON for structured logging in production."""

    def format(self, record: logging.LogRecord) -> str:
        log = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        for key in _EXTRA_FIELDS:
            val = record.__dict__.get(key)
            if val is not None:
                log[key] = val
        if record.exc_info:
            log["exception"] = self.formatException(record.exc_info)
        return json.dumps(log, ensure_ascii=False)


def setup_logging(level: str = "INFO", fmt: str = "json") -> logging.Handler:
    """Attach one stream handler to the root logger and return it."""
    handler = logging.StreamHandler()
    if fmt == "json":
        handler.setFormatter(JSONFormatter())
    else:
        handler.setFormatter(logging.Formatter(
            "%(asctime)s %(levelname)s %(name)s: %(message)s",
        ))
    logging.root.addHandler(handler)
    logging.root.setLevel(getattr(logging, level.upper(), logging.INFO))
    return handler
