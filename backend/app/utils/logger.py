"""Structured logging configuration

Every record is one JSON object per line on stdout. Context passed through
``extra={...}`` is copied into the object when its key is listed in
``CONTEXT_FIELDS``; anything else in ``extra`` is dropped.
"""
import json
import logging
import sys
from datetime import datetime, timezone
from typing import Any, Dict

SERVICE_NAME = "jobportal"

CONTEXT_FIELDS = (
    # who / which session
    "account_id", "email", "role", "jti",
    # what happened
    "action", "error",
    # outgoing mail
    "recipient", "subject",
    # request tracing, filled by MonitoringMiddleware
    "request_id", "method", "path", "status", "duration_ms",
)


class JSONFormatter(logging.Formatter):
    """Render a log record as a single JSON line"""

    def format(self, record: logging.LogRecord) -> str:
        entry: Dict[str, Any] = {
            "timestamp": datetime.now(timezone.utc).isoformat(timespec="milliseconds"),
            "service": SERVICE_NAME,
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        entry.update(
            (name, getattr(record, name)) for name in CONTEXT_FIELDS if getattr(record, name, None) is not None
        )

        if record.exc_info:
            entry["exception"] = self.formatException(record.exc_info)

        return json.dumps(entry, default=str)


def setup_logging(log_level: str = "INFO") -> logging.Logger:
    """(Re)configure the service logger; safe to call more than once."""
    root = logging.getLogger(SERVICE_NAME)
    root.setLevel(log_level.upper())
    root.propagate = False

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(JSONFormatter())
    root.handlers = [handler]

    return root


logger = setup_logging()
