"""Structured Logging — JSON formatter and setup for relay observability.

Invariants:
    - All logs include timestamp, level, logger name, and message
    - Extra fields (stage, upstream, method, http_status, error_code, path)
      surfaced when present
    - JSON format in production, human-readable in development
    - Credentials are never passed as extra fields
    - httpx request lines (full upstream URLs) are logged at WARNING and above only

Design Decisions:
    - setup_logging replaces the root handlers instead of appending one: uvicorn
      and repeated create_app() calls in tests would otherwise stack handlers
      and print every record several times
    - setup_logging called once on startup via lifespan
"""

import json
import logging
from datetime import datetime, timezone

RELAY_LOG_FIELDS = (
    "stage", "upstream", "method", "http_status", "error_code", "path",
)

# Libraries whose INFO output repeats upstream URLs and query strings
_QUIET_LOGGERS = ("httpx", "httpcore")

TEXT_FORMAT = "%(asctime)s %(levelname)s %(name)s - %(message)s"


class JSONFormatter(logging.Formatter):
    """One JSON object per record, relay fields included when set."""

    def format(self, record: logging.LogRecord) -> str:
        entry = {
            "timestamp": datetime.fromtimestamp(
                record.created, tz=timezone.utc,
            ).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        entry.update({
            key: getattr(record, key)
            for key in RELAY_LOG_FIELDS
            if getattr(record, key, None) is not None
        })
        if record.exc_info:
            entry["exception"] = self.formatException(record.exc_info)
        return json.dumps(entry, ensure_ascii=False, default=str)


def setup_logging(level: str = "INFO", fmt: str = "json") -> logging.Handler:
    """Install a single stream handler on the root logger and return it."""
    handler = logging.StreamHandler()
    handler.setFormatter(
        JSONFormatter() if fmt == "json" else logging.Formatter(TEXT_FORMAT),
    )
    root = logging.getLogger()
    root.handlers = [handler]
    root.setLevel(getattr(logging, level.upper(), logging.INFO))
    for name in _QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)
    return handler
