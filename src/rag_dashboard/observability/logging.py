"""JSON-lines logging for the dashboard process.

Every record becomes one object carrying the service name, the logger, the
message and the context passed through `fields()`. The web server, the
store and the HTTP clients all log through the same root handler.
"""

import json
import logging
import os
import sys
from datetime import datetime, timezone
from typing import Any, Optional, TextIO

SERVICE_NAME = "rag-dashboard"
CORE_KEYS = ("time", "level", "service", "logger", "message")

# Libraries whose per-request chatter drowns out the dashboard's own records.
NOISY_LOGGERS = ("urllib3", "httpx", "httpcore", "multipart")


class JsonFormatter(logging.Formatter):
    """Renders records as single-line JSON objects."""

    def __init__(self, service: str = SERVICE_NAME):
        super().__init__()
        self.service = service

    def format(self, record: logging.LogRecord) -> str:
        entry: dict[str, Any] = {
            "time": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
            "level": record.levelname,
            "service": self.service,
            "logger": record.name,
            "message": record.getMessage(),
        }
        if record.levelno >= logging.WARNING:
            entry["where"] = f"{record.module}:{record.lineno}"

        context = getattr(record, "extra_fields", None)
        if isinstance(context, dict):
            for key, value in context.items():
                # Context never overwrites the envelope.
                entry[f"field_{key}" if key in CORE_KEYS else key] = value

        if record.exc_info and record.exc_info[0] is not None:
            entry["error_type"] = record.exc_info[0].__name__
            entry["traceback"] = self.formatException(record.exc_info)

        return json.dumps(entry, default=str, ensure_ascii=False)


def setup_logging(level: Optional[str] = None, stream: Optional[TextIO] = None):
    """Routes all logging through one JSON handler.

    Args:
        level: Log level; defaults to LOG_LEVEL or INFO.
        stream: Output stream; defaults to stdout.
    """
    log_level = (level or os.environ.get("LOG_LEVEL", "INFO")).upper()

    root = logging.getLogger()
    root.setLevel(log_level)
    for h in root.handlers[:]:
        root.removeHandler(h)

    handler = logging.StreamHandler(stream or sys.stdout)
    handler.setFormatter(JsonFormatter())
    root.addHandler(handler)

    # uvicorn installs its own handlers; route them through ours instead.
    for name in ("uvicorn", "uvicorn.error", "uvicorn.access"):
        logging.getLogger(name).handlers = []
        logging.getLogger(name).propagate = True

    if logging.getLevelName(log_level) != logging.DEBUG:
        for name in NOISY_LOGGERS:
            logging.getLogger(name).setLevel(logging.WARNING)


def get_logger(name: str) -> logging.Logger:
    return logging.getLogger(name)


def fields(**values: Any) -> dict[str, Any]:
    """Builds the `extra` mapping understood by JsonFormatter."""
    return {"extra_fields": values}
