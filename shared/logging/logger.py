"""
Structured JSON logging for the arena service.

Every entry is a single JSON line on stdout carrying the service name,
so the workbench logs can be collected next to any other container.
Structured context is attached with ``extra={"_extra": {...}}``.
"""

from __future__ import annotations

import json
import logging
import os
import sys
from datetime import datetime, timezone
from typing import Any

_NOISY_LOGGERS = ("uvicorn.access", "httpx", "httpcore", "openai")


class JSONFormatter(logging.Formatter):
    """Formats log records as single-line JSON objects."""

    def __init__(self, service_name: str) -> None:
        super().__init__()
        self._service = service_name

    def format(self, record: logging.LogRecord) -> str:
        entry: dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created, timezone.utc).isoformat(),
            "level": record.levelname,
            "service": self._service,
            "logger": record.name,
            "message": record.getMessage(),
        }

        if record.exc_info and record.exc_info[1]:
            entry["exception"] = self.formatException(record.exc_info)

        extra = getattr(record, "_extra", None)
        if extra:
            entry["extra"] = extra

        return json.dumps(entry, default=str)


def setup_logging(service_name: str, level_name: str | None = None) -> logging.Logger:
    """
    Configure the root logger with JSON output to stdout.

    Call once at startup (in the FastAPI lifespan). ``level_name`` wins
    over the LOG_LEVEL env var. Returns the service-specific logger.
    """
    level_name = (level_name or os.environ.get("LOG_LEVEL", "INFO")).upper()
    level = getattr(logging, level_name, logging.INFO)

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(JSONFormatter(service_name))

    root = logging.getLogger()
    root.handlers.clear()
    root.addHandler(handler)
    root.setLevel(level)

    for noisy in _NOISY_LOGGERS:
        logging.getLogger(noisy).setLevel(logging.WARNING)

    logger = logging.getLogger(service_name)
    logger.info("Logging initialized", extra={"_extra": {"level": level_name}})
    return logger
