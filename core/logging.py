"""Logging configuration for the claim upload service."""

from __future__ import annotations

import contextvars
import json
import logging
import sys
import traceback
from datetime import datetime, timezone
from typing import Any

from core.settings import Settings

# Request id of the request being served, set by the request-id middleware.
request_id_context: contextvars.ContextVar[str | None] = contextvars.ContextVar("request_id", default=None)

_STANDARD_RECORD_FIELDS = frozenset(
    {
        "name", "msg", "args", "created", "filename", "funcName", "levelname",
        "levelno", "lineno", "module", "msecs", "message", "pathname", "process",
        "processName", "relativeCreated", "thread", "threadName", "exc_info",
        "exc_text", "stack_info", "taskName",
    }
)


class JsonLogFormatter(logging.Formatter):
    """Single-line JSON formatter for container log collectors.

    Extra fields passed through ``logger.info(..., extra={...})`` are copied
    into the entry; exceptions are flattened into string fields.
    """

    def format(self, record: logging.LogRecord) -> str:
        entry: dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
            "severity": record.levelname,
            "message": record.getMessage(),
            "logger": record.name,
            "module": record.module,
            "function": record.funcName,
            "line": record.lineno,
        }

        request_id = request_id_context.get()
        if request_id:
            entry["request_id"] = request_id

        for key, value in record.__dict__.items():
            if key not in _STANDARD_RECORD_FIELDS:
                entry[key] = value

        if record.exc_info:
            entry["exception"] = "".join(traceback.format_exception(*record.exc_info))
            entry["exception_type"] = record.exc_info[0].__name__ if record.exc_info[0] else "Unknown"

        return json.dumps(entry, default=str, ensure_ascii=False)


def setup_logging(settings: Settings) -> None:
    """Route application and uvicorn logs to stdout.

    Local environments get plain text lines, everything else gets JSON.
    """
    log_level = logging.getLevelName(settings.log_level)
    if not isinstance(log_level, int):
        log_level = logging.INFO

    handler = logging.StreamHandler(sys.stdout)
    if settings.is_local:
        handler.setFormatter(logging.Formatter("%(asctime)s - %(name)s - %(levelname)s - %(message)s"))
    else:
        handler.setFormatter(JsonLogFormatter())

    root_logger = logging.getLogger()
    root_logger.setLevel(log_level)
    root_logger.handlers.clear()
    root_logger.addHandler(handler)

    for logger_name in ("uvicorn", "uvicorn.access", "uvicorn.error"):
        uvicorn_logger = logging.getLogger(logger_name)
        uvicorn_logger.setLevel(log_level)
        uvicorn_logger.handlers.clear()
        uvicorn_logger.addHandler(handler)
        uvicorn_logger.propagate = False


def mask_token(token: str | None) -> str:
    if not token:
        return "<empty>"
    return f"{token[:6]}…"
