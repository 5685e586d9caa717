"""
inkshare/core/logging.py

Purpose: Logging configuration

- JSON lines in production, colored single lines elsewhere
- Per-interaction context (session_key, handle, command, chat_id)
- Context lives in a ContextVar so concurrent dispatches never mix
"""

import logging
import sys
import json
from contextvars import ContextVar
from datetime import datetime, timezone
from typing import Any, Dict

from inkshare.core.config import settings


CONTEXT_FIELDS = ("session_key", "handle", "command", "chat_id")

_log_context: ContextVar[Dict[str, Any]] = ContextVar("inkshare_log_context", default={})

NOISY_LOGGERS = ("httpx", "httpcore", "motor", "pymongo", "uvicorn.access")


class ContextFilter(logging.Filter):
    """Copies the active LogContext onto every record passing the handler."""

    def filter(self, record: logging.LogRecord) -> bool:
        for key, value in _log_context.get().items():
            if not hasattr(record, key):
                setattr(record, key, value)
        return True


class StructuredFormatter(logging.Formatter):
    """
    One JSON object per line, for log shippers.
    """

    def format(self, record: logging.LogRecord) -> str:
        entry = {
            "timestamp": datetime.fromtimestamp(record.created, timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "location": f"{record.module}:{record.funcName}:{record.lineno}",
        }
        entry.update({field: getattr(record, field) for field in CONTEXT_FIELDS if hasattr(record, field)})

        if record.exc_info:
            entry["exception"] = self.formatException(record.exc_info)

        return json.dumps(entry, default=str)


class DevelopmentFormatter(logging.Formatter):
    """
    Human-readable formatter for local runs.
    """

    COLORS = {
        "DEBUG": "\033[36m",
        "INFO": "\033[32m",
        "WARNING": "\033[33m",
        "ERROR": "\033[31m",
        "CRITICAL": "\033[35m",
    }
    RESET = "\033[0m"

    def format(self, record: logging.LogRecord) -> str:
        color = self.COLORS.get(record.levelname, self.RESET)
        clock = datetime.fromtimestamp(record.created).strftime("%H:%M:%S")
        line = f"{color}[{clock}] {record.levelname:<8}{self.RESET} {record.name}: {record.getMessage()}"

        tags = [f"{field}={getattr(record, field)}" for field in CONTEXT_FIELDS if getattr(record, field, None)]
        if tags:
            line += f" [{' '.join(tags)}]"

        if record.exc_info:
            line += "\n" + self.formatException(record.exc_info)

        return line


def setup_logging():
    """
    Installs a single stdout handler on the root logger.
    Safe to call more than once.
    """
    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(StructuredFormatter() if settings.is_production else DevelopmentFormatter())
    handler.addFilter(ContextFilter())

    root_logger = logging.getLogger()
    root_logger.setLevel(getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO))
    root_logger.handlers.clear()
    root_logger.addHandler(handler)

    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)

    logger = logging.getLogger("inkshare")
    logger.info(f"Logging configured ({settings.ENVIRONMENT}, level {settings.LOG_LEVEL})")
    return logger


def get_logger(name: str) -> logging.Logger:
    """Returns a logger under the `inkshare` hierarchy."""
    if name.startswith("inkshare"):
        return logging.getLogger(name)
    return logging.getLogger(f"inkshare.{name}")


class LogContext:
    """
    Adds fields to every log record emitted inside the block.

    Usage:
        with LogContext(session_key="123", command="share"):
            logger.info("Sharing document")
    """

    def __init__(self, **fields):
        self.fields = {key: value for key, value in fields.items() if value is not None}
        self._token = None

    def __enter__(self):
        self._token = _log_context.set({**_log_context.get(), **self.fields})
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        _log_context.reset(self._token)
