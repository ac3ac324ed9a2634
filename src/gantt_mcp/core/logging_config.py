"""Structured logging configuration with automatic context injection.

Log records produced inside a request context carry its correlation ID, so a
paste that was rejected or a cascade that touched five summaries can be traced
back to the tool call or CLI command that caused it.

Usage:
    from gantt_mcp.core.logging_config import configure_logging, get_logger

    configure_logging(level="DEBUG", format="human")
    logger = get_logger(__name__)
"""

from __future__ import annotations

import json
import logging
import sys
import time
from datetime import datetime, timezone
from typing import Any, Dict, Optional, TextIO, Union

from gantt_mcp.core.context import (
    get_client_id,
    get_correlation_id,
    get_start_time,
)

__all__ = [
    "ContextFilter",
    "StructuredFormatter",
    "HumanReadableFormatter",
    "configure_logging",
    "get_logger",
]

_ROOT_LOGGER = "gantt_mcp"


class ContextFilter(logging.Filter):
    """Logging filter that injects request context into log records.

    Adds ``correlation_id``, ``client_id`` and ``elapsed_ms`` to every record.
    """

    def filter(self, record: logging.LogRecord) -> bool:
        record.correlation_id = get_correlation_id() or "-"
        record.client_id = get_client_id() or "anonymous"

        start_time = get_start_time()
        if start_time > 0:
            record.elapsed_ms = round((time.time() - start_time) * 1000, 2)
        else:
            record.elapsed_ms = 0.0

        return True


class StructuredFormatter(logging.Formatter):
    """JSON-structured log formatter for machine-readable output.

    Example output:
        {"timestamp":"2025-01-15T10:30:45.123+00:00","level":"INFO",
         "logger":"gantt_mcp.core.clipboard.paste","message":"Paste rejected",
         "correlation_id":"req_a1b2c3d4e5f6","client_id":"mcp","elapsed_ms":1.5}
    """

    def __init__(self, *, include_extra: bool = True, include_exception: bool = True):
        super().__init__()
        self.include_extra = include_extra
        self.include_exception = include_exception

        # Standard attributes to exclude from "extra"
        self._standard_attrs = {
            "name",
            "msg",
            "args",
            "levelname",
            "levelno",
            "pathname",
            "filename",
            "module",
            "lineno",
            "funcName",
            "created",
            "msecs",
            "relativeCreated",
            "thread",
            "threadName",
            "processName",
            "process",
            "taskName",
            "message",
            "exc_info",
            "exc_text",
            "stack_info",
            "correlation_id",
            "client_id",
            "elapsed_ms",
        }

    def format(self, record: logging.LogRecord) -> str:
        log_entry: Dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "location": {
                "file": record.filename,
                "line": record.lineno,
                "function": record.funcName,
            },
            "correlation_id": getattr(record, "correlation_id", "-"),
            "client_id": getattr(record, "client_id", "anonymous"),
            "elapsed_ms": getattr(record, "elapsed_ms", 0.0),
        }

        if self.include_exception and record.exc_info:
            log_entry["exception"] = self.formatException(record.exc_info)

        if self.include_extra:
            extra = {}
            for key, value in record.__dict__.items():
                if key not in self._standard_attrs:
                    try:
                        json.dumps(value)
                        extra[key] = value
                    except (TypeError, ValueError):
                        extra[key] = str(value)
            if extra:
                log_entry["extra"] = extra

        return json.dumps(log_entry, default=str)


class HumanReadableFormatter(logging.Formatter):
    """Human-readable formatter with context prefix.

    Produces logs in format:
        2025-01-15 10:30:45 [INFO] [req_a1b2c3] core.summary: Cascade updated 2 summaries
    """

    def __init__(self, *, include_timestamp: bool = True, include_location: bool = False):
        super().__init__()
        self.include_timestamp = include_timestamp
        self.include_location = include_location

    def format(self, record: logging.LogRecord) -> str:
        parts = []

        if self.include_timestamp:
            ts = datetime.fromtimestamp(record.created).strftime("%Y-%m-%d %H:%M:%S")
            parts.append(ts)

        parts.append(f"[{record.levelname}]")

        corr_id = getattr(record, "correlation_id", "-")
        if corr_id and corr_id != "-":
            parts.append(f"[{corr_id}]")

        logger_name = record.name
        if logger_name.startswith(_ROOT_LOGGER + "."):
            logger_name = logger_name[len(_ROOT_LOGGER) + 1:]
        parts.append(f"{logger_name}:")

        parts.append(record.getMessage())

        if self.include_location:
            parts.append(f"({record.filename}:{record.lineno})")

        result = " ".join(parts)

        if record.exc_info:
            result += "\n" + self.formatException(record.exc_info)

        return result


def configure_logging(
    *,
    level: Union[int, str] = logging.INFO,
    format: str = "structured",  # "structured" or "human"
    stream: Optional[TextIO] = None,
    add_context: bool = True,
) -> logging.Logger:
    """Configure the root gantt_mcp logger.

    Existing handlers on the package logger are replaced, so calling this
    twice does not duplicate output.

    Args:
        level: Log level (default: INFO)
        format: Output format ("structured" for JSON, "human" for readable)
        stream: Output stream (default: stderr)
        add_context: Add ContextFilter for automatic context injection

    Returns:
        Configured root logger for gantt_mcp
    """
    if isinstance(level, str):
        level = getattr(logging, level.upper(), logging.INFO)

    logger = logging.getLogger(_ROOT_LOGGER)
    logger.setLevel(level)
    logger.handlers.clear()

    handler = logging.StreamHandler(stream or sys.stderr)
    handler.setLevel(level)

    if format == "structured":
        handler.setFormatter(StructuredFormatter())
    else:
        handler.setFormatter(HumanReadableFormatter())

    if add_context:
        handler.addFilter(ContextFilter())

    logger.addHandler(handler)

    return logger


def get_logger(name: str) -> logging.Logger:
    """Get a logger under the gantt_mcp namespace.

    Args:
        name: Logger name (typically __name__)
    """
    if not name.startswith(_ROOT_LOGGER):
        name = f"{_ROOT_LOGGER}.{name}"

    return logging.getLogger(name)
