"""Logging configuration for handodds."""

from __future__ import annotations

import json
import logging
import logging.handlers
import sys
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

CONSOLE_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s:%(funcName)s:%(lineno)d | %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


class JSONFormatter(logging.Formatter):
    """JSON formatter for structured logging."""

    def format(self, record: logging.LogRecord) -> str:
        log_data = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "module": record.module,
            "function": record.funcName,
            "line": record.lineno,
        }

        if record.exc_info:
            log_data["exception"] = self.formatException(record.exc_info)

        if hasattr(record, "extra_data"):
            log_data["extra"] = record.extra_data

        return json.dumps(log_data)


class ContextLogger(logging.LoggerAdapter):
    """Logger adapter that adds context to all log messages."""

    def process(self, msg: str, kwargs: dict[str, Any]) -> tuple[str, dict]:
        extra = kwargs.get("extra", {})
        extra["extra_data"] = {**self.extra, **extra.get("extra_data", {})}
        kwargs["extra"] = extra
        return msg, kwargs


def setup_logging(
    log_level: str = "INFO",
    enable_console: bool = True,
    log_file: str | Path | None = None,
    logger_name: str = "handodds",
    max_bytes: int = 10 * 1024 * 1024,  # 10MB
    backup_count: int = 5,
) -> None:
    """Configure logging for the application.

    Args:
        log_level: Logging level (DEBUG, INFO, WARNING, ERROR).
        enable_console: Whether to log to stderr.
        log_file: Optional path for a rotating JSON log file.
        logger_name: Logger to configure; "" means the root logger.
        max_bytes: Maximum size per log file before rotation.
        backup_count: Number of backup files to keep.
    """
    level = getattr(logging, log_level.upper(), None)
    if not isinstance(level, int):
        raise ValueError(f"Unknown log level: {log_level}")

    pkg_logger = logging.getLogger(logger_name or None)
    pkg_logger.setLevel(level)
    for h in list(pkg_logger.handlers):
        pkg_logger.removeHandler(h)
        h.close()

    # Console handler (human-readable format); stdout is left for the report
    if enable_console:
        console_handler = logging.StreamHandler(sys.stderr)
        console_handler.setFormatter(logging.Formatter(CONSOLE_FORMAT, datefmt=DATE_FORMAT))
        pkg_logger.addHandler(console_handler)

    if log_file is not None:
        path = Path(log_file)
        path.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.handlers.RotatingFileHandler(
            path,
            maxBytes=max_bytes,
            backupCount=backup_count,
        )
        file_handler.setFormatter(JSONFormatter())
        pkg_logger.addHandler(file_handler)


def get_logger(name: str, **context: Any) -> ContextLogger:
    """Get a logger with optional context.

    Args:
        name: Logger name (typically __name__).
        **context: Additional context to include in all log messages.

    Returns:
        ContextLogger with the specified context.
    """
    logger = logging.getLogger(name)
    return ContextLogger(logger, context)
