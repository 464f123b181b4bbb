"""Logging configuration for nestconf.

Provides logger lookup, a Rich console handler, optional structured (JSON) file
output and a timing context manager used around file store I/O.
"""

from __future__ import annotations

import json
import logging
import logging.config
import sys
import time
import uuid
from contextvars import ContextVar
from pathlib import Path
from typing import Any, cast

from rich.console import Console
from rich.logging import RichHandler

from nestconf.utils.exceptions import NestconfError

# Context variable for correlation ID
correlation_id: ContextVar[str | None] = cast(
    "ContextVar[str | None]",
    ContextVar("correlation_id", default=None),
)

_RECORD_ATTRS = frozenset(
    vars(logging.LogRecord("", 0, "", 0, "", (), None)).keys()
) | {"message", "asctime", "correlation_id"}


class CorrelationFilter(logging.Filter):
    """Filter to add correlation ID to log records."""

    def filter(self, record: logging.LogRecord) -> bool:
        """Add correlation ID to log record."""
        record.correlation_id = correlation_id.get() or "no-correlation-id"
        return True


class StructuredFormatter(logging.Formatter):
    """Structured JSON formatter for logs."""

    def format(self, record: logging.LogRecord) -> str:
        """Format log record as structured JSON."""
        log_entry: dict[str, Any] = {
            "timestamp": time.time(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "module": record.module,
            "function": record.funcName,
            "line": record.lineno,
        }

        if hasattr(record, "correlation_id"):
            log_entry["correlation_id"] = record.correlation_id

        if record.exc_info:
            log_entry["exception"] = self.formatException(record.exc_info)

        # Extra fields passed through ``extra=``
        log_entry.update(
            {
                key: value
                for key, value in record.__dict__.items()
                if key not in _RECORD_ATTRS
            }
        )

        return json.dumps(log_entry, default=str)


def create_rich_handler(
    console: Console | None = None,
    level: int | str = logging.INFO,
    show_path: bool = False,
) -> logging.Handler:
    """Create a RichHandler writing to stderr."""
    if console is None:
        console = Console(file=sys.stderr)
    handler = RichHandler(
        console=console,
        level=level,
        show_path=show_path,
        rich_tracebacks=True,
        markup=False,
    )
    handler.addFilter(CorrelationFilter())
    return handler


def setup_logging(
    level: int | str = "INFO",
    log_file: str | Path | None = None,
    structured: bool = False,
) -> None:
    """Set up logging for the ``nestconf`` logger hierarchy.

    Args:
        level: Log level name or number
        log_file: Optional path of a rotating log file
        structured: Emit JSON lines to the log file instead of plain text

    """
    if isinstance(level, int):
        level = logging.getLevelName(level)

    logging_config: dict[str, Any] = {
        "version": 1,
        "disable_existing_loggers": False,
        "formatters": {
            "structured": {
                "()": StructuredFormatter,
            },
            "simple": {
                "format": "%(asctime)s %(levelname)s %(name)s.%(funcName)s: %(message)s",
                "datefmt": "%Y-%m-%d %H:%M:%S",
            },
        },
        "filters": {
            "correlation": {
                "()": CorrelationFilter,
            },
        },
        "handlers": {},
        "loggers": {
            "nestconf": {
                "level": level,
                "handlers": [],
                "propagate": False,
            },
        },
    }

    if log_file:
        log_path = Path(log_file)
        log_path.parent.mkdir(parents=True, exist_ok=True)
        logging_config["handlers"]["file"] = {
            "class": "logging.handlers.RotatingFileHandler",
            "level": level,
            "formatter": "structured" if structured else "simple",
            "filters": ["correlation"],
            "filename": str(log_path),
            "maxBytes": 10 * 1024 * 1024,  # 10MB
            "backupCount": 5,
            "encoding": "utf-8",
        }
        logging_config["loggers"]["nestconf"]["handlers"].append("file")

    logging.config.dictConfig(logging_config)

    # RichHandler is attached after dictConfig so it keeps its own console
    logging.getLogger("nestconf").addHandler(create_rich_handler(level=level))


def get_logger(name: str) -> logging.Logger:
    """Get a logger with the given name."""
    if name == "nestconf" or name.startswith("nestconf."):
        return logging.getLogger(name)
    return logging.getLogger(f"nestconf.{name}")


def set_correlation_id(corr_id: str | None = None) -> str:
    """Set correlation ID for the current context."""
    if corr_id is None:
        corr_id = str(uuid.uuid4())
    correlation_id.set(corr_id)
    return corr_id


def get_correlation_id() -> str | None:
    """Get the current correlation ID."""
    return correlation_id.get()


class LoggingContext:
    """Context manager that logs the start, end and duration of an operation."""

    def __init__(
        self,
        operation: str,
        log_level: int = logging.DEBUG,
        slow_threshold: float = 1.0,
        **kwargs: Any,
    ):
        """Initialize operation context manager.

        Args:
            operation: Name of the operation
            log_level: Level for start/completion messages
            slow_threshold: Duration in seconds above which completion logs at INFO
            **kwargs: Additional context to include in logs

        """
        self.operation = operation
        self.kwargs = kwargs
        self.logger = get_logger(self.__class__.__module__)
        self.start_time: float | None = None
        self.log_level = log_level
        self.slow_threshold = slow_threshold

    def __enter__(self) -> LoggingContext:
        """Enter the context manager."""
        self.start_time = time.time()
        if correlation_id.get() is None:
            set_correlation_id()
        self.logger.log(
            self.log_level, "Starting %s", self.operation, extra=self.kwargs
        )
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> bool:
        """Exit the context manager."""
        duration = time.time() - self.start_time if self.start_time else 0

        if exc_type is None:
            level = self.log_level
            if duration >= self.slow_threshold:
                level = max(level, logging.INFO)
            self.logger.log(
                level,
                "Completed %s in %.3fs",
                self.operation,
                duration,
                extra=self.kwargs,
            )
        else:
            self.logger.warning(
                "Failed %s in %.3fs: %s",
                self.operation,
                duration,
                exc_val,
                extra=self.kwargs,
            )

        return False  # Don't suppress exceptions


def log_exception(logger: logging.Logger, exc: Exception, context: str = "") -> None:
    """Log an exception with context."""
    if isinstance(exc, NestconfError):
        logger.error(
            "%s: %s",
            context,
            exc.message,
            extra={"details": exc.details},
            exc_info=True,
        )
    else:
        logger.exception("%s: %s", context, exc)
