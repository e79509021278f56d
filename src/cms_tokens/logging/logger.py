"""Structured logging for the token engine.

Provides JSON logging with automatic OpenTelemetry trace context injection,
and a colored formatter for local development.

Usage:
    from cms_tokens.logging import get_logger

    logger = get_logger("renderer")
    logger.warning("Token blocked", namespace="user")
"""

import json
import logging
import sys
from dataclasses import dataclass
from datetime import UTC, datetime
from typing import Any, TextIO

from opentelemetry import trace

from cms_tokens.logging.colors import (
    CYAN,
    GREEN,
    LIGHT_BLUE,
    MAGENTA,
    ORANGE,
    RED,
    RESET,
    YELLOW,
)
from cms_tokens.types import LogFormat, LogLevel

ROOT_LOGGER = "cms_tokens"

# Attributes every LogRecord carries; anything else came in through ``extra``.
_RESERVED_ATTRS = frozenset(
    {
        "name", "msg", "args", "created", "filename", "funcName",
        "levelname", "levelno", "lineno", "module", "msecs",
        "pathname", "process", "processName", "relativeCreated",
        "stack_info", "exc_info", "exc_text", "thread", "threadName",
        "message", "taskName",
    }
)

_LEVELS = {
    LogLevel.DEBUG: logging.DEBUG,
    LogLevel.INFO: logging.INFO,
    LogLevel.WARN: logging.WARNING,
    LogLevel.ERROR: logging.ERROR,
}


def _extra_fields(record: logging.LogRecord) -> dict[str, Any]:
    return {k: v for k, v in record.__dict__.items() if k not in _RESERVED_ATTRS}


def _component(record: logging.LogRecord) -> str:
    return record.name.rsplit(".", 1)[-1]


class StructuredLogFormatter(logging.Formatter):
    """JSON formatter with trace context injection.

    Formats log records as JSON with:
    - timestamp (ISO 8601)
    - level
    - component (last part of the logger name)
    - message
    - trace_id / span_id (if a span is recording)
    - Additional fields from extra
    """

    def format(self, record: logging.LogRecord) -> str:
        """Format log record as JSON.

        Args:
            record: Log record to format

        Returns:
            JSON-formatted log string
        """
        log_data: dict[str, Any] = {
            "timestamp": datetime.now(UTC).isoformat().replace("+00:00", "Z"),
            "level": record.levelname,
            "component": _component(record),
            "message": record.getMessage(),
        }

        span = trace.get_current_span()
        if span and span.is_recording():
            ctx = span.get_span_context()
            if ctx.is_valid:
                log_data["trace_id"] = format(ctx.trace_id, "032x")
                log_data["span_id"] = format(ctx.span_id, "016x")

        log_data.update(_extra_fields(record))
        if record.exc_info:
            log_data["exception"] = self.formatException(record.exc_info)

        return json.dumps(log_data, default=str)


class ColoredFormatter(logging.Formatter):
    """Human-readable formatter: ``[COMPONENT] message {fields}``."""

    LEVEL_COLORS = {
        logging.DEBUG: LIGHT_BLUE,
        logging.INFO: CYAN,
        logging.WARNING: YELLOW,
        logging.ERROR: RED,
    }
    COMPONENT_COLORS = {
        "renderer": MAGENTA,
        "engine": MAGENTA,
        "resolver": GREEN,
        "security": ORANGE,
    }

    def __init__(self, truncate_at: int = 200):
        super().__init__()
        self.truncate_at = truncate_at

    def format(self, record: logging.LogRecord) -> str:
        component = _component(record)
        color = self.LEVEL_COLORS.get(record.levelno, RESET)
        component_color = self.COMPONENT_COLORS.get(component, RESET)

        output = (
            f"{component_color}[{component.upper()}]{RESET} "
            f"{color}{record.getMessage()}{RESET}"
        )

        fields = _extra_fields(record)
        if fields:
            context_str = str(fields)
            if len(context_str) > self.truncate_at:
                context_str = context_str[: self.truncate_at] + "..."
            output += f" {LIGHT_BLUE}{context_str}{RESET}"

        if record.exc_info:
            output += "\n" + self.formatException(record.exc_info)
        return output


@dataclass
class LogConfig:
    """Logger configuration."""

    level: LogLevel = LogLevel.INFO
    format: LogFormat = LogFormat.JSON
    truncate_at: int = 200
    output: TextIO | None = None  # defaults to stderr


def configure_logging(config: LogConfig | None = None) -> logging.Logger:
    """Install a single handler on the package root logger.

    Calling it again replaces the previous handler (hot-reload).

    Args:
        config: Logger configuration (defaults to LogConfig())

    Returns:
        The configured ``cms_tokens`` logger
    """
    config = config or LogConfig()
    root = logging.getLogger(ROOT_LOGGER)

    for handler in list(root.handlers):
        if getattr(handler, "_cms_tokens_handler", False):
            root.removeHandler(handler)

    handler = logging.StreamHandler(config.output or sys.stderr)
    if config.format == LogFormat.JSON:
        handler.setFormatter(StructuredLogFormatter())
    else:
        handler.setFormatter(ColoredFormatter(truncate_at=config.truncate_at))
    handler._cms_tokens_handler = True  # type: ignore[attr-defined]

    root.addHandler(handler)
    root.setLevel(_LEVELS.get(config.level, logging.INFO))
    return root


class TokenLogger:
    """Structured logger that takes fields as keyword arguments.

    Wraps Python logging so call sites read
    ``logger.warning("Token blocked", namespace="user")`` and the fields land
    in the record's ``extra``.
    """

    def __init__(self, name: str):
        """Initialize logger.

        Args:
            name: Component name, appended to the package logger name
        """
        self._logger = logging.getLogger(f"{ROOT_LOGGER}.{name}")

    @property
    def name(self) -> str:
        return self._logger.name

    def _log(self, level: int, message: str, **kwargs: Any) -> None:
        self._logger.log(level, message, extra=kwargs)

    def debug(self, message: str, **kwargs: Any) -> None:
        """Log debug message."""
        self._log(logging.DEBUG, message, **kwargs)

    def info(self, message: str, **kwargs: Any) -> None:
        """Log info message."""
        self._log(logging.INFO, message, **kwargs)

    def warning(self, message: str, **kwargs: Any) -> None:
        """Log warning message."""
        self._log(logging.WARNING, message, **kwargs)

    def error(self, message: str, **kwargs: Any) -> None:
        """Log error message."""
        self._log(logging.ERROR, message, **kwargs)

    def exception(self, message: str, **kwargs: Any) -> None:
        """Log exception with traceback."""
        self._logger.exception(message, extra=kwargs)


# Logger cache
_loggers: dict[str, TokenLogger] = {}


def get_logger(name: str) -> TokenLogger:
    """Get or create a structured logger.

    Args:
        name: Logger name (component name)

    Returns:
        TokenLogger instance
    """
    if name not in _loggers:
        _loggers[name] = TokenLogger(name)
    return _loggers[name]


def reset_loggers() -> None:
    """Reset logger cache (for testing)."""
    _loggers.clear()
