"""Token engine logging - structured JSON and colored output."""

from .logger import (
    ColoredFormatter,
    LogConfig,
    StructuredLogFormatter,
    TokenLogger,
    configure_logging,
    get_logger,
    reset_loggers,
)

__all__ = [
    "TokenLogger",
    "LogConfig",
    "StructuredLogFormatter",
    "ColoredFormatter",
    "configure_logging",
    "get_logger",
    "reset_loggers",
]
