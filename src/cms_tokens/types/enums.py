"""Shared enumerations for the token engine."""

from enum import Enum


class LogLevel(str, Enum):
    """Log verbosity level."""

    DEBUG = "DEBUG"
    INFO = "INFO"
    WARN = "WARN"
    ERROR = "ERROR"


class LogFormat(str, Enum):
    """Log output format."""

    COLORED = "colored"
    JSON = "json"


class IssueKind(str, Enum):
    """Why a token rendered as an empty string."""

    PARSE_FAILURE = "parse_failure"
    UNRESOLVED = "unresolved"
    BLOCKED = "blocked"
    UNKNOWN_MODIFIER = "unknown_modifier"
    MODIFIER_TYPE_MISMATCH = "modifier_type_mismatch"
