"""Shared types for the token engine.

Import from here rather than submodules:
    from cms_tokens.types import IssueKind, LogLevel, ValidationResult
"""

from .enums import IssueKind, LogFormat, LogLevel
from .validation import SyntaxValidationResult, ValidationIssue, ValidationResult

__all__ = [
    # Enums
    "LogLevel",
    "LogFormat",
    "IssueKind",
    # Validation
    "ValidationIssue",
    "ValidationResult",
    "SyntaxValidationResult",
]
