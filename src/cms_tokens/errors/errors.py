"""Token engine error types."""

from dataclasses import dataclass, field
from datetime import UTC, datetime
from enum import Enum
from typing import Any


class ErrorCategory(str, Enum):
    """Error source categories."""

    CONFIG = "CONFIG"
    CONTEXT = "CONTEXT"
    MODIFIER = "MODIFIER"
    POLICY = "POLICY"
    SYSTEM = "SYSTEM"


@dataclass
class TokenError(Exception):
    """Structured error with context. Base exception for all engine errors.

    Raised only for programming and configuration mistakes (a malformed
    Context, an unknown modifier name in a registry definition, an invalid
    config file). Problems in template text never raise; they are reported
    as issues on the render result instead.
    """

    # Identity
    code: str  # e.g., "CONTEXT_INVALID"
    category: ErrorCategory

    # Messages
    message: str  # Human-readable summary
    detail: str | None = None  # Extended explanation
    suggestion: str | None = None  # Actionable fix

    # Context
    namespace: str | None = None  # Which context namespace was involved
    modifier: str | None = None  # Which modifier was involved

    cause: "TokenError | None" = None

    timestamp: datetime = field(default_factory=lambda: datetime.now(UTC))

    def __post_init__(self) -> None:
        """Set Exception message."""
        super().__init__(self.message)

    def to_dict(self) -> dict[str, Any]:
        """Serialize for API responses.

        Returns:
            Dictionary representation of the error
        """
        return {
            "code": self.code,
            "category": self.category.value,
            "message": self.message,
            "detail": self.detail,
            "suggestion": self.suggestion,
            "namespace": self.namespace,
            "modifier": self.modifier,
            "timestamp": self.timestamp.isoformat(),
            "cause": self.cause.to_dict() if self.cause else None,
        }


@dataclass
class ErrorTemplate:
    """Template for creating errors."""

    code: str
    category: ErrorCategory
    message_template: str  # "Modifier '{modifier}' is not in the catalog"
    detail_template: str | None = None
    suggestion_template: str | None = None
