"""Error factory for creating TokenErrors."""

from typing import Any

from .errors import TokenError
from .registry import ErrorRegistry


class ErrorFactory:
    """Creates TokenErrors from registered templates."""

    def __init__(self, registry: ErrorRegistry | None = None):
        """Initialize error factory.

        Args:
            registry: Error registry (defaults to new ErrorRegistry())
        """
        self.registry = registry or ErrorRegistry()

    def create(
        self,
        code: str,
        context: dict[str, Any] | None = None,
        cause: TokenError | None = None,
        **kwargs: Any,
    ) -> TokenError:
        """Create TokenError directly from code.

        Args:
            code: Error code
            context: Context variables for template interpolation
            cause: Optional cause error
            **kwargs: Additional context variables

        Returns:
            TokenError instance
        """
        merged_context = dict(context or {})
        merged_context.update(kwargs)

        return self.registry.create(code=code, context=merged_context, cause=cause)


# Convenience singleton
_default_factory: ErrorFactory | None = None


def get_error_factory() -> ErrorFactory:
    """Get default error factory singleton."""
    global _default_factory  # noqa: PLW0603
    if _default_factory is None:
        _default_factory = ErrorFactory()
    return _default_factory


def create_error(code: str, **context: Any) -> TokenError:
    """Convenience function to create error.

    Args:
        code: Error code
        **context: Context variables for template interpolation

    Returns:
        TokenError instance
    """
    return get_error_factory().create(code, context)
