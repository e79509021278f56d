"""Error registry for creating errors from templates."""

from typing import Any

from .errors import ErrorCategory, ErrorTemplate, TokenError


class ErrorRegistry:
    """Registry of error templates. Creates errors from templates + context."""

    def __init__(self) -> None:
        """Initialize error registry with built-in templates."""
        self._templates: dict[str, ErrorTemplate] = {}
        self._load_builtin_templates()

    def get_template(self, code: str) -> ErrorTemplate | None:
        """Get template by error code.

        Args:
            code: Error code to look up

        Returns:
            ErrorTemplate if found, None otherwise
        """
        return self._templates.get(code)

    def list_codes(self) -> list[str]:
        """List all registered error codes."""
        return list(self._templates.keys())

    def create(
        self,
        code: str,
        context: dict[str, Any] | None = None,
        cause: TokenError | None = None,
    ) -> TokenError:
        """Create error instance from template + context.

        A ``detail`` key in the context replaces the template's detail text.

        Args:
            code: Error code
            context: Context variables for template interpolation
            cause: Optional cause error

        Returns:
            TokenError instance

        Raises:
            ValueError: If error code not found
        """
        template = self.get_template(code)
        if not template:
            msg = f"Unknown error code: {code}"
            raise ValueError(msg)

        context = context or {}

        message = self._interpolate(template.message_template, context)
        detail = context.get("detail") or self._interpolate(template.detail_template, context)
        suggestion = self._interpolate(template.suggestion_template, context)

        if message is None:
            message = f"Error {code}"

        return TokenError(
            code=template.code,
            category=template.category,
            message=message,
            detail=detail,
            suggestion=suggestion,
            namespace=context.get("namespace"),
            modifier=context.get("modifier"),
            cause=cause,
        )

    def _interpolate(
        self,
        template: str | None,
        context: dict[str, Any],
    ) -> str | None:
        """Safe string interpolation.

        Args:
            template: Template string with {var} placeholders
            context: Context variables

        Returns:
            Interpolated string or None if template is None
        """
        if template is None:
            return None

        try:
            return template.format(**context)
        except KeyError:
            # Missing context variable - return template as-is
            return template

    def _load_builtin_templates(self) -> None:
        """Load hardcoded built-in templates."""
        self._templates["CONTEXT_INVALID"] = ErrorTemplate(
            code="CONTEXT_INVALID",
            category=ErrorCategory.CONTEXT,
            message_template="Context binding '{namespace}' is invalid",
            detail_template="A binding must be an object graph or a resolver callable",
            suggestion_template="Pass a mapping, an object or a callable for each namespace",
        )

        self._templates["MODIFIER_UNKNOWN"] = ErrorTemplate(
            code="MODIFIER_UNKNOWN",
            category=ErrorCategory.MODIFIER,
            message_template="Modifier '{modifier}' is not in the catalog",
            detail_template="Only built-in modifiers can be enabled or disabled by name",
            suggestion_template="Check the modifier name against ModifierRegistry.describe()",
        )

        self._templates["MODIFIER_INVALID"] = ErrorTemplate(
            code="MODIFIER_INVALID",
            category=ErrorCategory.MODIFIER,
            message_template="Modifier '{modifier}' cannot be registered",
            detail_template="Modifier names must be identifiers and implementations callable",
            suggestion_template="Rename the modifier or pass a function",
        )

        self._templates["POLICY_INVALID"] = ErrorTemplate(
            code="POLICY_INVALID",
            category=ErrorCategory.POLICY,
            message_template="Security rule for '{namespace}' is invalid",
            detail_template="Denied paths must be non-empty dotted paths",
            suggestion_template="Remove empty entries from the rule",
        )

        self._templates["CONFIG_INVALID"] = ErrorTemplate(
            code="CONFIG_INVALID",
            category=ErrorCategory.CONFIG,
            message_template="Invalid configuration",
            detail_template="The token engine configuration is invalid",
            suggestion_template="Check the configuration file and fix errors",
        )

        self._templates["INTERNAL_ERROR"] = ErrorTemplate(
            code="INTERNAL_ERROR",
            category=ErrorCategory.SYSTEM,
            message_template="Internal error",
            detail_template="An unexpected invariant was violated",
            suggestion_template="Report this issue with the template and context shape",
        )
