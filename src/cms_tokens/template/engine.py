"""Token engine: renders template strings and JSON documents."""

import json
from collections.abc import Mapping
from datetime import date, datetime, time
from typing import Any

from cms_tokens.logging import get_logger
from cms_tokens.types import IssueKind, SyntaxValidationResult

from .context import Context
from .modifiers import ModifierRegistry, ModifierTypeMismatch, UnknownModifierError
from .parser import parse
from .resolver import PathResolver
from .scanner import OPEN, scan
from .security import SecurityPolicy
from .types import Issue, Outcome, ParseFailure, RawToken, RenderResult, Token
from .validator import extract_token_paths, validate_token_syntax

ContextLike = Context | Mapping[str, Any] | None

logger = get_logger("renderer")


def to_text(value: Any) -> str:
    """Coerce a resolved value to its substitution text.

    None renders empty, booleans as ``true``/``false``, whole floats without
    a fraction, dates as ISO 8601, mappings and sequences as JSON.
    """
    if value is None:
        return ""
    if isinstance(value, str):
        return value
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    if isinstance(value, (datetime, date, time)):
        return value.isoformat()
    if isinstance(value, (Mapping, list, tuple)):
        try:
            return json.dumps(value, default=str, ensure_ascii=False)
        except (TypeError, ValueError):
            # Non-string keys or a reference cycle
            return str(value)
    return str(value)


class TokenEngine:
    """Render ``{{ namespace.path | modifier(args) }}`` tokens.

    Supports:
    - Variable access: {{ entry.title }}
    - Nested and indexed access: {{ entry.tags.0.name }}
    - Modifier chains: {{ entry.price | gt(10) | if("Big", "Small") }}
    - Escapes: \\{{ renders a literal {{

    Does NOT support:
    - Expressions, loops or assignment
    - Re-rendering of resolved values (a value containing {{ is emitted as-is)

    A token that cannot be rendered becomes an empty string and an Issue on
    the result. Rendering never raises for template content.
    """

    def __init__(
        self,
        policy: SecurityPolicy | None = None,
        modifiers: ModifierRegistry | None = None,
        colon_arguments: bool = True,
    ):
        """Initialize token engine.

        Args:
            policy: Security policy (defaults to SecurityPolicy.default())
            modifiers: Modifier registry (defaults to the built-in catalog)
            colon_arguments: Accept the legacy ``name:arg`` modifier form
        """
        self._policy = SecurityPolicy.default() if policy is None else policy
        self._modifiers = ModifierRegistry.default() if modifiers is None else modifiers
        self._resolver = PathResolver(self._policy)
        self._colon_arguments = colon_arguments

    @property
    def policy(self) -> SecurityPolicy:
        return self._policy

    @property
    def modifiers(self) -> ModifierRegistry:
        return self._modifiers

    async def render(self, template: str, context: ContextLike = None) -> RenderResult:
        """Render a template string.

        Args:
            template: Text that may contain tokens
            context: Context, or a plain mapping of namespace to value

        Returns:
            RenderResult with output text and issues

        Raises:
            TypeError: If template is not a string
            TokenError(CONTEXT_INVALID): If the context cannot be used
            TokenError(INTERNAL_ERROR): If the Context holds a non-Binding value
        """
        if not isinstance(template, str):
            raise TypeError(f"template must be a string, got {type(template).__name__}")
        if OPEN not in template:
            return RenderResult(output=template)
        return await self._render_string(template, Context.coerce(context))

    async def render_json(
        self,
        value: Any,
        context: ContextLike = None,
        issues: list[Issue] | None = None,
    ) -> Any:
        """Render every string leaf of a JSON-like value.

        Mappings and sequences are rebuilt with the same keys and lengths,
        lists stay lists and tuples stay tuples. Non-string leaves are
        returned unchanged.

        Args:
            value: JSON-like value
            context: Context, or a plain mapping of namespace to value
            issues: Optional list that collects issues from all leaves

        Returns:
            Value of identical shape
        """
        return await self._render_value(value, Context.coerce(context), issues)

    def validate(self, template: Any) -> SyntaxValidationResult:
        """Lint every string in ``template`` (a string or a JSON-like value)."""
        errors: list[str] = []

        def validate_value(value: Any) -> None:
            if isinstance(value, str):
                for error in validate_token_syntax(value).errors:
                    if error not in errors:
                        errors.append(error)
            elif isinstance(value, Mapping):
                for item in value.values():
                    validate_value(item)
            elif isinstance(value, (list, tuple)):
                for item in value:
                    validate_value(item)

        validate_value(template)
        return SyntaxValidationResult(valid=not errors, errors=errors)

    def extract_paths(self, template: Any) -> list[str]:
        """Dotted paths referenced anywhere in ``template``, without duplicates.

        Useful for deciding which namespaces a Context needs.
        """
        paths: list[str] = []

        def extract_value(value: Any) -> None:
            if isinstance(value, str):
                paths.extend(p for p in extract_token_paths(value) if p not in paths)
            elif isinstance(value, Mapping):
                for item in value.values():
                    extract_value(item)
            elif isinstance(value, (list, tuple)):
                for item in value:
                    extract_value(item)

        extract_value(template)
        return paths

    async def _render_value(self, value: Any, context: Context, issues: list[Issue] | None) -> Any:
        if isinstance(value, str):
            if OPEN not in value:
                return value
            result = await self._render_string(value, context)
            if issues is not None:
                issues.extend(result.issues)
            return result.output
        elif isinstance(value, Mapping):
            return {
                key: await self._render_value(item, context, issues) for key, item in value.items()
            }
        elif isinstance(value, list):
            return [await self._render_value(item, context, issues) for item in value]
        elif isinstance(value, tuple):
            return tuple([await self._render_value(item, context, issues) for item in value])
        else:
            return value

    async def _render_string(self, template: str, context: Context) -> RenderResult:
        output: list[str] = []
        issues: list[Issue] = []
        replaced: list[str] = []

        for segment in scan(template):
            if isinstance(segment, RawToken):
                rendered = await self._render_token(segment, context, issues)
                if rendered is not None:
                    path, text = rendered
                    output.append(text)
                    replaced.append(path)
            else:
                output.append(segment.text)

        if issues:
            logger.debug(
                "Rendered template with issues",
                replaced_count=len(replaced),
                issue_count=len(issues),
            )
        return RenderResult(output="".join(output), issues=issues, replaced=replaced)

    async def _render_token(
        self,
        raw: RawToken,
        context: Context,
        issues: list[Issue],
    ) -> tuple[str, str] | None:
        """Render one raw token.

        Returns:
            (dotted path, text), or None after recording an Issue
        """
        parsed = parse(raw.content, raw.span, self._colon_arguments)
        if isinstance(parsed, ParseFailure):
            issues.append(
                Issue(IssueKind.PARSE_FAILURE, raw.content.strip(), parsed.reason, raw.span)
            )
            return None

        resolution = await self._resolver.resolve(parsed.namespace, parsed.segments, context)
        if resolution.outcome is Outcome.BLOCKED:
            issues.append(
                Issue(
                    IssueKind.BLOCKED,
                    parsed.dotted_path,
                    resolution.reason or "Access denied",
                    raw.span,
                )
            )
            return None
        if resolution.outcome is Outcome.UNRESOLVED:
            issues.append(
                Issue(
                    IssueKind.UNRESOLVED,
                    parsed.dotted_path,
                    resolution.reason or f"'{parsed.dotted_path}' not found",
                    raw.span,
                )
            )
            return None

        try:
            value = self._policy.redact(parsed.namespace, parsed.segments, resolution.value)
        except ValueError as e:
            issues.append(Issue(IssueKind.UNRESOLVED, parsed.dotted_path, str(e), raw.span))
            return None

        text = await self._apply_modifiers(parsed, value, issues)
        if text is None:
            return None
        return parsed.dotted_path, text

    async def _apply_modifiers(self, token: Token, value: Any, issues: list[Issue]) -> str | None:
        if not token.modifiers:
            return to_text(value)
        try:
            value = await self._modifiers.apply(token.modifiers, value)
        except UnknownModifierError as e:
            logger.warning("Unknown modifier", modifier=e.name, path=token.dotted_path)
            issues.append(
                Issue(IssueKind.UNKNOWN_MODIFIER, token.dotted_path, str(e), token.raw_span)
            )
            return None
        except ModifierTypeMismatch as e:
            issues.append(
                Issue(IssueKind.MODIFIER_TYPE_MISMATCH, token.dotted_path, str(e), token.raw_span)
            )
            return None
        return to_text(value)


# Default engine, built on first use
_default_engine: TokenEngine | None = None


def get_default_engine() -> TokenEngine:
    """Get the engine with the default policy and the built-in modifiers."""
    global _default_engine  # noqa: PLW0603
    if _default_engine is None:
        _default_engine = TokenEngine()
    return _default_engine


async def render(
    template: str,
    context: ContextLike = None,
    *,
    engine: TokenEngine | None = None,
) -> RenderResult:
    """Render ``template`` with ``engine`` (or the default engine)."""
    return await (engine or get_default_engine()).render(template, context)


async def render_json(
    value: Any,
    context: ContextLike = None,
    *,
    engine: TokenEngine | None = None,
    issues: list[Issue] | None = None,
) -> Any:
    """Render every string leaf of ``value`` with ``engine`` (or the default engine)."""
    return await (engine or get_default_engine()).render_json(value, context, issues)
