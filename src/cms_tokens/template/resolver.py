"""Path resolution against a Context, gated by the Security Policy."""

import inspect
import logging
from collections.abc import Mapping, Sequence
from typing import Any

from cms_tokens.errors import create_error

from .context import Context, LazyBinding, StaticBinding
from .security import SecurityPolicy
from .types import UNRESOLVED, Outcome, Resolution

logger = logging.getLogger(__name__)

_MISSING = object()
_SCALARS = (str, bytes, bytearray, int, float, bool)


def walk(value: Any, segments: Sequence[str]) -> Any:
    """Follow ``segments`` through an object graph.

    Mappings are read by key, lists and tuples by integer index, other
    objects by public, non-callable attribute.

    Args:
        value: Root value
        segments: Path segments

    Returns:
        The value found, or ``_MISSING``
    """
    current = value
    for segment in segments:
        if isinstance(current, Mapping):
            current = current.get(segment, _MISSING)
        elif isinstance(current, (list, tuple)):
            if not (segment.isascii() and segment.isdigit()) or int(segment) >= len(current):
                return _MISSING
            current = current[int(segment)]
        elif current is None or isinstance(current, _SCALARS):
            return _MISSING
        else:
            if segment.startswith("_"):
                return _MISSING
            current = getattr(current, segment, _MISSING)
            if callable(current):
                return _MISSING
        if current is _MISSING:
            return _MISSING
    return current


class PathResolver:
    """Resolve ``namespace.segments`` paths.

    The policy check runs first, so a blocked path never touches the binding.
    """

    def __init__(self, policy: SecurityPolicy):
        """Initialize resolver.

        Args:
            policy: Security policy consulted before every lookup
        """
        self._policy = policy

    @property
    def policy(self) -> SecurityPolicy:
        return self._policy

    async def resolve(
        self,
        namespace: str,
        segments: Sequence[str],
        context: Context,
    ) -> Resolution:
        """Resolve a path.

        Args:
            namespace: First path segment
            segments: Remaining path segments
            context: Render context

        Returns:
            Resolution (resolved value, UNRESOLVED or BLOCKED)

        Raises:
            TokenError(INTERNAL_ERROR): If the binding is not a Binding
        """
        denial = self._policy.denial(namespace, segments)
        if denial:
            logger.warning("Blocked access to restricted token", extra={"namespace": namespace})
            return Resolution(Outcome.BLOCKED, reason=denial)

        binding = context.get(namespace)
        if binding is None:
            return Resolution(Outcome.UNRESOLVED, reason=f"Unknown namespace '{namespace}'")

        if isinstance(binding, StaticBinding):
            try:
                value = walk(binding.value, segments)
            except Exception as e:
                # Properties and custom mappings can raise on read
                logger.warning(
                    "Static binding lookup failed",
                    extra={"namespace": namespace, "error": f"{type(e).__name__}: {e}"},
                )
                return Resolution(Outcome.UNRESOLVED, reason=f"Lookup in '{namespace}' failed: {e}")
            if value is _MISSING:
                return UNRESOLVED
            return Resolution(Outcome.RESOLVED, value)

        if isinstance(binding, LazyBinding):
            return await self._resolve_lazy(namespace, binding, segments)

        raise create_error(
            "INTERNAL_ERROR",
            detail=f"Binding '{namespace}' is a {type(binding).__name__}, not a Binding",
        )

    async def _resolve_lazy(
        self,
        namespace: str,
        binding: LazyBinding,
        segments: Sequence[str],
    ) -> Resolution:
        try:
            value = binding.resolve(list(segments))
            if inspect.isawaitable(value):
                value = await value
        except LookupError:
            return UNRESOLVED
        except Exception as e:
            logger.warning(
                "Lazy binding failed",
                extra={"namespace": namespace, "error": f"{type(e).__name__}: {e}"},
            )
            return Resolution(Outcome.UNRESOLVED, reason=f"Resolver for '{namespace}' failed: {e}")

        if value is None:
            return UNRESOLVED
        return Resolution(Outcome.RESOLVED, value)
