"""Render context: named root bindings and a builder for the usual namespaces."""

from collections.abc import Awaitable, Callable, Iterable, Mapping
from dataclasses import dataclass
from datetime import UTC, datetime
from types import MappingProxyType
from typing import Any

from cms_tokens.errors import create_error

LazyResolver = Callable[[list[str]], Any | Awaitable[Any]]

# Site settings that may be exposed to templates by default.
SAFE_SITE_KEYS = (
    "SITE_NAME",
    "HOST_PROD",
    "PKG_VERSION",
    "DEFAULT_CONTENT_LANGUAGE",
    "SEASONS",
)


@dataclass(frozen=True)
class StaticBinding:
    """A plain object graph: mappings, sequences and objects with attributes."""

    value: Any


@dataclass(frozen=True)
class LazyBinding:
    """A resolver called with the path segments below the namespace.

    The resolver may return the value directly or an awaitable. Returning
    None or raising LookupError means the path does not exist.
    """

    resolve: LazyResolver


Binding = StaticBinding | LazyBinding

_PRIMITIVES = (str, bytes, bytearray, int, float, bool)


def to_binding(namespace: str, value: Any) -> Binding:
    """Wrap a raw namespace value.

    Args:
        namespace: Namespace name (for error messages)
        value: Binding, callable, or object graph

    Returns:
        Binding

    Raises:
        TokenError(CONTEXT_INVALID): If the value is a primitive
    """
    if isinstance(value, (StaticBinding, LazyBinding)):
        return value
    if callable(value) and not isinstance(value, type):
        return LazyBinding(value)
    if isinstance(value, _PRIMITIVES):
        raise create_error(
            "CONTEXT_INVALID",
            namespace=namespace,
            detail=f"Binding '{namespace}' is a {type(value).__name__}, "
            "expected an object graph or a resolver callable",
        )
    return StaticBinding(value)


class Context:
    """Set of named root bindings supplied per render call.

    Read-only. The engine never mutates a Context or the values it holds.
    """

    def __init__(self, bindings: Mapping[str, Binding] | None = None):
        self._bindings = MappingProxyType(dict(bindings or {}))

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> "Context":
        """Build a Context from a plain dict.

        Callables become lazy bindings, None values are treated as absent,
        everything else is a static object graph.

        Raises:
            TokenError(CONTEXT_INVALID): If a value is a primitive
        """
        return cls(
            {
                name: to_binding(name, value)
                for name, value in data.items()
                if value is not None
            }
        )

    @classmethod
    def coerce(cls, context: "Context | Mapping[str, Any] | None") -> "Context":
        """Accept a Context, a plain mapping or None."""
        if isinstance(context, Context):
            return context
        if context is None:
            return cls()
        if isinstance(context, Mapping):
            return cls.from_mapping(context)
        raise create_error(
            "CONTEXT_INVALID",
            namespace="*",
            detail=f"Context must be a Context or a mapping, got {type(context).__name__}",
        )

    def get(self, namespace: str) -> Binding | None:
        return self._bindings.get(namespace)

    def __contains__(self, namespace: object) -> bool:
        return namespace in self._bindings

    @property
    def namespaces(self) -> list[str]:
        return list(self._bindings)


class SystemValues:
    """Computed ``system.*`` values around a fixed instant.

    Access patterns:
    - {{ system.now }} → datetime (ISO when rendered)
    - {{ system.timestamp }} → seconds since epoch
    - {{ system.date }} / {{ system.time }} → "2024-01-15" / "10:30:00"
    - {{ system.year }} ... {{ system.second }} → integers
    - {{ system.language }} → content language, "en" by default
    """

    FIELDS = (
        "now",
        "timestamp",
        "date",
        "time",
        "year",
        "month",
        "day",
        "hour",
        "minute",
        "second",
        "language",
    )

    def __init__(self, now: datetime | None = None, language: str = "en"):
        self.now = now or datetime.now(UTC)
        self.language = language

    def __call__(self, segments: list[str]) -> Any:
        if len(segments) != 1 or segments[0] not in self.FIELDS:
            return None
        return getattr(self, f"_{segments[0]}")()

    def _now(self) -> datetime:
        return self.now

    def _timestamp(self) -> int:
        return int(self.now.timestamp())

    def _date(self) -> str:
        return self.now.date().isoformat()

    def _time(self) -> str:
        return self.now.strftime("%H:%M:%S")

    def _year(self) -> int:
        return self.now.year

    def _month(self) -> int:
        return self.now.month

    def _day(self) -> int:
        return self.now.day

    def _hour(self) -> int:
        return self.now.hour

    def _minute(self) -> int:
        return self.now.minute

    def _second(self) -> int:
        return self.now.second

    def _language(self) -> str:
        return self.language


class ContextBuilder:
    """Build a Context for the namespaces the CMS provides."""

    def __init__(self) -> None:
        self._bindings: dict[str, Binding] = {}

    def with_namespace(self, namespace: str, value: Any) -> "ContextBuilder":
        """Bind any namespace to an object graph or resolver callable."""
        self._bindings[namespace] = to_binding(namespace, value)
        return self

    def with_entry(self, entry: Any) -> "ContextBuilder":
        """Bind the content entry being rendered."""
        return self.with_namespace("entry", entry)

    def with_user(self, user: Any) -> "ContextBuilder":
        """Bind the current user.

        The Security Policy still filters ``user.*`` paths; callers should
        not pass credential fields here in the first place.
        """
        return self.with_namespace("user", user)

    def with_site(
        self,
        settings: Mapping[str, Any],
        safe_keys: Iterable[str] = SAFE_SITE_KEYS,
    ) -> "ContextBuilder":
        """Bind public site settings, keeping only ``safe_keys``."""
        keys = set(safe_keys)
        return self.with_namespace(
            "site", {key: value for key, value in settings.items() if key in keys}
        )

    def with_system(self, now: datetime | None = None, language: str = "en") -> "ContextBuilder":
        """Bind computed ``system.*`` values.

        Args:
            now: Instant to report (defaults to the current UTC time)
            language: Content language code
        """
        return self.with_namespace("system", SystemValues(now=now, language=language))

    def build(self) -> Context:
        """Get the built Context."""
        return Context(self._bindings)
