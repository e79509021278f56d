"""Field-level security policy for token paths.

The policy only ever sees the namespace and the path segments. It runs before
the Context is consulted, so a blocked path never reaches a binding (and never
triggers a lazy lookup for a restricted field).
"""

import dataclasses
import inspect
from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from datetime import date, time
from decimal import Decimal
from enum import Enum
from types import MappingProxyType
from typing import Any

from cms_tokens.errors import create_error

WILDCARD = "*"

# Composite values nested deeper than this are not rendered
MAX_REDACT_DEPTH = 64

_SCALARS = (str, bytes, bytearray, int, float, bool, Decimal, date, time)

# Fields of the user namespace that may appear in templates.
DEFAULT_USER_FIELDS = ("_id", "email", "username", "role", "avatar", "language", "name")


@dataclass(frozen=True)
class NamespaceRule:
    """Access rule for one namespace. All names are stored lowercased.

    - ``deny``: dotted sub-paths; a path is blocked if any of its prefixes matches.
    - ``deny_segments``: names blocked wherever they appear below the namespace.
    - ``allow``: when set, the first segment must be one of these.
    """

    deny: frozenset[tuple[str, ...]] = frozenset()
    deny_segments: frozenset[str] = frozenset()
    allow: frozenset[str] | None = None

    @classmethod
    def build(
        cls,
        deny: Iterable[str] = (),
        deny_segments: Iterable[str] = (),
        allow: Iterable[str] | None = None,
        namespace: str = WILDCARD,
    ) -> "NamespaceRule":
        """Build a rule from dotted strings.

        Args:
            deny: Dotted sub-paths, e.g. ``"password"`` or ``"profile.ssn"``
            deny_segments: Segment names, e.g. ``"token"``
            allow: Allowed first segments, or None for no allowlist
            namespace: Namespace name, used in error messages

        Returns:
            NamespaceRule

        Raises:
            TokenError(POLICY_INVALID): On empty paths or empty segments
        """
        denied: set[tuple[str, ...]] = set()
        for path in deny:
            parts = tuple(part.strip().lower() for part in str(path).split("."))
            if not all(parts):
                raise create_error(
                    "POLICY_INVALID",
                    namespace=namespace,
                    detail=f"Denied path {path!r} has an empty segment",
                )
            denied.add(parts)

        segments = frozenset(str(name).strip().lower() for name in deny_segments)
        if "" in segments:
            raise create_error(
                "POLICY_INVALID", namespace=namespace, detail="Denied segment names cannot be empty"
            )

        allowed = None if allow is None else frozenset(str(name).lower() for name in allow)
        return cls(deny=frozenset(denied), deny_segments=segments, allow=allowed)

    def denial(self, segments: tuple[str, ...]) -> str | None:
        """Return why ``segments`` are denied by this rule, or None."""
        for i in range(1, len(segments) + 1):
            if segments[:i] in self.deny:
                return f"'{'.'.join(segments[:i])}' is restricted"
        for segment in segments:
            if segment in self.deny_segments:
                return f"'{segment}' is restricted"
        if self.allow is not None and segments and segments[0] not in self.allow:
            return f"'{segments[0]}' is not an allowed field"
        return None


class SecurityPolicy:
    """Per-namespace allow/deny rules.

    Immutable after construction; derive a new policy with ``with_rule``.
    A rule stored under ``"*"`` applies to every namespace.
    """

    def __init__(self, rules: Mapping[str, NamespaceRule] | None = None):
        """Initialize policy.

        Args:
            rules: Namespace name (case-insensitive) to rule
        """
        self._rules = MappingProxyType({name.lower(): rule for name, rule in (rules or {}).items()})

    @classmethod
    def default(cls) -> "SecurityPolicy":
        """Policy protecting credentials and restricting the user namespace."""
        return cls(
            {
                WILDCARD: NamespaceRule.build(
                    deny_segments=["password", "hashed_password", "secret"],
                ),
                "user": NamespaceRule.build(
                    deny=["password", "hashed_password"],
                    deny_segments=["token", "secret"],
                    allow=DEFAULT_USER_FIELDS,
                    namespace="user",
                ),
            }
        )

    @classmethod
    def permissive(cls) -> "SecurityPolicy":
        """Policy with no rules. Intended for tests and trusted server templates."""
        return cls()

    @property
    def rules(self) -> Mapping[str, NamespaceRule]:
        return self._rules

    def with_rule(self, namespace: str, rule: NamespaceRule) -> "SecurityPolicy":
        """Return a copy of this policy with ``rule`` set for ``namespace``."""
        rules = dict(self._rules)
        rules[namespace.lower()] = rule
        return SecurityPolicy(rules)

    def _applicable(self, namespace: str) -> list[NamespaceRule]:
        return [
            rule
            for rule in (self._rules.get(WILDCARD), self._rules.get(namespace.lower()))
            if rule is not None
        ]

    def denial(self, namespace: str, segments: Iterable[str]) -> str | None:
        """Explain why a path is blocked.

        Args:
            namespace: First path segment
            segments: Remaining path segments

        Returns:
            Reason string if blocked, None if allowed
        """
        rules = self._applicable(namespace)
        if not rules:
            return None

        lowered = tuple(segment.lower() for segment in segments)
        if not lowered:
            # The whole namespace object would be serialized, restricted fields included
            return f"'{namespace}' cannot be rendered as a whole"

        for rule in rules:
            reason = rule.denial(lowered)
            if reason:
                return reason
        return None

    def is_blocked(self, namespace: str, segments: Iterable[str]) -> bool:
        """Check a path against the policy. Pure; never touches a Context."""
        return self.denial(namespace, segments) is not None

    def redact(self, namespace: str, segments: Iterable[str], value: Any) -> Any:
        """Copy a resolved value with every restricted field removed.

        Used before a token value is serialized or handed to modifiers, since
        its string form would otherwise include nested fields the path check
        never saw. Mappings, lists and tuples are copied; objects become a dict
        of their public, non-callable attributes. Each nested key is checked
        with its full path (token segments plus key), so ``deny`` sub-paths
        such as ``profile.ssn`` apply inside ``{{ entry.profile }}``.

        Args:
            namespace: Namespace the value was resolved from
            segments: Path segments of the token
            value: Resolved value

        Returns:
            Redacted copy of ``value``; scalars are returned unchanged

        Raises:
            ValueError: If the value is nested deeper than MAX_REDACT_DEPTH
        """
        rules = self._applicable(namespace)
        path = tuple(segment.lower() for segment in segments)
        return _redact(value, path, rules, 0)


def _public_attributes(value: Any) -> dict[str, Any] | None:
    """Public, non-callable attributes of an object, or None for opaque values."""
    if isinstance(value, (type, Enum)) or inspect.isroutine(value):
        return None
    if dataclasses.is_dataclass(value):
        names = [field.name for field in dataclasses.fields(value)]
        attributes = {name: getattr(value, name) for name in names}
    elif hasattr(value, "__dict__"):
        attributes = dict(vars(value))
    else:
        return None
    return {
        name: item
        for name, item in attributes.items()
        if not name.startswith("_") and not callable(item)
    }


def _denied(path: tuple[str, ...], rules: list[NamespaceRule]) -> bool:
    return any(rule.denial(path) for rule in rules)


def _redact(value: Any, path: tuple[str, ...], rules: list[NamespaceRule], depth: int) -> Any:
    if value is None or isinstance(value, _SCALARS):
        return value
    if depth >= MAX_REDACT_DEPTH:
        raise ValueError(f"value is nested more than {MAX_REDACT_DEPTH} levels deep")

    if isinstance(value, (list, tuple)):
        items: Iterable[tuple[Any, Any]] = enumerate(value)
    elif isinstance(value, Mapping):
        items = value.items()
    else:
        attributes = _public_attributes(value)
        if attributes is None:
            return value
        items = attributes.items()

    redacted = {}
    for key, item in items:
        item_path = (*path, str(key).lower())
        if rules and _denied(item_path, rules):
            continue
        redacted[key] = _redact(item, item_path, rules, depth + 1)

    if isinstance(value, (list, tuple)):
        return list(redacted.values())
    return redacted
