"""Modifier implementations and the modifier registry.

A modifier is called as ``fn(value, *args)``. It raises TypeError or
ValueError when it cannot operate on its input (``upper`` on a number,
``divide(0)``); the renderer turns that into an empty substitution.
"""

import html
import inspect
import json
import math
import posixpath
import re
from collections.abc import Callable, Iterable, Mapping
from decimal import ROUND_HALF_UP, Decimal
from types import MappingProxyType
from typing import Any
from urllib.parse import quote, urlsplit, urlunsplit

from cms_tokens.errors import create_error

from .dates import format_date
from .types import ModifierCall

Modifier = Callable[..., Any]

IDENTIFIER = re.compile(r"^[A-Za-z_]\w*$")


class UnknownModifierError(LookupError):
    """A modifier chain names a modifier the registry does not have."""

    def __init__(self, name: str):
        super().__init__(f"Unknown modifier: {name}")
        self.name = name


class ModifierTypeMismatch(Exception):
    """A modifier could not operate on its input or arguments."""

    def __init__(self, name: str, reason: str):
        super().__init__(f"Modifier '{name}' failed: {reason}")
        self.name = name
        self.reason = reason


# =============================================================================
# Coercion helpers
# =============================================================================


def _text(value: Any, name: str) -> str:
    if not isinstance(value, str):
        raise TypeError(f"{name} expects text, got {type(value).__name__}")
    return value


def _number(value: Any) -> int | float:
    """Coerce numbers and numeric strings. Booleans are not numbers."""
    if isinstance(value, bool):
        raise TypeError("expected a number, got bool")
    if isinstance(value, (int, float)):
        return value
    if isinstance(value, Decimal):
        return float(value)
    if isinstance(value, str):
        text = value.strip()
        try:
            return int(text)
        except ValueError:
            number = float(text)
            if math.isnan(number):
                raise ValueError("expected a number, got NaN") from None
            return number
    raise TypeError(f"expected a number, got {type(value).__name__}")


def _int(value: Any) -> int:
    number = _number(value)
    if isinstance(number, float) and not number.is_integer():
        raise ValueError(f"expected a whole number, got {number}")
    return int(number)


def _words(value: str) -> list[str]:
    spaced = re.sub(r"([a-z0-9])([A-Z])", r"\1 \2", value)
    return [word for word in re.split(r"[^A-Za-z0-9]+", spaced) if word]


def _half_up(number: float, decimals: int) -> int | float:
    exponent = Decimal(1).scaleb(-decimals)
    rounded = Decimal(str(number)).quantize(exponent, rounding=ROUND_HALF_UP)
    return int(rounded) if decimals <= 0 else float(rounded)


def _compare_text(value: Any) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return "" if value is None else str(value)


# =============================================================================
# Text
# =============================================================================


def modifier_upper(value: Any) -> str:
    """Converts text to UPPERCASE."""
    return _text(value, "upper").upper()


def modifier_lower(value: Any) -> str:
    """Converts text to lowercase."""
    return _text(value, "lower").lower()


def modifier_capitalize(value: Any) -> str:
    """Capitalizes The First Letter Of Each Word."""
    return re.sub(r"\b\w", lambda m: m.group(0).upper(), _text(value, "capitalize"))


def modifier_trim(value: Any) -> str:
    """Removes leading and trailing whitespace."""
    return _text(value, "trim").strip()


def modifier_slug(value: Any) -> str:
    """Converts text into a URL-friendly slug."""
    text = _text(value, "slug").lower().strip()
    text = re.sub(r"[^\w\s-]", "", text)
    text = re.sub(r"[\s_-]+", "-", text)
    return text.strip("-")


def modifier_truncate(value: Any, length: Any = 50, suffix: Any = "...") -> str:
    """Shortens text to length. Usage: |truncate(10) or |truncate(10, "…")."""
    text = _text(value, "truncate")
    limit = _int(length)
    if limit < 0:
        raise ValueError("truncate length must not be negative")
    if len(text) <= limit:
        return text
    return text[:limit] + str(suffix)


def modifier_replace(value: Any, old: Any, new: Any = "") -> str:
    """Replaces every occurrence of a substring. Usage: |replace(" ", "_")."""
    return _text(value, "replace").replace(str(old), str(new))


def modifier_append(value: Any, suffix: Any) -> str:
    """Appends text."""
    return _text(value, "append") + str(suffix)


def modifier_prepend(value: Any, prefix: Any) -> str:
    """Prepends text."""
    return str(prefix) + _text(value, "prepend")


def modifier_kebabcase(value: Any) -> str:
    """Converts text to kebab-case."""
    return "-".join(word.lower() for word in _words(_text(value, "kebabcase")))


def modifier_snakecase(value: Any) -> str:
    """Converts text to snake_case."""
    return "_".join(word.lower() for word in _words(_text(value, "snakecase")))


def modifier_camelcase(value: Any) -> str:
    """Converts text to camelCase."""
    words = _words(_text(value, "camelcase"))
    if not words:
        return ""
    return words[0].lower() + "".join(word.capitalize() for word in words[1:])


def modifier_pascalcase(value: Any) -> str:
    """Converts text to PascalCase."""
    return "".join(word.capitalize() for word in _words(_text(value, "pascalcase")))


def modifier_strip(value: Any) -> str:
    """Removes HTML tags."""
    return re.sub(r"<[^>]*>", "", _text(value, "strip"))


def modifier_urlencode(value: Any) -> str:
    """Percent-encodes text for use in a URL component."""
    return quote(_text(value, "urlencode"), safe="-_.!~*'()")


def modifier_escape(value: Any) -> str:
    """Escapes HTML special characters."""
    return html.escape(_text(value, "escape"), quote=True).replace("&#x27;", "&#039;")


def modifier_length(value: Any) -> int:
    """Length of text, a list or a mapping."""
    if isinstance(value, (str, list, tuple, Mapping)):
        return len(value)
    raise TypeError(f"length expects text or a collection, got {type(value).__name__}")


def modifier_json(value: Any) -> str:
    """Serializes a value to JSON."""
    return json.dumps(value, default=str, ensure_ascii=False)


# =============================================================================
# Math
# =============================================================================


def modifier_add(value: Any, amount: Any = 0) -> int | float:
    """Adds a number."""
    return _number(value) + _number(amount)


def modifier_subtract(value: Any, amount: Any = 0) -> int | float:
    """Subtracts a number."""
    return _number(value) - _number(amount)


def modifier_multiply(value: Any, factor: Any = 1) -> int | float:
    """Multiplies by a number."""
    return _number(value) * _number(factor)


def modifier_divide(value: Any, divisor: Any = 1) -> int | float:
    """Divides by a number. Division by zero fails."""
    denominator = _number(divisor)
    if denominator == 0:
        raise ValueError("division by zero")
    return _number(value) / denominator


def modifier_round(value: Any, decimals: Any = 0) -> int | float:
    """Rounds half up to the given number of decimals."""
    return _half_up(_number(value), _int(decimals))


def modifier_ceil(value: Any) -> int:
    """Rounds up to a whole number."""
    return math.ceil(_number(value))


def modifier_floor(value: Any) -> int:
    """Rounds down to a whole number."""
    return math.floor(_number(value))


def modifier_abs(value: Any) -> int | float:
    """Absolute value."""
    return abs(_number(value))


def modifier_min(value: Any, limit: Any = 0) -> int | float:
    """The smaller of the value and the argument."""
    return min(_number(value), _number(limit))


def modifier_max(value: Any, limit: Any = 0) -> int | float:
    """The larger of the value and the argument."""
    return max(_number(value), _number(limit))


def modifier_number(value: Any, decimals: Any = 0) -> str:
    """Formats a number with thousands separators. Usage: |number(2)."""
    places = _int(decimals)
    if places < 0:
        raise ValueError("decimals must not be negative")
    return f"{_number(value):,.{places}f}"


# =============================================================================
# Date
# =============================================================================


def modifier_date(value: Any, fmt: Any = "date") -> str | int:
    """Formats a date. Usage: |date("yyyy-MM-dd") or a preset (iso, long, relative...)."""
    return format_date(value, str(fmt))


# =============================================================================
# Path
# =============================================================================


def modifier_basename(value: Any) -> str:
    """Last path component: /media/a/image.jpg → image.jpg."""
    path = _text(value, "basename")
    return path.rstrip("/").rsplit("/", 1)[-1] or path


def modifier_dirname(value: Any) -> str:
    """Path without its last component: /media/a/image.jpg → /media/a."""
    path = _text(value, "dirname")
    head = path.rsplit("/", 1)[0] if "/" in path else ""
    return head or "/"


def modifier_extension(value: Any) -> str:
    """File extension without the dot: image.jpg → jpg."""
    match = re.search(r"\.([^./]+)$", _text(value, "extension"))
    return match.group(1) if match else ""


def modifier_filename(value: Any) -> str:
    """File name without directory or extension: /a/image.jpg → image."""
    return re.sub(r"\.[^.]+$", "", modifier_basename(value))


def modifier_cleanurl(value: Any) -> str:
    """Removes the query string and fragment from a URL."""
    parts = urlsplit(_text(value, "cleanurl"))
    return urlunsplit((parts.scheme, parts.netloc, parts.path, "", ""))


def modifier_path(value: Any, *parts: Any) -> str:
    """Joins path parts onto the directory of the value: |path("new", "file.txt")."""
    base = _text(value, "path").replace("\\", "/")
    if parts:
        base = posixpath.dirname(base) or "/"
    return posixpath.join(base, *(str(part).replace("\\", "/") for part in parts))


# =============================================================================
# Logic
# =============================================================================


def modifier_default(value: Any, fallback: Any = "") -> Any:
    """Uses a fallback when the value is empty, blank or null."""
    if value is None:
        return fallback
    if isinstance(value, str) and not value.strip():
        return fallback
    if isinstance(value, (list, tuple, Mapping)) and not value:
        return fallback
    return value


def _truthy(value: Any) -> bool:
    if isinstance(value, str):
        return value.strip().lower() not in ("", "false", "0")
    return bool(value)


def modifier_if(value: Any, then: Any = "", otherwise: Any = "") -> Any:
    """Ternary. Usage: |gt(10) | if("Big", "Small")."""
    return then if _truthy(value) else otherwise


def modifier_eq(value: Any, other: Any = "") -> bool:
    """True when the value equals the argument."""
    return _compare_text(value) == _compare_text(other)


def modifier_ne(value: Any, other: Any = "") -> bool:
    """True when the value differs from the argument."""
    return not modifier_eq(value, other)


def modifier_gt(value: Any, limit: Any = 0) -> bool:
    """True when the value is greater than the argument."""
    return _number(value) > _number(limit)


def modifier_gte(value: Any, limit: Any = 0) -> bool:
    """True when the value is greater than or equal to the argument."""
    return _number(value) >= _number(limit)


def modifier_lt(value: Any, limit: Any = 0) -> bool:
    """True when the value is less than the argument."""
    return _number(value) < _number(limit)


def modifier_lte(value: Any, limit: Any = 0) -> bool:
    """True when the value is less than or equal to the argument."""
    return _number(value) <= _number(limit)


# Built-in catalog
MODIFIERS: dict[str, Modifier] = {
    # Text
    "upper": modifier_upper,
    "uppercase": modifier_upper,
    "lower": modifier_lower,
    "lowercase": modifier_lower,
    "capitalize": modifier_capitalize,
    "trim": modifier_trim,
    "slug": modifier_slug,
    "slugify": modifier_slug,
    "truncate": modifier_truncate,
    "replace": modifier_replace,
    "append": modifier_append,
    "prepend": modifier_prepend,
    "kebabcase": modifier_kebabcase,
    "snakecase": modifier_snakecase,
    "camelcase": modifier_camelcase,
    "pascalcase": modifier_pascalcase,
    "strip": modifier_strip,
    "urlencode": modifier_urlencode,
    "escape": modifier_escape,
    "length": modifier_length,
    "json": modifier_json,
    # Math
    "add": modifier_add,
    "subtract": modifier_subtract,
    "multiply": modifier_multiply,
    "divide": modifier_divide,
    "round": modifier_round,
    "ceil": modifier_ceil,
    "floor": modifier_floor,
    "abs": modifier_abs,
    "min": modifier_min,
    "max": modifier_max,
    "number": modifier_number,
    # Date
    "date": modifier_date,
    # Path
    "basename": modifier_basename,
    "dirname": modifier_dirname,
    "extension": modifier_extension,
    "filename": modifier_filename,
    "cleanurl": modifier_cleanurl,
    "path": modifier_path,
    # Logic
    "default": modifier_default,
    "if": modifier_if,
    "eq": modifier_eq,
    "ne": modifier_ne,
    "gt": modifier_gt,
    "gte": modifier_gte,
    "lt": modifier_lt,
    "lte": modifier_lte,
}


class ModifierRegistry:
    """Immutable name → modifier table. Names are case-insensitive.

    Built once at startup and injected into the engine. Every name is
    checked when the registry is constructed, so a typo in configuration
    fails there instead of silently rendering nothing.
    """

    def __init__(self, modifiers: Mapping[str, Modifier] | None = None):
        """Initialize registry.

        Args:
            modifiers: Name to implementation (defaults to the built-in catalog)

        Raises:
            TokenError(MODIFIER_INVALID): On a bad name or a non-callable
        """
        table: dict[str, Modifier] = {}
        for name, fn in (MODIFIERS if modifiers is None else modifiers).items():
            if not isinstance(name, str) or not IDENTIFIER.match(name):
                raise create_error(
                    "MODIFIER_INVALID", modifier=name, detail=f"{name!r} is not an identifier"
                )
            if not callable(fn):
                raise create_error(
                    "MODIFIER_INVALID", modifier=name, detail=f"'{name}' is not callable"
                )
            table[name.lower()] = fn
        self._modifiers = MappingProxyType(table)

    @classmethod
    def default(cls) -> "ModifierRegistry":
        """Registry with the full built-in catalog."""
        return cls()

    def _check_known(self, names: Iterable[str]) -> list[str]:
        lowered = [name.lower() for name in names]
        for name in lowered:
            if name not in self._modifiers:
                raise create_error("MODIFIER_UNKNOWN", modifier=name)
        return lowered

    def restricted(self, names: Iterable[str]) -> "ModifierRegistry":
        """Keep only ``names``.

        Raises:
            TokenError(MODIFIER_UNKNOWN): If a name is not registered
        """
        keep = set(self._check_known(names))
        return ModifierRegistry({n: fn for n, fn in self._modifiers.items() if n in keep})

    def without(self, names: Iterable[str]) -> "ModifierRegistry":
        """Drop ``names``.

        Raises:
            TokenError(MODIFIER_UNKNOWN): If a name is not registered
        """
        drop = set(self._check_known(names))
        return ModifierRegistry({n: fn for n, fn in self._modifiers.items() if n not in drop})

    def with_modifiers(self, extra: Mapping[str, Modifier]) -> "ModifierRegistry":
        """Add or override modifiers (sync or async callables)."""
        return ModifierRegistry({**self._modifiers, **extra})

    def get(self, name: str) -> Modifier | None:
        return self._modifiers.get(name.lower())

    def __contains__(self, name: object) -> bool:
        return isinstance(name, str) and name.lower() in self._modifiers

    def __len__(self) -> int:
        return len(self._modifiers)

    def names(self) -> list[str]:
        return sorted(self._modifiers)

    def describe(self) -> list[dict[str, str]]:
        """Names and one-line descriptions, for editor documentation."""
        described = []
        for name in self.names():
            doc = inspect.getdoc(self._modifiers[name]) or ""
            described.append({"name": name, "description": doc.split("\n", 1)[0]})
        return described

    async def apply(self, calls: Iterable[ModifierCall], value: Any) -> Any:
        """Run a modifier chain left to right.

        Args:
            calls: Modifier calls in source order
            value: Resolved token value

        Returns:
            Output of the last modifier

        Raises:
            UnknownModifierError: If a name is not registered
            ModifierTypeMismatch: If a modifier fails on its input
        """
        for call in calls:
            fn = self.get(call.name)
            if fn is None:
                raise UnknownModifierError(call.name)
            try:
                value = fn(value, *call.args)
                if inspect.isawaitable(value):
                    value = await value
            except (TypeError, ValueError, ArithmeticError) as e:
                raise ModifierTypeMismatch(call.name, str(e)) from e
        return value
