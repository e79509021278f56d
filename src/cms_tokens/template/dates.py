"""Date parsing and pattern formatting for the ``date`` modifier.

Patterns use the ``yyyy-MM-dd HH:mm`` style editors already know. Text in
single quotes is copied as-is: ``yyyy-MM-dd'T'HH:mm``.
"""

import re
from collections.abc import Callable
from datetime import UTC, date, datetime

PRESETS = {
    "date": "yyyy-MM-dd",
    "time": "HH:mm:ss",
    "datetime": "yyyy-MM-dd HH:mm:ss",
    "short": "M/d/yy",
    "long": "MMMM d, yyyy",
    "full": "EEEE, MMMM d, yyyy",
}

PATTERN_TOKEN = re.compile(
    r"'[^']*'|yyyy|YYYY|yy|YY|MMMM|MMM|MM|M|do|Do|dddd|ddd|EEEE|EEE|dd|DD|d|D"
    r"|HH|H|hh|h|mm|m|ss|s|a|A|xxx"
)


def _ordinal(day: int) -> str:
    if 10 <= day % 100 <= 20:
        return f"{day}th"
    suffix = {1: "st", 2: "nd", 3: "rd"}.get(day % 10, "th")
    return f"{day}{suffix}"


def _hour12(dt: datetime) -> int:
    return dt.hour % 12 or 12


def _offset(dt: datetime) -> str:
    offset = dt.utcoffset()
    if offset is None:
        return "+00:00"
    minutes = int(offset.total_seconds() // 60)
    sign = "+" if minutes >= 0 else "-"
    return f"{sign}{abs(minutes) // 60:02d}:{abs(minutes) % 60:02d}"


_FIELDS: dict[str, Callable[[datetime], str]] = {
    "yyyy": lambda dt: f"{dt.year:04d}",
    "yy": lambda dt: f"{dt.year % 100:02d}",
    "MMMM": lambda dt: dt.strftime("%B"),
    "MMM": lambda dt: dt.strftime("%b"),
    "MM": lambda dt: f"{dt.month:02d}",
    "M": lambda dt: str(dt.month),
    "do": lambda dt: _ordinal(dt.day),
    "dddd": lambda dt: dt.strftime("%A"),
    "ddd": lambda dt: dt.strftime("%a"),
    "dd": lambda dt: f"{dt.day:02d}",
    "d": lambda dt: str(dt.day),
    "HH": lambda dt: f"{dt.hour:02d}",
    "H": lambda dt: str(dt.hour),
    "hh": lambda dt: f"{_hour12(dt):02d}",
    "h": lambda dt: str(_hour12(dt)),
    "mm": lambda dt: f"{dt.minute:02d}",
    "m": lambda dt: str(dt.minute),
    "ss": lambda dt: f"{dt.second:02d}",
    "s": lambda dt: str(dt.second),
    "a": lambda dt: "AM" if dt.hour < 12 else "PM",
    "xxx": _offset,
}
# Moment-style spellings
_FIELDS.update(
    {
        "YYYY": _FIELDS["yyyy"],
        "YY": _FIELDS["yy"],
        "Do": _FIELDS["do"],
        "EEEE": _FIELDS["dddd"],
        "EEE": _FIELDS["ddd"],
        "DD": _FIELDS["dd"],
        "D": _FIELDS["d"],
        "A": _FIELDS["a"],
    }
)


def to_datetime(value: object) -> datetime:
    """Coerce a modifier input to a datetime.

    Accepts datetimes, dates, ISO 8601 strings (a trailing ``Z`` included)
    and epoch seconds.

    Raises:
        TypeError: For unsupported types (booleans included)
        ValueError: For strings that are not ISO 8601
    """
    if isinstance(value, datetime):
        return value
    if isinstance(value, date):
        return datetime(value.year, value.month, value.day)
    if isinstance(value, bool):
        raise TypeError("date expects a date, got bool")
    if isinstance(value, (int, float)):
        try:
            return datetime.fromtimestamp(value, UTC)
        except (OverflowError, OSError) as e:
            raise ValueError(f"timestamp out of range: {value}") from e
    if isinstance(value, str):
        text = value.strip()
        if text.endswith(("Z", "z")):
            text = text[:-1] + "+00:00"
        return datetime.fromisoformat(text)
    raise TypeError(f"date expects a date, got {type(value).__name__}")


def format_pattern(dt: datetime, pattern: str) -> str:
    """Format ``dt`` with a ``yyyy-MM-dd`` style pattern."""

    def replace(match: re.Match[str]) -> str:
        token = match.group(0)
        if token.startswith("'"):
            return token[1:-1]
        return _FIELDS[token](dt)

    return PATTERN_TOKEN.sub(replace, pattern)


def relative(dt: datetime, now: datetime | None = None) -> str:
    """Describe ``dt`` relative to ``now``: ``3 days ago``, ``just now``."""
    now = now or datetime.now(UTC)
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=UTC)
    seconds = int((now - dt).total_seconds())
    for unit, size in (("day", 86400), ("hour", 3600), ("minute", 60)):
        amount = seconds // size
        if amount > 0:
            return f"{amount} {unit}{'s' if amount > 1 else ''} ago"
    return "just now"


def format_date(value: object, fmt: str = "date") -> str | int:
    """Format a date value with a preset name or a pattern.

    Presets: iso, date, time, datetime, short, long, full, timestamp, relative.

    Returns:
        Formatted string, or epoch seconds for ``timestamp``
    """
    dt = to_datetime(value)
    if fmt == "iso":
        return dt.isoformat()
    if fmt == "timestamp":
        if dt.tzinfo is None:
            dt = dt.replace(tzinfo=UTC)
        return int(dt.timestamp())
    if fmt == "relative":
        return relative(dt)
    return format_pattern(dt, PRESETS.get(fmt, fmt))
