"""Token parsing: raw ``{{...}}`` content into a path and a modifier chain."""

import re

from .types import Literal, ModifierCall, ParseFailure, Token

PATH_SEGMENT = re.compile(r"^[\w$@-]+$")
MODIFIER = re.compile(r"^([A-Za-z_]\w*)\s*(?:\((.*)\))?$", re.DOTALL)
COLON_MODIFIER = re.compile(r"^([A-Za-z_]\w*)\s*:(.*)$", re.DOTALL)
INTEGER = re.compile(r"^[-+]?\d+$")
FLOAT = re.compile(r"^[-+]?(?:\d+\.\d*|\.\d+|\d+)(?:[eE][-+]?\d+)?$")
BARE_WORD = re.compile(r"^[^\s\"'(){}|,]+$")
QUOTES = ("'", '"')


class TokenSyntaxError(ValueError):
    """Raw token content does not follow the token grammar."""


def split_top_level(text: str, separator: str) -> list[str]:
    """Split on ``separator`` outside of quoted strings.

    Args:
        text: Text to split
        separator: Single separator character

    Returns:
        Parts, untrimmed
    """
    parts: list[str] = []
    current: list[str] = []
    quote: str | None = None
    escaped = False

    for char in text:
        if quote:
            current.append(char)
            if escaped:
                escaped = False
            elif char == "\\":
                escaped = True
            elif char == quote:
                quote = None
            continue
        if char in QUOTES:
            quote = char
            current.append(char)
        elif char == separator:
            parts.append("".join(current))
            current = []
        else:
            current.append(char)

    parts.append("".join(current))
    return parts


def parse_literal(text: str) -> Literal:
    """Parse one modifier argument.

    Args:
        text: Argument text, already trimmed

    Returns:
        Parsed value (str, int, float, or bool)

    Raises:
        TokenSyntaxError: If the text is not a literal
    """
    if len(text) >= 2 and text[0] in QUOTES and text[-1] == text[0]:
        body = text[1:-1]
        return re.sub(r"\\(.)", r"\1", body, flags=re.DOTALL)

    if text == "true":
        return True
    if text == "false":
        return False

    if INTEGER.match(text):
        try:
            return int(text)
        except ValueError as e:
            # Longer than the interpreter allows for int conversion
            raise TokenSyntaxError(f"Invalid argument: {text[:20]}...") from e
    if FLOAT.match(text):
        return float(text)

    # Unquoted words are taken as strings: date(YYYY-MM-DD), truncate:20
    if BARE_WORD.match(text):
        return text

    raise TokenSyntaxError(f"Invalid argument: {text}")


def parse_arguments(text: str) -> tuple[Literal, ...]:
    """Parse a comma-separated argument list (without the parentheses)."""
    if not text.strip():
        return ()
    args = []
    for part in split_top_level(text, ","):
        part = part.strip()
        if not part:
            raise TokenSyntaxError("Empty argument")
        args.append(parse_literal(part))
    return tuple(args)


def rewrite_colon_modifier(text: str) -> str:
    """Rewrite legacy ``name:arg1,arg2`` to ``name(arg1,arg2)``."""
    match = COLON_MODIFIER.match(text)
    if not match:
        return text
    return f"{match.group(1)}({match.group(2)})"


def parse_modifier(text: str, colon_arguments: bool = True) -> ModifierCall:
    """Parse one pipe-separated modifier expression.

    Args:
        text: Modifier text, e.g. ``truncate(20, "...")``
        colon_arguments: Accept the legacy ``name:arg`` form

    Returns:
        ModifierCall

    Raises:
        TokenSyntaxError: If the text is not a modifier call
    """
    text = text.strip()
    if not text:
        raise TokenSyntaxError("Empty modifier")
    if colon_arguments:
        text = rewrite_colon_modifier(text)

    match = MODIFIER.match(text)
    if not match:
        raise TokenSyntaxError(f"Invalid modifier: {text}")

    name, args_text = match.group(1), match.group(2)
    args = parse_arguments(args_text) if args_text is not None else ()
    return ModifierCall(name=name, args=args)


def parse_path(text: str) -> tuple[str, ...]:
    """Split a dotted path into segments.

    Raises:
        TokenSyntaxError: On an empty path or a malformed segment
    """
    text = text.strip()
    if not text:
        raise TokenSyntaxError("Empty token")
    segments = tuple(text.split("."))
    for segment in segments:
        if not PATH_SEGMENT.match(segment):
            raise TokenSyntaxError(f"Invalid path segment: {segment!r}")
    return segments


def parse(
    content: str,
    span: tuple[int, int] = (0, 0),
    colon_arguments: bool = True,
) -> Token | ParseFailure:
    """Parse raw token content.

    Never raises; malformed content yields a ParseFailure.

    Args:
        content: Text between ``{{`` and ``}}``
        span: Source span of the whole token, carried onto the result
        colon_arguments: Accept the legacy ``name:arg`` modifier form

    Returns:
        Token or ParseFailure
    """
    if "{{" in content:
        return ParseFailure(content, "Nested tokens are not supported", span)

    parts = split_top_level(content, "|")
    try:
        path = parse_path(parts[0])
        modifiers = tuple(parse_modifier(part, colon_arguments) for part in parts[1:])
    except TokenSyntaxError as e:
        return ParseFailure(content, str(e), span)

    return Token(path=path, modifiers=modifiers, raw_span=span)


def path_text(content: str) -> str:
    """Return the trimmed path portion of raw token content (before any pipe)."""
    return split_top_level(content, "|")[0].strip()
