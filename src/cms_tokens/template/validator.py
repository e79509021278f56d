"""Static checks on template text, used by editors before saving."""

import re

from cms_tokens.types import SyntaxValidationResult

from .parser import path_text
from .scanner import CLOSE, ESCAPE, OPEN, raw_tokens

# An escaped token such as \{{ x }} is literal text, so neither delimiter counts.
ESCAPED_TOKEN = re.compile(r"\\\{\{(?:(?!\{\{).)*?\}\}", re.DOTALL)


def _count_delimiters(text: str) -> tuple[int, int]:
    unescaped = ESCAPED_TOKEN.sub("", text).replace(ESCAPE + OPEN, "")
    return unescaped.count(OPEN), unescaped.count(CLOSE)


def validate_token_syntax(text: str) -> SyntaxValidationResult:
    """Lint template text.

    Each rule is reported once, however many tokens break it. Text marked
    invalid here still renders; this is a linting pass, not the parser.

    Args:
        text: Template text

    Returns:
        SyntaxValidationResult with error messages
    """
    errors: list[str] = []
    tokens = raw_tokens(text)

    if any(not token.content.strip() for token in tokens):
        errors.append("Empty token detected")

    if any(token.nested for token in tokens):
        errors.append("Nested tokens are not supported")

    opened, closed = _count_delimiters(text)
    if opened != closed:
        errors.append(
            f"Unbalanced token delimiters: {opened} opening '{{{{' and {closed} closing '}}}}'"
        )

    return SyntaxValidationResult(valid=not errors, errors=errors)


def extract_token_paths(text: str) -> list[str]:
    """List the dotted paths referenced by ``text``, in order, without duplicates.

    E.g., "{{ entry.title | upper }} by {{ user.name }}" → ["entry.title", "user.name"]
    """
    paths: list[str] = []
    for token in raw_tokens(text):
        if token.nested:
            continue
        path = path_text(token.content)
        if path and path not in paths:
            paths.append(path)
    return paths


def contains_tokens(text: str) -> bool:
    """Cheap pre-check: True if ``text`` contains ``{{`` at all.

    Matches the renderer's own fast path, so escaped or unterminated openers
    also count. Use ``extract_token_paths`` to find well-formed tokens.
    """
    return OPEN in text
