"""Template tokenizer: splits text into literal runs, escapes and raw tokens."""

from .types import EscapedMarker, RawToken, Segment, TextSegment

OPEN = "{{"
CLOSE = "}}"
ESCAPE = "\\"


def scan(text: str) -> list[Segment]:
    """Scan template text left to right.

    ``\\{{`` is the only escape; it becomes an EscapedMarker and the scan
    resumes right after the braces, so the text that follows is literal.
    ``{{`` opens a RawToken that ends at the first ``}}``. An inner ``{{``
    stays in the raw content and marks the token as nested. An ``{{`` with
    no closing ``}}`` is plain text.

    Args:
        text: Template text

    Returns:
        Ordered segments; concatenating their source spans yields ``text``
    """
    segments: list[Segment] = []
    length = len(text)
    literal_start = 0
    i = 0

    def flush(until: int) -> None:
        if until > literal_start:
            segments.append(TextSegment(text[literal_start:until], literal_start))

    while i < length:
        if text.startswith(ESCAPE + OPEN, i):
            flush(i)
            segments.append(EscapedMarker(i))
            i += len(ESCAPE) + len(OPEN)
            literal_start = i
            continue

        if text.startswith(OPEN, i):
            close = text.find(CLOSE, i + len(OPEN))
            if close == -1:
                # Unterminated: the braces are literal
                i += len(OPEN)
                continue
            content = text[i + len(OPEN) : close]
            flush(i)
            end = close + len(CLOSE)
            segments.append(RawToken(content, i, end, nested=OPEN in content))
            i = end
            literal_start = i
            continue

        i += 1

    flush(length)
    return segments


def raw_tokens(text: str) -> list[RawToken]:
    """Return only the raw token spans of ``text``."""
    return [segment for segment in scan(text) if isinstance(segment, RawToken)]
