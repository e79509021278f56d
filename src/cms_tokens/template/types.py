"""Token engine type definitions."""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from cms_tokens.types import IssueKind

Literal = str | int | float | bool


@dataclass(frozen=True)
class TextSegment:
    """Literal text copied to the output verbatim."""

    text: str
    start: int


@dataclass(frozen=True)
class EscapedMarker:
    """``\\{{`` in the source. Renders as a literal ``{{``."""

    start: int

    @property
    def text(self) -> str:
        return "{{"


@dataclass(frozen=True)
class RawToken:
    """An unparsed ``{{...}}`` span.

    ``content`` is everything between the delimiters. ``nested`` is set when
    another ``{{`` appeared before the closing ``}}``.
    """

    content: str
    start: int
    end: int
    nested: bool = False

    @property
    def span(self) -> tuple[int, int]:
        return (self.start, self.end)


Segment = TextSegment | EscapedMarker | RawToken


@dataclass(frozen=True)
class ModifierCall:
    """One step of a modifier chain, e.g. ``if("Big", "Small")``."""

    name: str
    args: tuple[Literal, ...] = ()


@dataclass(frozen=True)
class Token:
    """A parsed token.

    Access patterns:
    - {{ entry.title }} → path=("entry", "title")
    - {{ entry.price | gt(10) }} → modifiers=(ModifierCall("gt", (10,)),)
    """

    path: tuple[str, ...]
    modifiers: tuple[ModifierCall, ...] = ()
    raw_span: tuple[int, int] = (0, 0)

    @property
    def namespace(self) -> str:
        return self.path[0]

    @property
    def segments(self) -> tuple[str, ...]:
        return self.path[1:]

    @property
    def dotted_path(self) -> str:
        return ".".join(self.path)


@dataclass(frozen=True)
class ParseFailure:
    """A raw token whose content does not follow the token grammar."""

    content: str
    reason: str
    raw_span: tuple[int, int] = (0, 0)


class Outcome(str, Enum):
    """Result of resolving a path against a Context."""

    RESOLVED = "resolved"
    UNRESOLVED = "unresolved"
    BLOCKED = "blocked"


@dataclass(frozen=True)
class Resolution:
    """Resolver result. ``value`` is only meaningful when resolved."""

    outcome: Outcome
    value: Any = None
    reason: str | None = None

    @property
    def ok(self) -> bool:
        return self.outcome is Outcome.RESOLVED


UNRESOLVED = Resolution(Outcome.UNRESOLVED)
BLOCKED = Resolution(Outcome.BLOCKED)


@dataclass(frozen=True)
class Issue:
    """A diagnostic for one token that rendered as an empty string.

    ``token`` is the dotted path for parsed tokens, the trimmed raw content
    for parse failures. It is meant for editors and administrators, never for
    the rendered output.
    """

    kind: IssueKind
    token: str
    message: str
    span: tuple[int, int] = (0, 0)

    def to_dict(self) -> dict[str, Any]:
        return {
            "kind": self.kind.value,
            "token": self.token,
            "message": self.message,
            "span": list(self.span),
        }


@dataclass
class RenderResult:
    """Result of rendering a template string."""

    output: str  # Rendered text
    issues: list[Issue] = field(default_factory=list)  # Tokens that rendered empty
    replaced: list[str] = field(default_factory=list)  # Paths substituted successfully

    @property
    def ok(self) -> bool:
        return not self.issues

    def issues_of(self, kind: IssueKind) -> list[Issue]:
        return [issue for issue in self.issues if issue.kind is kind]

    def __str__(self) -> str:
        return self.output
