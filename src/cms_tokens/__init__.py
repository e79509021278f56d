"""cms-tokens - secure token templating for CMS content.

Renders ``{{ namespace.path | modifier(args) }}`` tokens in text and JSON
documents, with field-level access rules that hold even when the template
text is untrusted.

Usage:
    from cms_tokens import ContextBuilder, render

    context = ContextBuilder().with_entry({"title": "Hello"}).build()
    result = await render("{{ entry.title | upper }}", context)
"""

from cms_tokens.template import (
    Context,
    ContextBuilder,
    Issue,
    ModifierRegistry,
    RenderResult,
    SecurityPolicy,
    TokenEngine,
    contains_tokens,
    extract_token_paths,
    render,
    render_json,
    validate_token_syntax,
)
from cms_tokens.types import IssueKind

__version__ = "0.1.0"
__all__ = [
    "__version__",
    "render",
    "render_json",
    "validate_token_syntax",
    "extract_token_paths",
    "contains_tokens",
    "TokenEngine",
    "Context",
    "ContextBuilder",
    "SecurityPolicy",
    "ModifierRegistry",
    "RenderResult",
    "Issue",
    "IssueKind",
]
