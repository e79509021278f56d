"""Token engine for CMS templates."""

from .context import (
    SAFE_SITE_KEYS,
    Binding,
    Context,
    ContextBuilder,
    LazyBinding,
    StaticBinding,
    SystemValues,
)
from .engine import TokenEngine, get_default_engine, render, render_json, to_text
from .modifiers import MODIFIERS, ModifierRegistry, ModifierTypeMismatch, UnknownModifierError
from .parser import TokenSyntaxError, parse
from .resolver import PathResolver
from .scanner import scan
from .security import DEFAULT_USER_FIELDS, NamespaceRule, SecurityPolicy
from .types import (
    EscapedMarker,
    Issue,
    ModifierCall,
    Outcome,
    ParseFailure,
    RawToken,
    RenderResult,
    Resolution,
    TextSegment,
    Token,
)
from .validator import contains_tokens, extract_token_paths, validate_token_syntax

__all__ = [
    # Engine
    "TokenEngine",
    "get_default_engine",
    "render",
    "render_json",
    "to_text",
    # Context
    "Context",
    "ContextBuilder",
    "Binding",
    "StaticBinding",
    "LazyBinding",
    "SystemValues",
    "SAFE_SITE_KEYS",
    # Security
    "SecurityPolicy",
    "NamespaceRule",
    "DEFAULT_USER_FIELDS",
    # Modifiers
    "ModifierRegistry",
    "MODIFIERS",
    "UnknownModifierError",
    "ModifierTypeMismatch",
    # Parsing and resolution
    "scan",
    "parse",
    "TokenSyntaxError",
    "PathResolver",
    # Types
    "TextSegment",
    "EscapedMarker",
    "RawToken",
    "Token",
    "ModifierCall",
    "ParseFailure",
    "Outcome",
    "Resolution",
    "Issue",
    "RenderResult",
    # Validation
    "validate_token_syntax",
    "extract_token_paths",
    "contains_tokens",
]
