"""Token engine configuration data models."""

from dataclasses import dataclass, field

from cms_tokens.types import LogFormat, LogLevel


@dataclass
class NamespaceRuleConfig:
    """Access rule for one namespace (``*`` applies to all of them)."""

    deny: list[str] = field(default_factory=list)  # dotted sub-paths
    deny_segments: list[str] = field(default_factory=list)  # blocked at any depth
    allow: list[str] | None = None  # allowed first segments, None = no allowlist


@dataclass
class SecurityConfig:
    """Security policy configuration."""

    use_defaults: bool = True  # start from the built-in policy
    namespaces: dict[str, NamespaceRuleConfig] = field(default_factory=dict)


@dataclass
class ModifiersConfig:
    """Modifier catalog configuration."""

    enabled: list[str] | None = None  # None = the whole catalog
    disabled: list[str] = field(default_factory=list)


@dataclass
class ParserConfig:
    """Token parser configuration."""

    colon_arguments: bool = True  # accept legacy ``truncate:20``


@dataclass
class LoggingConfig:
    """Logging configuration."""

    level: LogLevel = LogLevel.INFO
    format: LogFormat = LogFormat.JSON
    truncate_at: int = 200


@dataclass
class EngineConfig:
    """Root configuration object."""

    security: SecurityConfig = field(default_factory=SecurityConfig)
    modifiers: ModifiersConfig = field(default_factory=ModifiersConfig)
    parser: ParserConfig = field(default_factory=ParserConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)
