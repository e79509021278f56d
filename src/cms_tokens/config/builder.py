"""Build engine components from an EngineConfig."""

from cms_tokens.logging import LogConfig
from cms_tokens.template import ModifierRegistry, NamespaceRule, SecurityPolicy, TokenEngine

from .models import EngineConfig, LoggingConfig, ModifiersConfig, SecurityConfig


def build_policy(config: SecurityConfig) -> SecurityPolicy:
    """Build the security policy.

    Rules from the config replace built-in rules for the same namespace.

    Raises:
        TokenError(POLICY_INVALID): On malformed paths or segment names
    """
    policy = SecurityPolicy.default() if config.use_defaults else SecurityPolicy.permissive()
    for namespace, rule in config.namespaces.items():
        policy = policy.with_rule(
            namespace,
            NamespaceRule.build(
                deny=rule.deny,
                deny_segments=rule.deny_segments,
                allow=rule.allow,
                namespace=namespace,
            ),
        )
    return policy


def build_modifiers(config: ModifiersConfig) -> ModifierRegistry:
    """Build the modifier registry.

    Raises:
        TokenError(MODIFIER_UNKNOWN): If a listed name is not in the catalog
    """
    registry = ModifierRegistry.default()
    if config.enabled is not None:
        registry = registry.restricted(config.enabled)
    if config.disabled:
        registry = registry.without(config.disabled)
    return registry


def build_log_config(config: LoggingConfig) -> LogConfig:
    """Translate the logging section for ``configure_logging``."""
    return LogConfig(level=config.level, format=config.format, truncate_at=config.truncate_at)


def build_engine(config: EngineConfig | None = None) -> TokenEngine:
    """Build a TokenEngine from configuration (defaults when None)."""
    config = config or EngineConfig()
    return TokenEngine(
        policy=build_policy(config.security),
        modifiers=build_modifiers(config.modifiers),
        colon_arguments=config.parser.colon_arguments,
    )
