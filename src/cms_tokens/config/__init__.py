"""Token engine configuration - loading and engine construction."""

from .builder import build_engine, build_log_config, build_modifiers, build_policy
from .loader import (
    ConfigLoader,
    deep_merge,
    get_config_loader,
    load_config,
    resolve_env_vars,
)
from .models import (
    EngineConfig,
    LoggingConfig,
    ModifiersConfig,
    NamespaceRuleConfig,
    ParserConfig,
    SecurityConfig,
)

__all__ = [
    # Config models
    "EngineConfig",
    "SecurityConfig",
    "NamespaceRuleConfig",
    "ModifiersConfig",
    "ParserConfig",
    "LoggingConfig",
    # Loader
    "ConfigLoader",
    "get_config_loader",
    "load_config",
    "resolve_env_vars",
    "deep_merge",
    # Builders
    "build_engine",
    "build_policy",
    "build_modifiers",
    "build_log_config",
]
