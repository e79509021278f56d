"""Token engine configuration loader."""

import os
import re
import typing
from collections.abc import Callable
from dataclasses import fields
from enum import Enum
from pathlib import Path
from typing import Any

import yaml

from cms_tokens.errors import create_error
from cms_tokens.logging import get_logger
from cms_tokens.types import LogFormat, LogLevel, ValidationIssue, ValidationResult

from .models import EngineConfig

CONFIG_PATH_ENV = "CMS_TOKENS_CONFIG_PATH"
DEFAULT_CONFIG_FILE = "cms-tokens.yaml"

VALID_KEYS = {"security", "modifiers", "parser", "logging"}

logger = get_logger("config")


def resolve_env_vars(value: str) -> str:
    """Resolve environment variable references in string.

    Supports:
    - ${VAR} - Required, error if not set
    - ${VAR:-default} - With default value
    - ${VAR:?error message} - Required with custom error

    Args:
        value: String with potential env var references

    Returns:
        String with env vars resolved

    Raises:
        TokenError(CONFIG_INVALID): If a required var is not set
    """
    pattern = r"\$\{([^}:]+)(?::([?-])([^}]*))?\}"

    def replacer(match: re.Match[str]) -> str:
        var_name = match.group(1)
        operator = match.group(2)  # '-' or '?' or None
        operand = match.group(3)  # default value or error message

        env_value = os.environ.get(var_name)
        if env_value is not None:
            return env_value

        if operator == "-":
            return operand or ""
        elif operator == "?":
            error_msg = operand or f"Required environment variable {var_name} not set"
            raise create_error("CONFIG_INVALID", detail=error_msg)
        else:
            raise create_error(
                "CONFIG_INVALID",
                detail=f"Required environment variable {var_name} not set",
            )

    return re.sub(pattern, replacer, value)


def deep_merge(base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
    """Deep merge two dictionaries.

    Args:
        base: Base dictionary
        override: Override dictionary

    Returns:
        Merged dictionary
    """
    result = base.copy()

    for key, value in override.items():
        if key in result and isinstance(result[key], dict) and isinstance(value, dict):
            result[key] = deep_merge(result[key], value)
        else:
            result[key] = value

    return result


def _resolve_env_vars_recursive(data: Any) -> Any:
    if isinstance(data, dict):
        return {k: _resolve_env_vars_recursive(v) for k, v in data.items()}
    elif isinstance(data, list):
        return [_resolve_env_vars_recursive(item) for item in data]
    elif isinstance(data, str):
        return resolve_env_vars(data)
    else:
        return data


def _enum_member(enum_type: type[Enum], value: Any) -> Enum | None:
    """Case-insensitive lookup of an enum member by value."""
    for member in enum_type:
        if str(member.value).lower() == str(value).lower():
            return member
    return None


def _is_str_list(value: Any) -> bool:
    return isinstance(value, list) and all(isinstance(item, str) for item in value)


class ConfigLoader:
    """Load and validate token engine configuration."""

    def __init__(self) -> None:
        self._config: EngineConfig | None = None
        self._config_path: Path | None = None
        self._change_callbacks: list[Callable[[EngineConfig], None]] = []

    def load(self, path: str | Path | None = None, use_defaults: bool = True) -> EngineConfig:
        """Load configuration from file.

        Resolution order if path not specified:
        1. CMS_TOKENS_CONFIG_PATH environment variable
        2. ./cms-tokens.yaml
        3. If use_defaults=True and no file found, use default configuration

        Args:
            path: Optional path to config file
            use_defaults: If True, use default config when no file found

        Returns:
            Loaded EngineConfig instance

        Raises:
            TokenError(CONFIG_INVALID): If the file is missing (when
                use_defaults=False) or invalid
        """
        if path is None:
            path = self._resolve_config_path()

        config_path = Path(path)

        if not config_path.exists():
            if use_defaults:
                logger.info("No config file found, using default configuration")
                return self.load_defaults()
            raise create_error(
                "CONFIG_INVALID",
                detail=f"Configuration file not found: {config_path}",
            )

        try:
            with config_path.open() as f:
                data = yaml.safe_load(f) or {}
        except yaml.YAMLError as e:
            raise create_error(
                "CONFIG_INVALID",
                detail=f"Invalid YAML in config file: {e}",
            ) from e

        if not isinstance(data, dict):
            raise create_error(
                "CONFIG_INVALID",
                detail=f"Configuration root must be a mapping, got {type(data).__name__}",
            )

        data = _resolve_env_vars_recursive(data)
        return self.load_from_dict(data, config_path)

    def load_defaults(self) -> EngineConfig:
        """Default configuration without a file."""
        return self.load_from_dict({})

    def load_from_dict(self, data: dict[str, Any], config_path: Path | None = None) -> EngineConfig:
        """Load configuration from dictionary.

        Args:
            data: Configuration dictionary
            config_path: Optional path to config file (for tracking)

        Returns:
            Loaded EngineConfig instance

        Raises:
            TokenError(CONFIG_INVALID): If configuration is invalid
        """
        validation = self.validate(data)
        for warning in validation.warnings:
            logger.warning(warning.message, path=warning.path)
        if not validation.valid:
            error_messages = [f"- {issue.path}: {issue.message}" for issue in validation.errors]
            raise create_error(
                "CONFIG_INVALID",
                detail="Configuration validation failed:\n" + "\n".join(error_messages),
            )

        try:
            config = self._dict_to_config(data)
        except (TypeError, ValueError) as e:
            raise create_error(
                "CONFIG_INVALID",
                detail=f"Failed to parse configuration: {e}",
            ) from e

        self._config = config
        self._config_path = config_path
        logger.info("Configuration loaded", config_path=str(config_path) if config_path else None)
        return config

    def validate(self, data: dict[str, Any]) -> ValidationResult:
        """Validate config data without loading.

        Args:
            data: Configuration dictionary

        Returns:
            ValidationResult with errors and warnings
        """
        errors: list[ValidationIssue] = []
        warnings: list[ValidationIssue] = []

        def error(path: str, message: str) -> None:
            errors.append(ValidationIssue(path=path, message=message, severity="error"))

        for key in data:
            if key not in VALID_KEYS:
                warnings.append(
                    ValidationIssue(
                        path=str(key),
                        message=f"Unknown configuration key: {key}",
                        severity="warning",
                    )
                )

        for section in VALID_KEYS:
            if section in data and not isinstance(data[section], dict):
                error(section, f"{section} must be a dictionary")

        security = data.get("security")
        if isinstance(security, dict):
            if "use_defaults" in security and not isinstance(security["use_defaults"], bool):
                error("security.use_defaults", "use_defaults must be a boolean")
            namespaces = security.get("namespaces", {})
            if not isinstance(namespaces, dict):
                error("security.namespaces", "namespaces must be a dictionary")
            else:
                for name, rule in namespaces.items():
                    path = f"security.namespaces.{name}"
                    if not isinstance(rule, dict):
                        error(path, "namespace rule must be a dictionary")
                        continue
                    for key in ("deny", "deny_segments"):
                        if key in rule and not _is_str_list(rule[key]):
                            error(f"{path}.{key}", f"{key} must be a list of strings")
                    if rule.get("allow") is not None and not _is_str_list(rule["allow"]):
                        error(f"{path}.allow", "allow must be a list of strings or null")

        modifiers = data.get("modifiers")
        if isinstance(modifiers, dict):
            if modifiers.get("enabled") is not None and not _is_str_list(modifiers["enabled"]):
                error("modifiers.enabled", "enabled must be a list of strings or null")
            if "disabled" in modifiers and not _is_str_list(modifiers["disabled"]):
                error("modifiers.disabled", "disabled must be a list of strings")

        parser = data.get("parser")
        if isinstance(parser, dict):
            if "colon_arguments" in parser and not isinstance(parser["colon_arguments"], bool):
                error("parser.colon_arguments", "colon_arguments must be a boolean")

        log_cfg = data.get("logging")
        if isinstance(log_cfg, dict):
            if "level" in log_cfg and _enum_member(LogLevel, log_cfg["level"]) is None:
                levels = ", ".join(level.value for level in LogLevel)
                error("logging.level", f"level must be one of: {levels}")
            if "format" in log_cfg and _enum_member(LogFormat, log_cfg["format"]) is None:
                formats = ", ".join(fmt.value for fmt in LogFormat)
                error("logging.format", f"format must be one of: {formats}")
            truncate_at = log_cfg.get("truncate_at", 200)
            if isinstance(truncate_at, bool) or not isinstance(truncate_at, int):
                error("logging.truncate_at", "truncate_at must be a positive integer")
            elif truncate_at <= 0:
                error("logging.truncate_at", "truncate_at must be a positive integer")

        return ValidationResult(valid=True, errors=errors, warnings=warnings)

    def get(self) -> EngineConfig:
        """Get current configuration.

        Raises:
            TokenError(CONFIG_INVALID): If configuration not loaded
        """
        if self._config is None:
            raise create_error("CONFIG_INVALID", detail="Configuration not loaded")
        return self._config

    def reload(self) -> EngineConfig:
        """Reload configuration from file and notify registered callbacks.

        Raises:
            TokenError(CONFIG_INVALID): If no config path set or reload fails
        """
        if self._config_path is None:
            raise create_error("CONFIG_INVALID", detail="No config path set, cannot reload")

        new_config = self.load(self._config_path)

        for callback in self._change_callbacks:
            try:
                callback(new_config)
            except Exception:
                logger.exception("Config change callback failed")

        return new_config

    def on_change(self, callback: Callable[[EngineConfig], None]) -> None:
        """Register callback for config changes."""
        self._change_callbacks.append(callback)

    def _resolve_config_path(self) -> Path:
        env_path = os.environ.get(CONFIG_PATH_ENV)
        if env_path:
            return Path(env_path)
        return Path(DEFAULT_CONFIG_FILE)

    def _dict_to_config(self, data: dict[str, Any]) -> EngineConfig:
        kwargs: dict[str, Any] = {}
        for field in fields(EngineConfig):
            if field.name in data:
                kwargs[field.name] = self._convert_field(field.type, data[field.name])
        return EngineConfig(**kwargs)

    def _convert_field(self, field_type: Any, value: Any) -> Any:
        """Convert a raw value to the annotated field type.

        Args:
            field_type: Expected field type
            value: Value to convert

        Returns:
            Converted value
        """
        if value is None:
            return None

        origin = typing.get_origin(field_type)

        if origin is list:
            args = typing.get_args(field_type)
            if args and isinstance(value, list):
                return [self._convert_field(args[0], item) for item in value]
            return value

        if origin is dict:
            args = typing.get_args(field_type)
            if len(args) == 2 and isinstance(value, dict):
                return {k: self._convert_field(args[1], v) for k, v in value.items()}
            return value

        if hasattr(field_type, "__dataclass_fields__"):
            if isinstance(value, dict):
                kwargs = {}
                for f in fields(field_type):
                    if f.name in value:
                        kwargs[f.name] = self._convert_field(f.type, value[f.name])
                return field_type(**kwargs)
            return value

        if isinstance(field_type, type) and issubclass(field_type, Enum):
            member = _enum_member(field_type, value)
            if member is None:
                raise ValueError(f"{value!r} is not a valid {field_type.__name__}")
            return member

        return value


# Convenience singleton
_default_loader: ConfigLoader | None = None


def get_config_loader() -> ConfigLoader:
    """Get default config loader singleton."""
    global _default_loader  # noqa: PLW0603
    if _default_loader is None:
        _default_loader = ConfigLoader()
    return _default_loader


def load_config(path: str | Path | None = None) -> EngineConfig:
    """Convenience function to load config.

    Args:
        path: Optional path to config file

    Returns:
        Loaded EngineConfig instance
    """
    return get_config_loader().load(path)
