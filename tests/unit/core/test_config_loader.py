"""Unit tests for configuration loading and engine construction."""

import pytest

from cms_tokens.config import (
    ConfigLoader,
    EngineConfig,
    build_engine,
    build_log_config,
    deep_merge,
    resolve_env_vars,
)
from cms_tokens.errors import TokenError
from cms_tokens.types import IssueKind, LogFormat, LogLevel


@pytest.fixture
def loader() -> ConfigLoader:
    return ConfigLoader()


class TestResolveEnvVars:
    """Tests for ${VAR} expansion."""

    def test_set_variable(self, monkeypatch):
        """Test set variables are substituted."""
        monkeypatch.setenv("CMS_LEVEL", "DEBUG")
        assert resolve_env_vars("${CMS_LEVEL}") == "DEBUG"

    def test_default(self, monkeypatch):
        """Test defaults apply when unset."""
        monkeypatch.delenv("CMS_UNSET", raising=False)
        assert resolve_env_vars("${CMS_UNSET:-json}") == "json"

    def test_required(self, monkeypatch):
        """Test required variables raise when unset."""
        monkeypatch.delenv("CMS_UNSET", raising=False)
        with pytest.raises(TokenError) as exc_info:
            resolve_env_vars("${CMS_UNSET:?set CMS_UNSET}")
        assert exc_info.value.detail == "set CMS_UNSET"

    def test_deep_merge(self):
        """Test nested dictionaries merge."""
        merged = deep_merge({"a": {"b": 1, "c": 2}}, {"a": {"c": 3}, "d": 4})
        assert merged == {"a": {"b": 1, "c": 3}, "d": 4}


class TestConfigLoader:
    """Tests for ConfigLoader."""

    def test_defaults(self, loader):
        """Test an empty config gives defaults."""
        config = loader.load_defaults()
        assert config == EngineConfig()
        assert config.parser.colon_arguments is True

    def test_load_from_dict(self, loader):
        """Test nested sections become dataclasses."""
        config = loader.load_from_dict(
            {
                "security": {"namespaces": {"entry": {"deny": ["internal.notes"]}}},
                "modifiers": {"disabled": ["json"]},
                "parser": {"colon_arguments": False},
                "logging": {"level": "debug", "format": "colored"},
            }
        )
        assert config.security.namespaces["entry"].deny == ["internal.notes"]
        assert config.security.namespaces["entry"].allow is None
        assert config.modifiers.disabled == ["json"]
        assert config.parser.colon_arguments is False
        assert config.logging.level is LogLevel.DEBUG
        assert config.logging.format is LogFormat.COLORED

    def test_unknown_key_warns(self, loader):
        """Test unknown top-level keys are warnings only."""
        result = loader.validate({"cache": {}})
        assert result.valid
        assert result.warnings[0].path == "cache"

    @pytest.mark.parametrize(
        ("data", "path"),
        [
            ({"security": []}, "security"),
            ({"security": {"use_defaults": "yes"}}, "security.use_defaults"),
            (
                {"security": {"namespaces": {"user": {"deny": "password"}}}},
                "security.namespaces.user.deny",
            ),
            ({"modifiers": {"enabled": "upper"}}, "modifiers.enabled"),
            ({"parser": {"colon_arguments": 1}}, "parser.colon_arguments"),
            ({"logging": {"level": "LOUD"}}, "logging.level"),
            ({"logging": {"truncate_at": 0}}, "logging.truncate_at"),
        ],
    )
    def test_validation_errors(self, loader, data, path):
        """Test wrong types are errors."""
        result = loader.validate(data)
        assert not result.valid
        assert result.errors[0].path == path

    def test_invalid_raises(self, loader):
        """Test invalid data raises CONFIG_INVALID."""
        with pytest.raises(TokenError) as exc_info:
            loader.load_from_dict({"parser": {"colon_arguments": "no"}})
        assert exc_info.value.code == "CONFIG_INVALID"

    def test_load_yaml_file(self, loader, tmp_path, monkeypatch):
        """Test loading a YAML file with env expansion."""
        monkeypatch.setenv("CMS_LOG_FORMAT", "colored")
        path = tmp_path / "cms-tokens.yaml"
        path.write_text(
            "logging:\n"
            "  format: ${CMS_LOG_FORMAT}\n"
            "modifiers:\n"
            "  enabled: [upper, lower]\n"
        )
        config = loader.load(path)
        assert config.logging.format is LogFormat.COLORED
        assert config.modifiers.enabled == ["upper", "lower"]
        assert loader.get() is config

    def test_env_path(self, loader, tmp_path, monkeypatch):
        """Test the config path can come from the environment."""
        path = tmp_path / "custom.yaml"
        path.write_text("parser:\n  colon_arguments: false\n")
        monkeypatch.setenv("CMS_TOKENS_CONFIG_PATH", str(path))
        assert loader.load().parser.colon_arguments is False

    def test_missing_file(self, loader, tmp_path):
        """Test a missing file uses defaults or raises."""
        missing = tmp_path / "missing.yaml"
        assert loader.load(missing) == EngineConfig()
        with pytest.raises(TokenError):
            loader.load(missing, use_defaults=False)

    def test_invalid_yaml(self, loader, tmp_path):
        """Test malformed YAML raises CONFIG_INVALID."""
        path = tmp_path / "bad.yaml"
        path.write_text("logging: [unclosed\n")
        with pytest.raises(TokenError) as exc_info:
            loader.load(path)
        assert exc_info.value.code == "CONFIG_INVALID"

    def test_reload_notifies(self, loader, tmp_path):
        """Test reload re-reads the file and calls callbacks."""
        path = tmp_path / "cms-tokens.yaml"
        path.write_text("parser:\n  colon_arguments: true\n")
        loader.load(path)
        seen = []
        loader.on_change(seen.append)
        path.write_text("parser:\n  colon_arguments: false\n")
        config = loader.reload()
        assert seen == [config]
        assert config.parser.colon_arguments is False

    def test_get_before_load(self, loader):
        """Test get() requires a loaded config."""
        with pytest.raises(TokenError):
            loader.get()


@pytest.mark.asyncio
class TestBuildEngine:
    """Tests for engine construction from config."""

    async def test_default_engine(self):
        """Test the default config protects credentials."""
        engine = build_engine()
        result = await engine.render("{{ user.password }}", {"user": {"password": "x"}})
        assert result.output == ""

    async def test_security_rules(self, loader):
        """Test configured rules are added to the defaults."""
        config = loader.load_from_dict(
            {"security": {"namespaces": {"entry": {"deny": ["internal"]}}}}
        )
        engine = build_engine(config)
        context = {"entry": {"internal": "n", "title": "t"}, "user": {"password": "x"}}
        template = "{{ entry.internal }}{{ entry.title }}{{ user.password }}"
        result = await engine.render(template, context)
        assert result.output == "t"
        assert len(result.issues_of(IssueKind.BLOCKED)) == 2

    async def test_without_defaults(self, loader):
        """Test the built-in policy can be switched off."""
        config = loader.load_from_dict({"security": {"use_defaults": False}})
        engine = build_engine(config)
        result = await engine.render("{{ user.password }}", {"user": {"password": "x"}})
        assert result.output == "x"

    async def test_modifier_selection(self, loader):
        """Test enabled and disabled modifier lists."""
        config = loader.load_from_dict(
            {"modifiers": {"enabled": ["upper", "lower"], "disabled": ["lower"]}}
        )
        engine = build_engine(config)
        assert engine.modifiers.names() == ["upper"]
        result = await engine.render("{{ e.t | lower }}", {"e": {"t": "A"}})
        assert result.issues[0].kind is IssueKind.UNKNOWN_MODIFIER

    def test_unknown_modifier_in_config(self, loader):
        """Test naming a modifier outside the catalog fails at build time."""
        config = loader.load_from_dict({"modifiers": {"disabled": ["shout"]}})
        with pytest.raises(TokenError) as exc_info:
            build_engine(config)
        assert exc_info.value.code == "MODIFIER_UNKNOWN"

    def test_invalid_rule_in_config(self, loader):
        """Test malformed deny paths fail at build time."""
        config = loader.load_from_dict(
            {"security": {"namespaces": {"entry": {"deny": ["a..b"]}}}}
        )
        with pytest.raises(TokenError) as exc_info:
            build_engine(config)
        assert exc_info.value.code == "POLICY_INVALID"

    def test_colon_arguments_flag(self, loader):
        """Test the parser flag reaches the engine."""
        config = loader.load_from_dict({"parser": {"colon_arguments": False}})
        assert build_engine(config)._colon_arguments is False

    def test_log_config(self, loader):
        """Test the logging section maps to LogConfig."""
        config = loader.load_from_dict({"logging": {"level": "WARN", "truncate_at": 80}})
        log_config = build_log_config(config.logging)
        assert log_config.level is LogLevel.WARN
        assert log_config.truncate_at == 80
