"""Unit tests for Context, bindings and ContextBuilder."""

from datetime import UTC, datetime

import pytest

from cms_tokens.errors import TokenError
from cms_tokens.template.context import (
    Context,
    ContextBuilder,
    LazyBinding,
    StaticBinding,
    SystemValues,
    to_binding,
)


class TestToBinding:
    """Tests for to_binding()."""

    def test_mapping_is_static(self):
        """Test object graphs become static bindings."""
        assert to_binding("entry", {"a": 1}) == StaticBinding({"a": 1})

    def test_callable_is_lazy(self):
        """Test callables become lazy bindings."""

        def lookup(segments):
            return None

        assert to_binding("user", lookup) == LazyBinding(lookup)

    def test_binding_passes_through(self):
        """Test existing bindings are kept."""
        binding = StaticBinding([1])
        assert to_binding("entry", binding) is binding

    @pytest.mark.parametrize("value", ["text", 1, 2.5, True, b"raw"])
    def test_primitives_rejected(self, value):
        """Test primitives cannot be namespaces."""
        with pytest.raises(TokenError) as exc_info:
            to_binding("entry", value)
        assert exc_info.value.code == "CONTEXT_INVALID"
        assert exc_info.value.namespace == "entry"


class TestContext:
    """Tests for Context."""

    def test_from_mapping(self):
        """Test plain dicts are wrapped."""
        context = Context.from_mapping({"entry": {"title": "x"}, "user": lambda s: None})
        assert isinstance(context.get("entry"), StaticBinding)
        assert isinstance(context.get("user"), LazyBinding)
        assert context.namespaces == ["entry", "user"]

    def test_none_is_absent(self):
        """Test None values are skipped."""
        context = Context.from_mapping({"user": None})
        assert "user" not in context

    def test_coerce(self):
        """Test coerce accepts contexts, mappings and None."""
        context = Context()
        assert Context.coerce(context) is context
        assert Context.coerce(None).namespaces == []
        assert "entry" in Context.coerce({"entry": {}})

    def test_coerce_rejects_other_types(self):
        """Test coerce rejects lists."""
        with pytest.raises(TokenError):
            Context.coerce([("entry", {})])  # type: ignore[arg-type]

    def test_context_is_read_only(self):
        """Test the binding mapping cannot be changed."""
        source = {"entry": StaticBinding({})}
        context = Context(source)
        source["user"] = StaticBinding({})
        assert "user" not in context


class TestSystemValues:
    """Tests for computed system values."""

    @pytest.fixture
    def system(self) -> SystemValues:
        return SystemValues(now=datetime(2024, 1, 15, 10, 30, 45, tzinfo=UTC), language="de")

    @pytest.mark.parametrize(
        ("field", "expected"),
        [
            ("timestamp", 1705314645),
            ("date", "2024-01-15"),
            ("time", "10:30:45"),
            ("year", 2024),
            ("month", 1),
            ("day", 15),
            ("hour", 10),
            ("minute", 30),
            ("second", 45),
            ("language", "de"),
        ],
    )
    def test_fields(self, system, field, expected):
        """Test each computed field."""
        assert system([field]) == expected

    def test_now(self, system):
        """Test now returns the fixed instant."""
        assert system(["now"]) == datetime(2024, 1, 15, 10, 30, 45, tzinfo=UTC)

    def test_unknown_field(self, system):
        """Test unknown and nested fields are not found."""
        assert system(["weather"]) is None
        assert system(["year", "x"]) is None
        assert system([]) is None


class TestContextBuilder:
    """Tests for ContextBuilder."""

    def test_builds_namespaces(self):
        """Test builder methods bind the usual namespaces."""
        context = (
            ContextBuilder()
            .with_entry({"title": "x"})
            .with_user({"name": "Ada"})
            .with_system()
            .with_namespace("custom", {"a": 1})
            .build()
        )
        assert set(context.namespaces) == {"entry", "user", "system", "custom"}
        assert isinstance(context.get("system"), LazyBinding)

    def test_site_keeps_safe_keys(self):
        """Test site settings are filtered to safe keys."""
        context = (
            ContextBuilder()
            .with_site({"SITE_NAME": "Example", "JWT_SECRET_KEY": "s3cr3t"})
            .build()
        )
        assert context.get("site").value == {"SITE_NAME": "Example"}

    def test_site_custom_keys(self):
        """Test the safe key list can be replaced."""
        context = ContextBuilder().with_site({"A": 1, "B": 2}, safe_keys=["B"]).build()
        assert context.get("site").value == {"B": 2}
