"""Unit tests for structured errors."""

import pytest

from cms_tokens.errors import (
    ErrorCategory,
    ErrorFactory,
    ErrorRegistry,
    TokenError,
    create_error,
    get_error_factory,
)


class TestErrorRegistry:
    """Tests for ErrorRegistry."""

    def test_builtin_codes(self):
        """Test the built-in templates are registered."""
        codes = ErrorRegistry().list_codes()
        for code in [
            "CONTEXT_INVALID",
            "MODIFIER_UNKNOWN",
            "MODIFIER_INVALID",
            "POLICY_INVALID",
            "CONFIG_INVALID",
            "INTERNAL_ERROR",
        ]:
            assert code in codes

    def test_interpolates_context(self):
        """Test message placeholders are filled."""
        error = ErrorRegistry().create("MODIFIER_UNKNOWN", {"modifier": "shout"})
        assert error.message == "Modifier 'shout' is not in the catalog"
        assert error.modifier == "shout"
        assert error.category is ErrorCategory.MODIFIER

    def test_missing_placeholder_keeps_template(self):
        """Test missing context leaves the template text."""
        error = ErrorRegistry().create("CONTEXT_INVALID")
        assert error.message == "Context binding '{namespace}' is invalid"

    def test_detail_override(self):
        """Test a detail entry replaces the template detail."""
        error = ErrorRegistry().create("CONFIG_INVALID", {"detail": "bad level"})
        assert error.detail == "bad level"

    def test_unknown_code(self):
        """Test unknown codes are rejected."""
        with pytest.raises(ValueError):
            ErrorRegistry().create("NOPE")


class TestTokenError:
    """Tests for TokenError."""

    def test_is_exception(self):
        """Test errors can be raised and carry their message."""
        with pytest.raises(TokenError) as exc_info:
            raise create_error("POLICY_INVALID", namespace="user")
        assert str(exc_info.value) == "Security rule for 'user' is invalid"

    def test_to_dict(self):
        """Test serialization includes the cause."""
        cause = create_error("CONFIG_INVALID", detail="root")
        error = ErrorFactory().create("INTERNAL_ERROR", cause=cause)
        data = error.to_dict()
        assert data["code"] == "INTERNAL_ERROR"
        assert data["category"] == "SYSTEM"
        assert data["cause"]["detail"] == "root"
        assert "timestamp" in data

    def test_factory_singleton(self):
        """Test the default factory is shared."""
        assert get_error_factory() is get_error_factory()
