"""
Pytest configuration and shared fixtures for token engine tests.
"""

import sys
from datetime import UTC, datetime
from pathlib import Path
from typing import Any

import pytest

# Add src to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from cms_tokens.logging import reset_loggers  # noqa: E402
from cms_tokens.template import Context, ContextBuilder, SecurityPolicy, TokenEngine  # noqa: E402

# =============================================================================
# Engine Fixtures
# =============================================================================


@pytest.fixture
def engine() -> TokenEngine:
    """Engine with the default policy and the built-in modifiers."""
    return TokenEngine()


@pytest.fixture
def permissive_engine() -> TokenEngine:
    """Engine with no access rules."""
    return TokenEngine(policy=SecurityPolicy.permissive())


# =============================================================================
# Context Fixtures
# =============================================================================


@pytest.fixture
def fixed_now() -> datetime:
    return datetime(2024, 1, 15, 10, 30, 45, tzinfo=UTC)


@pytest.fixture
def entry() -> dict[str, Any]:
    return {
        "title": "Hello World",
        "price": 50,
        "tags": [{"name": "news"}, {"name": "tech"}],
        "author": {"name": "Ada", "password": "hunter2"},
        "published": None,
    }


@pytest.fixture
def user() -> dict[str, Any]:
    return {
        "_id": "u1",
        "email": "ada@example.com",
        "username": "ada",
        "role": "admin",
        "name": "Ada Lovelace",
        "password": "hunter2",
        "hashed_password": "$argon2id$abc",
        "resetToken": "r-123",
    }


@pytest.fixture
def context(entry: dict[str, Any], user: dict[str, Any], fixed_now: datetime) -> Context:
    return (
        ContextBuilder()
        .with_entry(entry)
        .with_user(user)
        .with_site({"SITE_NAME": "Example", "JWT_SECRET_KEY": "s3cr3t"})
        .with_system(now=fixed_now, language="de")
        .build()
    )


@pytest.fixture(autouse=True)
def reset_logger_state():
    """Reset logger cache before and after each test."""
    reset_loggers()
    yield
    reset_loggers()


# =============================================================================
# Markers Configuration
# =============================================================================


def pytest_configure(config):
    """Configure custom markers."""
    config.addinivalue_line("markers", "unit: Unit tests")
    config.addinivalue_line("markers", "property: Property-based tests")
    config.addinivalue_line("markers", "security: Security tests")
