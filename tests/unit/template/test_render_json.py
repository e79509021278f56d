"""Unit tests for TokenEngine.render_json()."""

from datetime import datetime
from decimal import Decimal

import pytest

from cms_tokens import render_json
from cms_tokens.types import IssueKind


@pytest.mark.asyncio
class TestRenderJson:
    """Tests for JSON document rendering."""

    async def test_nested_document(self, engine, context):
        """Test string leaves are rendered at every depth."""
        document = {
            "subject": "Welcome {{ user.name }}",
            "blocks": [
                {"type": "heading", "text": "{{ entry.title | upper }}"},
                {"type": "list", "items": ["{{ entry.tags.0.name }}", "static"]},
            ],
            "count": 3,
            "draft": False,
            "missing": None,
        }
        rendered = await engine.render_json(document, context)
        assert rendered == {
            "subject": "Welcome Ada Lovelace",
            "blocks": [
                {"type": "heading", "text": "HELLO WORLD"},
                {"type": "list", "items": ["news", "static"]},
            ],
            "count": 3,
            "draft": False,
            "missing": None,
        }

    async def test_input_not_mutated(self, engine, context):
        """Test the source document is left unchanged."""
        document = {"a": ["{{ entry.title }}"]}
        await engine.render_json(document, context)
        assert document == {"a": ["{{ entry.title }}"]}

    async def test_keys_not_rendered(self, engine, context):
        """Test mapping keys are kept verbatim."""
        rendered = await engine.render_json({"{{ entry.title }}": "x"}, context)
        assert rendered == {"{{ entry.title }}": "x"}

    async def test_tuple_type_preserved(self, engine, context):
        """Test tuples stay tuples and lists stay lists."""
        rendered = await engine.render_json({"t": ("{{ entry.title }}", 1), "l": []}, context)
        assert rendered["t"] == ("Hello World", 1)
        assert isinstance(rendered["t"], tuple)
        assert rendered["l"] == []

    async def test_opaque_values_unchanged(self, engine, context):
        """Test non-JSON leaves pass through as the same objects."""
        when = datetime(2024, 1, 1)
        amount = Decimal("9.99")
        rendered = await engine.render_json([when, amount, b"raw"], context)
        assert rendered[0] is when
        assert rendered[1] is amount
        assert rendered[2] == b"raw"

    async def test_scalar_root(self, engine, context):
        """Test a bare string or number works as the document."""
        assert await engine.render_json("{{ entry.title }}", context) == "Hello World"
        assert await engine.render_json(7, context) == 7

    async def test_collects_issues(self, engine, context):
        """Test issues from every leaf are collected in order."""
        issues = []
        rendered = await engine.render_json(
            {"a": "{{ user.password }}", "b": ["{{ entry.nope }}"]}, context, issues
        )
        assert rendered == {"a": "", "b": [""]}
        assert [issue.kind for issue in issues] == [IssueKind.BLOCKED, IssueKind.UNRESOLVED]

    async def test_module_level(self):
        """Test the module-level helper."""
        rendered = await render_json({"t": "{{ entry.title }}"}, {"entry": {"title": "x"}})
        assert rendered == {"t": "x"}
