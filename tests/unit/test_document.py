"""Tests for openapi_routes.core.document — copying, path translation, tags.

Tests cover:
- Structural copies that drop callables, keep other values and never alias
  the source.
- Brace to colon path translation, segment by segment.
- Colon to Starlette brace translation.
- Tag accumulation and sorting.
"""

from __future__ import annotations

from datetime import datetime, timezone
from decimal import Decimal

import pytest

from openapi_routes.core.document import (
    ADDITIONAL_MIDDLEWARE,
    add_operation_tag,
    copy_document,
    sort_tags,
    to_router_path,
    to_starlette_path,
)


class TestCopyDocument:
    """Test copy_document structural copies."""

    def test_copy_is_equal_but_not_aliased(self):
        """Nested containers should be rebuilt, not shared."""
        source = {"paths": {"/a": {"parameters": [{"name": "id", "in": "path"}]}}}
        copied = copy_document(source)
        assert copied == source
        copied["paths"]["/a"]["parameters"].append({"name": "q", "in": "query"})
        assert len(source["paths"]["/a"]["parameters"]) == 1

    def test_callables_are_dropped(self):
        """Middleware functions have no JSON form and are left out."""

        def middleware(request, call_next):
            return call_next(request)

        source = {ADDITIONAL_MIDDLEWARE: [middleware, "kept"], "handler": middleware}
        copied = copy_document(source)
        assert copied == {ADDITIONAL_MIDDLEWARE: ["kept"]}

    def test_scalars_pass_through(self):
        """Strings, numbers, booleans and None copy as themselves."""
        assert copy_document({"a": 1, "b": 1.5, "c": True, "d": None, "e": "x"}) == {
            "a": 1,
            "b": 1.5,
            "c": True,
            "d": None,
            "e": "x",
        }

    def test_non_json_scalars_kept(self):
        """Values such as Decimal and datetime are copied, not dropped."""
        moment = datetime(2024, 5, 1, tzinfo=timezone.utc)
        source = {"default": Decimal("1.50"), "example": [moment, Decimal("2")], "tags": ("a", "b")}
        copied = copy_document(source)
        assert copied == {"default": Decimal("1.50"), "example": [moment, Decimal("2")], "tags": ["a", "b"]}

    def test_none_copies_to_none(self):
        """A missing fragment stays missing."""
        assert copy_document(None) is None


class TestToRouterPath:
    """Test to_router_path brace to colon translation."""

    @pytest.mark.parametrize(
        "template,expected",
        [
            ("/widgets/{id}", "/widgets/:id"),
            ("/widgets/{id}/parts/{partId}", "/widgets/:id/parts/:partId"),
            ("/widgets", "/widgets"),
            ("/", "/"),
        ],
    )
    def test_translates_segments(self, template, expected):
        """Every wholly-braced segment becomes a colon parameter."""
        assert to_router_path(template) == expected

    @pytest.mark.parametrize("segment", ["{id", "id}", "x{id}", "{id}x", "{}"])
    def test_malformed_segments_pass_through(self, segment):
        """Only segments that are exactly ``{name}`` are rewritten."""
        assert to_router_path(f"/widgets/{segment}") == f"/widgets/{segment}"


class TestToStarlettePath:
    """Test to_starlette_path colon to brace translation."""

    def test_colon_segments_become_braces(self):
        """Colon parameters are rewritten for Starlette."""
        assert to_starlette_path("/v1/widgets/:id") == "/v1/widgets/{id}"

    def test_plain_segments_unchanged(self):
        """Segments without a leading colon are kept."""
        assert to_starlette_path("/v1/a:b") == "/v1/a:b"


class TestTags:
    """Test add_operation_tag and sort_tags."""

    def test_adds_missing_tag(self):
        """A new tag name is appended as a tag object."""
        doc: dict = {}
        add_operation_tag(doc, "widgets")
        assert doc["tags"] == [{"name": "widgets"}]

    def test_adding_twice_is_idempotent(self):
        """The same name is only recorded once."""
        doc: dict = {"tags": [{"name": "widgets", "description": "Widget ops"}]}
        add_operation_tag(doc, "widgets")
        add_operation_tag(doc, "widgets")
        assert doc["tags"] == [{"name": "widgets", "description": "Widget ops"}]

    def test_non_string_tags_ignored(self):
        """Only string tag names are accepted."""
        doc: dict = {}
        add_operation_tag(doc, 42)
        assert "tags" not in doc

    def test_sort_tags_by_name(self):
        """Tags end up in ascending name order."""
        doc: dict = {}
        for tag in ["widgets", "admin", "parts"]:
            add_operation_tag(doc, tag)
        sort_tags(doc)
        assert [tag["name"] for tag in doc["tags"]] == ["admin", "parts", "widgets"]

    def test_sort_without_tags(self):
        """Sorting a document without tags is a no-op."""
        doc: dict = {}
        sort_tags(doc)
        assert doc == {}
