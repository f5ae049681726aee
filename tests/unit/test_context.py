"""
Unit Tests for Template Context Building
========================================
"""

from html_to_image.core.context import build_context


class TestBuildContext:
    """Test template context construction."""

    def test_dimensions_only(self):
        """Test the context without caller data."""
        assert build_context(64, 48) == {"width": 64, "height": 48}

    def test_mapping_is_merged(self):
        """Test that mapping keys become top-level variables."""
        context = build_context(64, 48, {"name": "Ada", "items": [1, 2]})

        assert context == {"width": 64, "height": 48, "name": "Ada", "items": [1, 2]}

    def test_mapping_overrides_dimensions(self):
        """Test that caller data wins over the injected dimensions."""
        context = build_context(64, 48, {"width": 999})

        assert context["width"] == 999
        assert context["height"] == 48

    def test_non_mapping_kept_whole(self):
        """Test that a non-mapping value is exposed as ``data``."""
        assert build_context(10, 20, [1, 2, 3]) == {"width": 10, "height": 20, "data": [1, 2, 3]}
        assert build_context(10, 20, "hello")["data"] == "hello"

    def test_falsy_scalar_is_kept(self):
        """Test that zero and false are still exposed."""
        assert build_context(1, 1, 0)["data"] == 0
        assert build_context(1, 1, False)["data"] is False

    def test_caller_data_not_mutated(self):
        """Test that the caller's mapping is left untouched."""
        data = {"name": "Ada"}
        build_context(1, 1, data)

        assert data == {"name": "Ada"}
