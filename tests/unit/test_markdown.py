"""
Unit tests for Markdown converters.
"""

import builtins

import pytest

from miniserver import markdown
from miniserver.errors import MarkdownNotInstalledError
from miniserver.markdown import MARKDOWN_UNSUPPORTED, PatitasConverter, unsupported_markdown


def test_stub_ignores_source():
    assert unsupported_markdown("# Title") == MARKDOWN_UNSUPPORTED
    assert unsupported_markdown("") == MARKDOWN_UNSUPPORTED


def test_missing_patitas_raises(monkeypatch):
    real_import = builtins.__import__

    def fake_import(name, *args, **kwargs):
        if name == "patitas":
            raise ImportError("No module named 'patitas'")
        return real_import(name, *args, **kwargs)

    monkeypatch.setattr(builtins, "__import__", fake_import)

    with pytest.raises(MarkdownNotInstalledError, match="pip install miniserver\\[markdown\\]"):
        markdown.PatitasConverter()


class TestPatitasConverter:

    @pytest.fixture
    def converter(self):
        pytest.importorskip("patitas")
        return PatitasConverter()

    def test_heading(self, converter):
        html = converter("# Guide")

        assert "<h1" in html
        assert "Guide" in html

    def test_blank_source(self, converter):
        assert converter("") == ""
        assert converter("   \n") == ""
