"""Tests for perch.markdown: the patitas wrapper."""

import builtins

import pytest

from perch.markdown import MarkdownNotInstalledError, MarkdownRenderer


class TestMarkdownRenderer:
    def test_empty_source(self) -> None:
        assert MarkdownRenderer().render("") == ""

    def test_renders_heading(self) -> None:
        html = MarkdownRenderer().render("# Title\n\nBody text.")
        assert "<h1" in html
        assert "Title" in html
        assert "Body text." in html

    def test_missing_patitas(self, monkeypatch: pytest.MonkeyPatch) -> None:
        real_import = builtins.__import__

        def fake_import(name: str, *args: object, **kwargs: object) -> object:
            if name == "patitas":
                raise ImportError(name)
            return real_import(name, *args, **kwargs)

        monkeypatch.setattr(builtins, "__import__", fake_import)
        with pytest.raises(MarkdownNotInstalledError, match="pip install perch"):
            MarkdownRenderer().render("# Title")
