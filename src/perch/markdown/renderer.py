"""Markdown renderer wrapping patitas."""

from __future__ import annotations

from typing import TYPE_CHECKING

from perch.errors import MarkdownNotInstalledError

if TYPE_CHECKING:
    from patitas import Markdown


class MarkdownRenderer:
    """Render Markdown source to HTML via patitas.

    The patitas instance is created lazily on first render, so handlers
    without a README never need patitas installed.

    Args:
        plugins: Patitas plugins to enable (default: all).
        highlight: Enable syntax highlighting for fenced code blocks.
    """

    __slots__ = ("_highlight", "_md", "_plugins")

    def __init__(
        self,
        *,
        plugins: list[str] | None = None,
        highlight: bool = False,
    ) -> None:
        self._plugins = plugins
        self._highlight = highlight
        self._md: Markdown | None = None

    def render(self, source: str) -> str:
        """Render Markdown source to an HTML string."""
        if not source:
            return ""
        if self._md is None:
            self._md = _get_markdown(plugins=self._plugins, highlight=self._highlight)
        return self._md(source)


def _get_markdown(
    *,
    plugins: list[str] | None,
    highlight: bool,
) -> Markdown:
    """Create a patitas Markdown instance, raising a clear error if missing."""
    try:
        from patitas import Markdown
    except ImportError:
        msg = (
            "perch.markdown requires 'patitas' for Markdown rendering. "
            "Install with: pip install perch[markdown]"
        )
        raise MarkdownNotInstalledError(msg) from None

    return Markdown(plugins=plugins or ["all"], highlight=highlight)
