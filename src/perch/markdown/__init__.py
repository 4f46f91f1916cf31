"""Markdown rendering for handler READMEs via patitas.

Thin wrapper around patitas so the rest of perch depends on one stable
interface.

Basic usage::

    from perch.markdown import MarkdownRenderer

    html = MarkdownRenderer().render("# demo_01")

Requires ``patitas``::

    pip install perch[markdown]
"""

from perch.errors import MarkdownError, MarkdownNotInstalledError
from perch.markdown.renderer import MarkdownRenderer

__all__ = [
    "MarkdownError",
    "MarkdownNotInstalledError",
    "MarkdownRenderer",
]
