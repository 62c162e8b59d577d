"""Inline and display math spans left for client-side rendering."""

from __future__ import annotations

import typing as typ

from markdown.inlinepatterns import InlineProcessor

from kodama.html_flake import html_math

if typ.TYPE_CHECKING:
    import re
    import xml.etree.ElementTree as etree  # noqa: N813

MATH_PATTERN = (
    r"(?<!\\)\$\$(?P<display>.+?)\$\$"
    r"|(?<![\\$])\$(?P<inline>[^$\n]+?)\$(?!\$)"
)


class MathInlineProcessor(InlineProcessor):
    """Stash ``$…$`` and ``$$…$$`` as raw math spans.

    The formula bypasses every later inline pattern, so emphasis markers and
    backslashes inside it survive verbatim.
    """

    def handleMatch(  # type: ignore[override]  # noqa: N802
        self, m: re.Match[str], data: str
    ) -> tuple[str | etree.Element | None, int | None, int | None]:
        display = m.group("display")
        formula = display if display is not None else m.group("inline")
        html = html_math(formula, display=display is not None)
        return self.md.htmlStash.store(html), m.start(0), m.end(0)


__all__ = ["MATH_PATTERN", "MathInlineProcessor"]
