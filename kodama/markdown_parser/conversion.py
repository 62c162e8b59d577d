"""Per-file conversion state shared by the kodama Markdown extensions."""

from __future__ import annotations

import dataclasses as dc
import re
import typing as typ

from kodama.section import Embed, LazyContent, Local, Plain

if typ.TYPE_CHECKING:
    from kodama.environment import BuildEnvironment
    from kodama.reporting import Reporter

EMBED_MARKER = "<!--kodama-embed:{index}-->"
LOCAL_MARKER = "<kodama-local:{index}>"
MARKER_PATTERN = re.compile(r"<!--kodama-embed:(\d+)-->|<kodama-local:(\d+)>")
CODE_SPAN_PATTERN = re.compile(r"(?<!\\)(`+)(.+?)(?<!`)\1(?!`)", re.DOTALL)


def in_code_span(text: str, position: int) -> bool:
    """Return whether ``position`` falls inside a backtick code span."""
    return any(
        span.start() < position < span.end()
        for span in CODE_SPAN_PATTERN.finditer(text)
    )


@dc.dataclass(slots=True)
class Conversion:
    """Mutable state for converting one Markdown source.

    ``placeholders`` collects the embed and local-link placeholders in the
    order their markers were emitted; ``shared_imports`` accumulates Typst
    ``#import`` lines for later inline fragments of the same file;
    ``metadata`` receives the raw ``key: value`` pairs of the front block.
    """

    env: BuildEnvironment
    slug: str
    reporter: Reporter
    placeholders: list[Embed | Local] = dc.field(default_factory=list)
    shared_imports: list[str] = dc.field(default_factory=list)
    metadata: dict[str, str] = dc.field(default_factory=dict)

    def marker(self, placeholder: Embed | Local) -> str:
        """Register ``placeholder`` and return the raw HTML marker for it."""
        index = len(self.placeholders)
        self.placeholders.append(placeholder)
        template = EMBED_MARKER if isinstance(placeholder, Embed) else LOCAL_MARKER
        return template.format(index=index)

    def split(self, html: str) -> list[LazyContent]:
        """Split converted HTML back into fragments and placeholders."""
        items: list[LazyContent] = []
        position = 0
        for match in MARKER_PATTERN.finditer(html):
            items.append(Plain(html[position : match.start()]))
            index = match.group(1) or match.group(2)
            items.append(self.placeholders[int(index)])
            position = match.end()
        items.append(Plain(html[position:]))
        return items


__all__ = ["Conversion", "MARKER_PATTERN", "in_code_span"]
