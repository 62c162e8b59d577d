"""The kodama Python-Markdown extension wiring every stage-1 processor."""

from __future__ import annotations

import typing as typ

from markdown.extensions import Extension

from .links import FOREST_LINK_PATTERN, ForestLinkInlineProcessor
from .math_compat import MATH_PATTERN, MathInlineProcessor
from .metadata import MetadataPreprocessor
from .treeprocessors import FigureTreeprocessor, FootnoteTreeprocessor
from .typst_actions import TypstActionPreprocessor

if typ.TYPE_CHECKING:
    from markdown import Markdown

    from .conversion import Conversion


class KodamaExtension(Extension):
    """Register the forest processors on a ``markdown.Markdown`` instance.

    Priorities place each processor relative to the stock ones: metadata is
    read before fenced code is stashed, Typst links are replaced after it,
    forest links are classified before code spans are parsed, and math is
    stashed before backslash escapes are applied.
    """

    def __init__(
        self,
        conversion: Conversion,
        render_inline: typ.Callable[[str], str],
        *,
        spanned: bool = False,
    ) -> None:
        super().__init__()
        self.conversion = conversion
        self.render_inline = render_inline
        self.spanned = spanned

    def extendMarkdown(self, md: Markdown) -> None:  # type: ignore[override]  # noqa: N802
        """Register the kodama preprocessors, inline patterns and treeprocessors."""
        conversion = self.conversion
        if not self.spanned:
            md.preprocessors.register(
                MetadataPreprocessor(md, conversion), "kodama_metadata", 27
            )
        md.preprocessors.register(
            TypstActionPreprocessor(md, conversion), "kodama_typst", 22
        )
        md.inlinePatterns.register(
            ForestLinkInlineProcessor(
                FOREST_LINK_PATTERN, md, conversion, self.render_inline
            ),
            "kodama_link",
            200,
        )
        md.inlinePatterns.register(
            MathInlineProcessor(MATH_PATTERN, md), "kodama_math", 185
        )
        md.treeprocessors.register(FigureTreeprocessor(md), "kodama_figure", 15)
        md.treeprocessors.register(
            FootnoteTreeprocessor(md, conversion.slug), "kodama_footnote", 8
        )


__all__ = ["KodamaExtension"]
