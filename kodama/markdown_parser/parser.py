"""Stage-1 parser turning a Markdown source into a shallow section."""

from __future__ import annotations

import re
import typing as typ
from html import escape

from markdown import Markdown
from pygments.formatters.html import HtmlFormatter

from kodama._constants import KEY_EXT, KEY_SLUG, KEY_TAXON, PLAIN_METADATA_KEYS
from kodama.errors import KodamaIOError
from kodama.html_flake import display_taxon
from kodama.section import (
    HTMLContent,
    Metadata,
    Plain,
    ShallowSection,
    collapse,
    content_text,
)
from kodama.slug import Extension

from .conversion import Conversion
from .extension import KodamaExtension

if typ.TYPE_CHECKING:
    from kodama.environment import BuildEnvironment
    from kodama.reporting import Reporter

CODE_BLOCK_PATTERN = re.compile(r"```([A-Za-z0-9_+#.-]+)?[^\n]*\n(.*?)```", re.DOTALL)
FENCED_INDENT_PATTERN = re.compile(r"^[ ]{1,3}([`~]{3,})", re.MULTILINE)
FENCE_LABEL_PATTERN = re.compile(
    r"^([`~]{3,})([A-Za-z0-9_+#.-]+)?(,[^\r\n]+)$", re.MULTILINE
)
CODEHILITE_OPEN_TAG = re.compile(r'<div class="codehilite">')


def normalize_fenced_blocks(text: str) -> str:
    """Dedent list-nested fences and reduce each fence label to its language.

    A label such as ``typst,render`` highlights as ``typst``.
    """
    without_indent = FENCED_INDENT_PATTERN.sub(r"\1", text)

    def _strip_labels(match: re.Match[str]) -> str:
        fence, language, _extras = match.groups()
        return f"{fence}{language or ''}"

    return FENCE_LABEL_PATTERN.sub(_strip_labels, without_indent)


def annotate_codehilite(html: str, source_markdown: str) -> str:
    """Attach a ``data-language`` attribute to each highlighted block."""
    languages = [
        match.group(1) or "text"
        for match in CODE_BLOCK_PATTERN.finditer(source_markdown)
    ]
    if not languages:
        return html
    lang_iter = iter(languages)

    def _repl(match: re.Match[str]) -> str:
        lang = next(lang_iter, "text")
        return f'<div class="codehilite" data-language="{escape(lang, quote=True)}">'

    return CODEHILITE_OPEN_TAG.sub(_repl, html, len(languages))


def strip_paragraph(html: str) -> str:
    """Unwrap a fragment consisting of exactly one paragraph."""
    if html.startswith("<p>") and html.endswith("</p>") and html.count("<p>") == 1:
        return html[3:-4]
    return html


class MarkdownParser:
    """Convert Markdown sources into :class:`~kodama.section.ShallowSection`.

    A fresh ``markdown.Markdown`` instance is built for every conversion so no
    state leaks between files.
    """

    def __init__(
        self,
        env: BuildEnvironment,
        reporter: Reporter,
        pygments_style: str = "default",
    ) -> None:
        self.env = env
        self.reporter = reporter
        self.pygments_style = pygments_style
        self._formatter = HtmlFormatter(style=pygments_style, cssclass="codehilite")

    @property
    def stylesheet(self) -> str:
        """Return the CSS used for highlighted code blocks."""
        return self._formatter.get_style_defs(".codehilite")

    def parse(self, slug: str) -> ShallowSection:
        """Parse the Markdown source of ``slug``.

        Raises
        ------
        KodamaIOError
            If the source cannot be read.
        KodamaSyntaxError
            If the front-matter block is malformed.
        """
        path = self.env.source_path(slug, Extension.MARKDOWN)
        try:
            text = path.read_text(encoding="utf-8")
        except OSError as exc:
            msg = f"Cannot read '{path}': {exc}"
            raise KodamaIOError(msg, path=path) from exc
        conversion = Conversion(self.env, slug, self.reporter)
        content = self._convert(text, conversion, spanned=False)
        metadata: Metadata = {KEY_SLUG: Plain(slug)}
        for key, value in conversion.metadata.items():
            if key == KEY_SLUG:
                continue
            metadata[key] = self.metadata_value(key, value, slug)
        metadata[KEY_EXT] = Plain(Extension.MARKDOWN.value)
        return ShallowSection(metadata=metadata, content=content)

    def parse_spanned(self, text: str, slug: str) -> HTMLContent:
        """Parse an inline fragment, without the surrounding paragraph."""
        conversion = Conversion(self.env, slug, self.reporter)
        return self._convert(text, conversion, spanned=True)

    def render_inline(self, text: str, slug: str) -> str:
        """Render an inline fragment to HTML, dropping any placeholders."""
        return content_text(self.parse_spanned(text, slug))

    def metadata_value(self, key: str, value: str, slug: str) -> HTMLContent:
        """Return the stored form of one metadata value.

        Plain keys keep their text; every other key is parsed as spanned
        Markdown, and the taxon is capitalised for display.
        """
        if key in PLAIN_METADATA_KEYS:
            return Plain(value)
        content = self.parse_spanned(value, slug)
        if key == KEY_TAXON and isinstance(content, Plain):
            return Plain(display_taxon(content.html))
        return content

    def _convert(self, text: str, conversion: Conversion, *, spanned: bool) -> HTMLContent:
        normalized = normalize_fenced_blocks(text)
        if not normalized.strip():
            return Plain("")
        md = Markdown(
            extensions=[
                "fenced_code",
                "codehilite",
                "tables",
                "footnotes",
                "smarty",
                KodamaExtension(
                    conversion,
                    lambda fragment: self.render_inline(fragment, conversion.slug),
                    spanned=spanned,
                ),
            ],
            extension_configs={
                "codehilite": {
                    "linenums": False,
                    "guess_lang": False,
                    "css_class": "codehilite",
                    "pygments_style": self.pygments_style,
                }
            },
        )
        html = annotate_codehilite(md.convert(normalized), normalized)
        if spanned:
            html = strip_paragraph(html)
        return collapse(conversion.split(html))


__all__ = [
    "CODE_BLOCK_PATTERN",
    "MarkdownParser",
    "annotate_codehilite",
    "normalize_fenced_blocks",
    "strip_paragraph",
]
