"""Small HTML fragment builders shared by the parsers and the writer."""

from __future__ import annotations

import re
from html import escape

TAG_PATTERN = re.compile(r"<[^>]*>")


def strip_tags(html: str) -> str:
    """Return ``html`` with every tag removed.

    Examples
    --------
    >>> strip_tags('<em>Open</em> sets')
    'Open sets'
    """
    return TAG_PATTERN.sub("", html)


def attr(value: str) -> str:
    """Escape ``value`` for use inside a double-quoted attribute."""
    return escape(value, quote=True)


def display_taxon(text: str) -> str:
    """Capitalise a taxon and append the ``". "`` separator.

    Examples
    --------
    >>> display_taxon("definition")
    'Definition. '
    >>> display_taxon("")
    ''
    """
    text = text.strip()
    if not text:
        return ""
    return f"{text[0].upper()}{text[1:]}. "


def numbered_taxon(taxon: str, numbering: str | None) -> str:
    """Return the taxon label shown beside a heading.

    With ``numbering`` the trailing ``". "`` is dropped before the number is
    appended.

    Examples
    --------
    >>> numbered_taxon("Section. ", "1.")
    'Section 1. '
    >>> numbered_taxon("Section. ", None)
    'Section. '
    """
    if numbering is None:
        return taxon
    text = taxon[:-2] if taxon.endswith(". ") else taxon
    return f"{text} {numbering} "


def data_taxon(taxon_html: str) -> str:
    """Return the ``data-taxon`` attribute value for a rendered taxon."""
    return strip_tags(taxon_html).strip().rstrip(".").strip().lower()


def html_link(href: str, title: str, text: str, class_name: str) -> str:
    """Return an anchor wrapped in a ``link`` span; ``text`` is trusted HTML."""
    return (
        f'<span class="link {class_name}">'
        f'<a href="{attr(href)}" title="{attr(title)}">{text}</a></span>'
    )


def html_image(src: str, alt: str = "") -> str:
    return f'<img src="{attr(src)}" title="{attr(alt)}" alt="{attr(alt)}" />'


def html_figure(src: str, *, center: bool, caption: str) -> str:
    """Return an image, wrapped in a captioned figure when centered."""
    if not center:
        return html_image(src)
    figcaption = f"<figcaption>{caption}</figcaption>" if caption else ""
    return f"<figure>{html_image(src)}{figcaption}</figure>"


def html_code_block(code: str, language: str | None = None) -> str:
    class_attr = f' class="language-{attr(language)}"' if language else ""
    return f"<pre><code{class_attr}>{escape(code, quote=False)}</code></pre>"


def html_figure_code(src: str, caption: str, code: str) -> str:
    """Return a rendered figure followed by the source that produced it."""
    return f"{html_figure(src, center=True, caption=caption)}\n{html_code_block(code, 'typst')}"


def html_inline_typst_span(svg: str) -> str:
    return f'<span class="inline-typst">{svg}</span>'


def html_math(formula: str, *, display: bool) -> str:
    """Wrap a formula for client-side rendering.

    Every ``<`` gets surrounding spaces so HTML tokenizers never read it as
    the start of a tag; the formula is otherwise verbatim.
    """
    kind = "math-display" if display else "math-inline"
    return f'<span class="math {kind}">{formula.replace("<", " < ")}</span>'


def html_error(message: str) -> str:
    """Return a visible marker for content that failed to resolve."""
    return f'<span class="kodama-error">{escape(message, quote=False)}</span>'


__all__ = [
    "TAG_PATTERN",
    "attr",
    "data_taxon",
    "display_taxon",
    "html_code_block",
    "html_error",
    "html_figure",
    "html_figure_code",
    "html_image",
    "html_inline_typst_span",
    "html_link",
    "html_math",
    "numbered_taxon",
    "strip_tags",
]
