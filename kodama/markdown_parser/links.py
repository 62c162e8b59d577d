"""Classify Markdown links into embeds, includes, and forest links.

The processor runs ahead of the stock ``link`` pattern and only claims links
whose target it understands; anything else falls through to Python-Markdown.

- ``[+Title](ch1#:embed)`` becomes an :class:`~kodama.section.Embed`
  placeholder; leading ``+``, ``-`` and ``.`` sigils enable numbering,
  collapse the details, and hide the ToC entry respectively.
- ``[python](snippets/a.py#:include)`` inlines the file as a code block.
- External URLs render as ``link external`` spans, asset URLs as
  ``link asset`` spans.
- Other relative targets become :class:`~kodama.section.Local` placeholders.
"""

from __future__ import annotations

import typing as typ
import xml.etree.ElementTree as etree  # noqa: N813

from markdown.inlinepatterns import LinkInlineProcessor

from kodama._constants import ACTION_EMBED, ACTION_INCLUDE
from kodama.html_flake import html_code_block, html_error
from kodama.section import Embed, Local, SectionOption
from kodama.slug import pretty_path, to_slug

from .conversion import in_code_span
from .typst_actions import is_inline_typst, relativize, url_action

if typ.TYPE_CHECKING:
    import re

    from markdown import Markdown

    from .conversion import Conversion

FOREST_LINK_PATTERN = r"(?<![!\\])\["
EXTERNAL_SCHEMES = frozenset({"http", "https", "ftp", "mailto", "file", "data", "irc"})
EMBED_SIGILS = "+-."


def is_external_link(url: str) -> bool:
    """Return whether ``url`` leaves the forest.

    Examples
    --------
    >>> is_external_link("https://typst.app")
    True
    >>> is_external_link("www.example.org")
    True
    >>> is_external_link("notes/a")
    False
    """
    scheme, sep, _rest = url.partition(":")
    return (bool(sep) and scheme.lower() in EXTERNAL_SCHEMES) or url.startswith("www.")


def parse_embed_text(text: str) -> tuple[SectionOption, str | None]:
    """Consume leading embed sigils and return the options and title.

    Examples
    --------
    >>> parse_embed_text("+Chapter One")
    (SectionOption(numbering=True, details_open=True, catalog=True), 'Chapter One')
    >>> parse_embed_text("-.")
    (SectionOption(numbering=False, details_open=False, catalog=False), None)
    """
    option = SectionOption()
    index = 0
    while index < len(text) and text[index] in EMBED_SIGILS:
        match text[index]:
            case "+":
                option.numbering = True
            case "-":
                option.details_open = False
            case ".":
                option.catalog = False
        index += 1
    title = text[index:].strip()
    return option, title or None


class ForestLinkInlineProcessor(LinkInlineProcessor):
    """Turn forest-aware links into placeholders or finished fragments."""

    def __init__(
        self,
        pattern: str,
        md: Markdown,
        conversion: Conversion,
        render_inline: typ.Callable[[str], str],
    ) -> None:
        super().__init__(pattern, md)
        self.conversion = conversion
        self.render_inline = render_inline

    def handleMatch(  # type: ignore[override]  # noqa: N802
        self, m: re.Match[str], data: str
    ) -> tuple[str | etree.Element | None, int | None, int | None]:
        if in_code_span(data, m.start(0)):
            return None, None, None
        text, index, handled = self.getText(data, m.end(0))
        if not handled:
            return None, None, None
        href, _title, index, handled = self.getLink(data, index)
        if not handled or not href:
            return None, None, None
        node = self._classify(text, href)
        if node is None:
            return None, None, None
        return node, m.start(0), index

    def _classify(self, text: str, target: str) -> str | etree.Element | None:
        url, action = url_action(target)
        env = self.conversion.env
        if action == ACTION_EMBED:
            option, title = parse_embed_text(text)
            embed = Embed(
                url=to_slug(relativize(env, url)),
                title=self.render_inline(title) if title else None,
                option=option,
            )
            return self.md.htmlStash.store(self.conversion.marker(embed))
        if action == ACTION_INCLUDE:
            return self.md.htmlStash.store(self._include(url, text.strip()))
        if action or url.startswith("#"):
            return None
        if is_external_link(url):
            title = url if text == url else f"{text} [{url}]"
            return self._link_element(url, title, text, "external")
        assets = pretty_path(env.config.kodama.assets)
        if pretty_path(url).startswith(f"{assets}/"):
            title = url if not text else f"{text} [{url}]"
            return self._link_element(env.full_url(pretty_path(url)), title, text or url, "asset")
        if url.endswith("/") or ":" in url or is_inline_typst(url):
            return None
        local = Local(
            slug=to_slug(relativize(env, url)),
            text=self.render_inline(text) if text.strip() else None,
        )
        return self.md.htmlStash.store(self.conversion.marker(local))

    @staticmethod
    def _link_element(href: str, title: str, text: str, class_name: str) -> etree.Element:
        wrapper = etree.Element("span")
        wrapper.set("class", f"link {class_name}")
        anchor = etree.SubElement(wrapper, "a")
        anchor.set("href", href)
        anchor.set("title", title)
        anchor.text = text
        return wrapper

    def _include(self, url: str, language: str) -> str:
        path = self.conversion.env.root / pretty_path(url)
        try:
            code = path.read_text(encoding="utf-8")
        except OSError as exc:
            self.conversion.reporter.error(
                f"{self.conversion.slug}: cannot include '{path}': {exc}"
            )
            return html_error(f"missing include {url}")
        return html_code_block(code, language or None)


__all__ = [
    "FOREST_LINK_PATTERN",
    "ForestLinkInlineProcessor",
    "is_external_link",
    "parse_embed_text",
]
