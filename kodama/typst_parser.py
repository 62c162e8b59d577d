"""Stage-1 parser for ``.typst`` sections.

The Typst source is compiled to HTML and scanned for kodama pseudo-tags that
the ``import.typ`` helpers emit::

    <kodamameta key="title" value="Knots"></kodamameta>
    <kodamaembed url="ch1" numbering="true">Chapter One</kodamaembed>
    <span><kodamalocal slug="b"></kodamalocal></span>

Everything outside a tag is kept as HTML; tags become metadata entries or
:class:`~kodama.section.Embed` and :class:`~kodama.section.Local`
placeholders, so both parsers produce the same
:class:`~kodama.section.ShallowSection` shape.
"""

from __future__ import annotations

import dataclasses as dc
import os
import re
import typing as typ
from html import unescape

from . import typst_cli
from ._constants import KEY_EXT, KEY_SLUG, KEY_TAXON, PLAIN_METADATA_KEYS
from .errors import KodamaSyntaxError
from .html_flake import display_taxon
from .section import (
    Embed,
    HTMLContent,
    LazyContent,
    Local,
    Metadata,
    Plain,
    SectionOption,
    ShallowSection,
    collapse,
    content_text,
)
from .slug import Extension, to_slug

if typ.TYPE_CHECKING:
    from .environment import BuildEnvironment
    from .markdown_parser import MarkdownParser

TAG_KINDS = frozenset({"meta", "embed", "local"})
_ATTRS = r'(?P<attrs{n}>(?:\s+[a-zA-Z-]+="(?:[^"\\]|\\[\s\S])*")*)'
TAG_PATTERN = re.compile(
    r"<span>\s*<kodama(?P<open0>local)" + _ATTRS.format(n=0) + r"\s*>"
    r"|</kodama(?P<close0>local)>\s*</span>"
    r"|<kodama(?P<open1>[a-z]+)" + _ATTRS.format(n=1) + r"\s*>"
    r"|</kodama(?P<close1>[a-z]+)>"
)
ATTR_PATTERN = re.compile(r'(?P<key>[a-zA-Z-]+)="(?P<value>(?:[^"\\]|\\[\s\S])*)"')
C_ESCAPE_PATTERN = re.compile(r"\\([\s\S])")
C_ESCAPES = {"n": "\n", "t": "\t", "r": "\r", "0": "\0"}


@dc.dataclass(slots=True)
class TagMatch:
    """One balanced kodama tag with its attributes and trimmed body."""

    kind: str
    start: int
    end: int
    attrs: dict[str, str]
    body: str


def decode_attribute(raw: str) -> str:
    r"""Unescape HTML entities, then backslash escapes.

    Examples
    --------
    >>> decode_attribute('say \\"hi\\" &amp; go')
    'say "hi" & go'
    >>> decode_attribute("a\\nb")
    'a\nb'
    """
    text = unescape(raw)
    return C_ESCAPE_PATTERN.sub(
        lambda match: C_ESCAPES.get(match.group(1), match.group(1)), text
    )


def parse_attributes(raw: str) -> dict[str, str]:
    return {
        match.group("key"): decode_attribute(match.group("value"))
        for match in ATTR_PATTERN.finditer(raw)
    }


def parse_bool(value: str | None, default: bool) -> bool:
    """Interpret a pseudo-tag flag.

    Examples
    --------
    >>> parse_bool(None, True), parse_bool("auto", False)
    (True, False)
    >>> parse_bool("none", True), parse_bool("1", False)
    (False, True)
    """
    match value:
        case None | "auto":
            return default
        case "false" | "0" | "none":
            return False
        case _:
            return True


def scan_tags(slug: str, html: str) -> typ.Iterator[TagMatch]:
    """Yield the outermost kodama tags of ``html`` in document order.

    Raises
    ------
    KodamaSyntaxError
        If tags are unbalanced or of an unknown kind.
    """
    stack: list[tuple[str, re.Match[str]]] = []
    for match in TAG_PATTERN.finditer(html):
        opened = match.group("open0") or match.group("open1")
        if opened is not None:
            if opened not in TAG_KINDS:
                msg = f"unknown kodama tag kind `{opened}`"
                raise KodamaSyntaxError(slug, msg)
            stack.append((opened, match))
            continue
        closed = match.group("close0") or match.group("close1")
        if not stack:
            msg = f"unexpected closing tag `</kodama{closed}>`"
            raise KodamaSyntaxError(slug, msg)
        kind, open_match = stack.pop()
        if kind != closed:
            msg = f"mismatched kodama tags `{kind}` and `{closed}`"
            raise KodamaSyntaxError(slug, msg)
        if stack:
            continue
        attrs = open_match.group("attrs0") or open_match.group("attrs1") or ""
        yield TagMatch(
            kind=kind,
            start=open_match.start(),
            end=match.end(),
            attrs=parse_attributes(attrs),
            body=html[open_match.end() : match.start()].strip(),
        )
    if stack:
        msg = f"unclosed kodama tag `{stack[-1][0]}`"
        raise KodamaSyntaxError(slug, msg)


class TypstHtmlParser:
    """Turn Typst HTML output into shallow-section content and metadata."""

    def __init__(
        self, env: BuildEnvironment, slug: str, markdown: MarkdownParser
    ) -> None:
        self.env = env
        self.slug = slug
        self.markdown = markdown

    def parse(self, html: str, metadata: Metadata) -> HTMLContent:
        items: list[LazyContent] = []
        cursor = 0
        for tag in scan_tags(self.slug, html):
            items.append(Plain(html[cursor : tag.start]))
            cursor = tag.end
            match tag.kind:
                case "meta":
                    key, value = self._meta(tag)
                    metadata[key] = value
                case "embed":
                    items.append(self._embed(tag))
                case "local":
                    items.append(
                        Local(
                            slug=to_slug(self._required(tag, "slug")),
                            text=self._value(tag, "text"),
                        )
                    )
        items.append(Plain(html[cursor:]))
        return collapse(items)

    def _required(self, tag: TagMatch, name: str) -> str:
        try:
            return tag.attrs[name]
        except KeyError:
            msg = f"missing attribute `{name}` in kodama{tag.kind} tag"
            raise KodamaSyntaxError(self.slug, msg) from None

    @staticmethod
    def _value(tag: TagMatch, name: str) -> str | None:
        """Return the ``name`` or ``value`` attribute, falling back to the body."""
        value = tag.attrs.get(name, tag.attrs.get("value", tag.body))
        return value or None

    def _meta(self, tag: TagMatch) -> tuple[str, HTMLContent]:
        key = self._required(tag, "key")
        if "value" in tag.attrs:
            return key, self.markdown.metadata_value(key, tag.attrs["value"], self.slug)
        value = self.parse(tag.body, {})
        if key in PLAIN_METADATA_KEYS:
            return key, Plain(content_text(value))
        if key == KEY_TAXON and isinstance(value, Plain):
            return key, Plain(display_taxon(value.html))
        return key, value

    def _embed(self, tag: TagMatch) -> Embed:
        default = SectionOption()
        return Embed(
            url=to_slug(self._required(tag, "url")),
            title=self._value(tag, "title"),
            option=SectionOption(
                numbering=parse_bool(tag.attrs.get("numbering"), default.numbering),
                details_open=parse_bool(tag.attrs.get("open"), default.details_open),
                catalog=parse_bool(tag.attrs.get("catalog"), default.catalog),
            ),
        )


def typst_relative_path(env: BuildEnvironment, slug: str) -> str:
    """Return the section source path relative to the Typst root."""
    source = env.source_path(slug, Extension.TYPST)
    return os.path.relpath(source, env.typst_root).replace(os.sep, "/")


def parse_typst(
    env: BuildEnvironment, slug: str, markdown: MarkdownParser
) -> ShallowSection:
    """Compile ``slug``'s Typst source and parse its kodama tags.

    Raises
    ------
    KodamaIOError
        If the Typst binary fails.
    KodamaSyntaxError
        If the pseudo-tags are malformed.
    """
    html = typst_cli.file_to_html(typst_relative_path(env, slug), env.typst_root)
    metadata: Metadata = {KEY_SLUG: Plain(slug)}
    content = TypstHtmlParser(env, slug, markdown).parse(html, metadata)
    metadata[KEY_SLUG] = Plain(slug)
    metadata[KEY_EXT] = Plain(Extension.TYPST.value)
    return ShallowSection(metadata=metadata, content=content)


__all__ = [
    "TAG_PATTERN",
    "TagMatch",
    "TypstHtmlParser",
    "decode_attribute",
    "parse_bool",
    "parse_typst",
    "scan_tags",
    "typst_relative_path",
]
