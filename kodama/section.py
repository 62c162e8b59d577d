"""Section data model shared by both parsers, the resolver, and the writer.

Stage 1 produces a :class:`ShallowSection` whose content may still hold
:class:`Embed` and :class:`Local` placeholders. Stage 2 resolves those into a
:class:`Section` whose children are finished HTML strings or embedded
sections.

The JSON form used by the entry cache is externally tagged::

    {"metadata": {"title": {"Plain": "Root"}},
     "content": {"Lazy": [{"Plain": "<p>"}, {"Local": {"slug": "b", "text": null}}]}}

Examples
--------
>>> from kodama.section import Plain, Local, collapse
>>> collapse([Plain("<p>"), Plain("Hi</p>")])
Plain(html='<p>Hi</p>')
>>> collapse([Plain("<p>"), Local("b", None)]).items[1]
Local(slug='b', text=None)
"""

from __future__ import annotations

import dataclasses as dc
import typing as typ

from ._constants import (
    KEY_ASBACK,
    KEY_ASREF,
    KEY_COLLECT,
    KEY_DATA_TAXON,
    KEY_FOOTER_MODE,
    KEY_PAGE_TITLE,
    KEY_REFERENCES,
    KEY_SLUG,
    KEY_TAXON,
    KEY_TITLE,
)


@dc.dataclass(slots=True)
class SectionOption:
    """Presentation options chosen at an embedding site."""

    numbering: bool = False
    details_open: bool = True
    catalog: bool = True


@dc.dataclass(slots=True)
class Plain:
    """A finished HTML fragment."""

    html: str


@dc.dataclass(slots=True)
class Embed:
    """Placeholder for another section inlined at this position."""

    url: str
    title: str | None = None
    option: SectionOption = dc.field(default_factory=SectionOption)


@dc.dataclass(slots=True)
class Local:
    """Placeholder for a link whose text defaults to the target's title."""

    slug: str
    text: str | None = None


LazyContent: typ.TypeAlias = Plain | Embed | Local


@dc.dataclass(slots=True)
class Lazy:
    """Content that still needs resolving against the compile state.

    Build instances through :func:`collapse` so that a lone fragment is stored
    as :class:`Plain`.
    """

    items: list[LazyContent]


HTMLContent: typ.TypeAlias = Plain | Lazy
Metadata: typ.TypeAlias = dict[str, HTMLContent]


def collapse(items: typ.Iterable[LazyContent]) -> HTMLContent:
    """Coalesce adjacent fragments and canonicalise the result.

    Empty fragments are dropped. A result holding nothing but HTML becomes a
    single :class:`Plain`.
    """
    merged: list[LazyContent] = []
    for item in items:
        if isinstance(item, Plain):
            if not item.html:
                continue
            if merged and isinstance(merged[-1], Plain):
                merged[-1] = Plain(merged[-1].html + item.html)
                continue
        merged.append(item)
    if not merged:
        return Plain("")
    if len(merged) == 1 and isinstance(merged[0], Plain):
        return merged[0]
    return Lazy(merged)


def content_text(content: HTMLContent) -> str:
    """Return the HTML of ``content`` with any placeholders left out."""
    match content:
        case Plain(html=html):
            return html
        case Lazy(items=items):
            return "".join(item.html for item in items if isinstance(item, Plain))
    msg = f"Unsupported content: {content!r}"
    raise TypeError(msg)


def metadata_text(metadata: Metadata, key: str) -> str | None:
    """Return the HTML stored under ``key``, or ``None`` when absent."""
    value = metadata.get(key)
    if value is None:
        return None
    return content_text(value)


def metadata_bool(metadata: Metadata, key: str) -> bool | None:
    """Return ``True``/``False`` for the literal strings, ``None`` otherwise."""
    match (metadata_text(metadata, key) or "").strip():
        case "true":
            return True
        case "false":
            return False
        case _:
            return None


@dc.dataclass(slots=True)
class ShallowSection:
    """A section after the per-file parse, before global resolution."""

    metadata: Metadata
    content: HTMLContent

    @property
    def slug(self) -> str:
        """Return the slug recorded by the parser."""
        return metadata_text(self.metadata, KEY_SLUG) or ""


@dc.dataclass(slots=True)
class Section:
    """A resolved section.

    ``children`` holds finished HTML strings and embedded sections in document
    order. ``option`` carries the options of the site that embedded this copy.
    """

    metadata: Metadata
    children: list[str | Section] = dc.field(default_factory=list)
    option: SectionOption = dc.field(default_factory=SectionOption)
    references: set[str] = dc.field(default_factory=set)

    @property
    def slug(self) -> str:
        return metadata_text(self.metadata, KEY_SLUG) or ""

    @property
    def title(self) -> str:
        return metadata_text(self.metadata, KEY_TITLE) or ""

    @property
    def taxon(self) -> str:
        return metadata_text(self.metadata, KEY_TAXON) or ""

    @property
    def page_title(self) -> str:
        return metadata_text(self.metadata, KEY_PAGE_TITLE) or ""

    @property
    def data_taxon(self) -> str:
        return metadata_text(self.metadata, KEY_DATA_TAXON) or ""

    @property
    def footer_mode(self) -> str | None:
        return metadata_text(self.metadata, KEY_FOOTER_MODE)

    def is_collect(self) -> bool:
        """Return whether embedded children keep their metadata visible."""
        return metadata_bool(self.metadata, KEY_COLLECT) is True

    def shows_references(self) -> bool:
        return metadata_bool(self.metadata, KEY_REFERENCES) is not False

    def asref(self) -> bool | None:
        return metadata_bool(self.metadata, KEY_ASREF)

    def asback(self) -> bool | None:
        return metadata_bool(self.metadata, KEY_ASBACK)


def content_to_json(content: HTMLContent | LazyContent) -> dict[str, typ.Any]:
    """Return the externally tagged JSON value for a content node."""
    match content:
        case Plain(html=html):
            return {"Plain": html}
        case Lazy(items=items):
            return {"Lazy": [content_to_json(item) for item in items]}
        case Embed(url=url, title=title, option=option):
            return {
                "Embed": {
                    "url": url,
                    "title": title,
                    "option": dc.asdict(option),
                }
            }
        case Local(slug=slug, text=text):
            return {"Local": {"slug": slug, "text": text}}
    msg = f"Unsupported content: {content!r}"
    raise TypeError(msg)


def _expect(value: object, kind: type, context: str) -> typ.Any:
    if not isinstance(value, kind):
        msg = f"expected {kind.__name__} for {context}, found {type(value).__name__}"
        raise TypeError(msg)
    return value


def _optional_str(value: object, context: str) -> str | None:
    if value is None:
        return None
    return _expect(value, str, context)


def _single_tag(payload: object) -> tuple[str, object]:
    mapping = _expect(payload, dict, "content")
    if len(mapping) != 1:
        msg = f"expected a single tag, found {sorted(mapping)}"
        raise ValueError(msg)
    ((tag, value),) = mapping.items()
    return tag, value


def lazy_from_json(payload: object) -> LazyContent:
    """Decode one placeholder list element."""
    tag, value = _single_tag(payload)
    match tag:
        case "Plain":
            return Plain(_expect(value, str, "Plain"))
        case "Embed":
            body = _expect(value, dict, "Embed")
            option = _expect(body["option"], dict, "Embed.option")
            return Embed(
                url=_expect(body["url"], str, "Embed.url"),
                title=_optional_str(body.get("title"), "Embed.title"),
                option=SectionOption(
                    numbering=_expect(option["numbering"], bool, "numbering"),
                    details_open=_expect(option["details_open"], bool, "details_open"),
                    catalog=_expect(option["catalog"], bool, "catalog"),
                ),
            )
        case "Local":
            body = _expect(value, dict, "Local")
            return Local(
                slug=_expect(body["slug"], str, "Local.slug"),
                text=_optional_str(body.get("text"), "Local.text"),
            )
    msg = f"unknown lazy content tag '{tag}'"
    raise ValueError(msg)


def content_from_json(payload: object) -> HTMLContent:
    """Decode an ``HTMLContent`` value.

    Raises
    ------
    KeyError, TypeError, ValueError
        If ``payload`` does not follow the entry schema.
    """
    tag, value = _single_tag(payload)
    match tag:
        case "Plain":
            return Plain(_expect(value, str, "Plain"))
        case "Lazy":
            items = _expect(value, list, "Lazy")
            return collapse(lazy_from_json(item) for item in items)
    msg = f"unknown content tag '{tag}'"
    raise ValueError(msg)


def shallow_to_json(section: ShallowSection) -> dict[str, typ.Any]:
    """Return the entry-cache JSON object for ``section``."""
    return {
        "metadata": {
            key: content_to_json(value) for key, value in section.metadata.items()
        },
        "content": content_to_json(section.content),
    }


def shallow_from_json(payload: object) -> ShallowSection:
    """Rebuild a :class:`ShallowSection` from its entry-cache JSON object."""
    body = _expect(payload, dict, "entry")
    metadata_raw = _expect(body["metadata"], dict, "metadata")
    metadata: Metadata = {
        _expect(key, str, "metadata key"): content_from_json(value)
        for key, value in metadata_raw.items()
    }
    return ShallowSection(metadata=metadata, content=content_from_json(body["content"]))


__all__ = [
    "Embed",
    "HTMLContent",
    "Lazy",
    "LazyContent",
    "Local",
    "Metadata",
    "Plain",
    "Section",
    "SectionOption",
    "ShallowSection",
    "collapse",
    "content_from_json",
    "content_text",
    "content_to_json",
    "lazy_from_json",
    "metadata_bool",
    "metadata_text",
    "shallow_from_json",
    "shallow_to_json",
]
