"""View models passed to the page templates."""

from __future__ import annotations

import dataclasses as dc


@dc.dataclass(slots=True)
class MetaItem:
    """One entry of the metadata list under a section heading.

    ``html`` is trusted markup produced by the parsers.
    """

    key: str
    html: str


@dc.dataclass(slots=True)
class HeaderModel:
    """Structured data for a section ``<header>``.

    Attributes
    ----------
    hash_id : str
        HTML id of the section.
    title : str
        Rendered title markup.
    taxon : str
        Taxon label, already numbered when the embedding site asked for it.
    slug : str
        Canonical slug of the section.
    slug_text : str
        Slug as displayed in brackets next to the title.
    page_url : str
        Public URL of the page rendered for the section.
    edit_url : str | None
        Editor link, present only when ``edit`` is configured.
    metadata : list[MetaItem]
        Author, dates, and custom keys in source order.
    """

    hash_id: str
    title: str
    taxon: str
    slug: str
    slug_text: str
    page_url: str
    edit_url: str | None
    metadata: list[MetaItem]


@dc.dataclass(slots=True)
class SectionBlock:
    """A ``<section>`` with its header and rendered children."""

    header: HeaderModel
    data_taxon: str
    hide_metadata: bool
    open: bool
    body: list[str | SectionBlock]


@dc.dataclass(slots=True)
class CatalogItem:
    """A table-of-contents entry with its nested entries."""

    hash_id: str
    slug: str
    page_url: str
    title: str
    page_title: str
    taxon: str
    summary: bool
    children: list[CatalogItem]


@dc.dataclass(slots=True)
class FooterEntry:
    """One referenced or linking section shown in the footer.

    Exactly one of ``header`` (link mode) and ``block`` (embed mode) is set.
    """

    data_taxon: str
    header: HeaderModel | None = None
    block: SectionBlock | None = None


@dc.dataclass(slots=True)
class FooterBlock:
    heading: str
    entries: list[FooterEntry]


@dc.dataclass(slots=True)
class ParentLink:
    """Back navigation to the page a section belongs under."""

    href: str
    title: str
    page_title: str


@dc.dataclass(slots=True)
class PageModel:
    """Everything the page template needs for one output document."""

    slug: str
    page_title: str
    article: SectionBlock
    catalog: list[CatalogItem]
    footer: list[FooterBlock]
    parent: ParentLink | None


__all__ = [
    "CatalogItem",
    "FooterBlock",
    "FooterEntry",
    "HeaderModel",
    "MetaItem",
    "PageModel",
    "ParentLink",
    "SectionBlock",
]
