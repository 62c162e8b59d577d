"""Stage-2 resolution of shallow sections into a linked forest.

:class:`CompileState` owns every parsed section. :meth:`CompileState.fetch`
resolves a slug on demand, recursing into embedded children, and memoises the
result; a slug that is re-entered while it is still being resolved is a
cycle and renders as an empty fragment at the inner site.

Resolution also fills the :class:`CallbackMap`, which records for each slug
the page it belongs under and the sections linking to it. The writer uses it
for the back navigation and for the backlinks footer.
"""

from __future__ import annotations

import copy
import dataclasses as dc
import typing as typ

from ._constants import (
    INDEX_SLUG,
    KEY_ASREF,
    KEY_DATA_TAXON,
    KEY_PAGE_TITLE,
    KEY_PARENT,
    KEY_TAXON,
    KEY_TITLE,
    PLAIN_METADATA_KEYS,
)
from .errors import KodamaSyntaxError
from .html_flake import data_taxon, html_error, html_link, strip_tags
from .section import (
    Embed,
    HTMLContent,
    Lazy,
    Local,
    Metadata,
    Plain,
    Section,
    ShallowSection,
    metadata_bool,
    metadata_text,
)
from .slug import to_slug

if typ.TYPE_CHECKING:
    from .environment import BuildEnvironment
    from .reporting import Reporter

REFERENCE_TAXON = "reference"


@dc.dataclass(slots=True)
class CallbackValue:
    """Parent and backlinks recorded for one slug."""

    parent: str | None = None
    is_parent_specified: bool = False
    backlinks: set[str] = dc.field(default_factory=set)


@dc.dataclass(slots=True)
class CallbackMap:
    """Reverse links collected while resolving.

    The first section that embeds a child becomes its parent unless the child
    names one through its ``parent`` metadata, which always wins.
    """

    entries: dict[str, CallbackValue] = dc.field(default_factory=dict)
    reporter: Reporter | None = None

    def _entry(self, slug: str) -> CallbackValue:
        return self.entries.setdefault(slug, CallbackValue())

    def insert_parent(self, child: str, parent: str) -> None:
        entry = self._entry(child)
        if entry.is_parent_specified:
            return
        if entry.parent is None:
            entry.parent = parent
        elif entry.parent != parent and self.reporter is not None:
            self.reporter.warn(
                f"Multiple parents for `{child}`: `{entry.parent}` and "
                f"`{parent}`. Using `{entry.parent}`."
            )

    def specify_parent(self, child: str, parent: str) -> None:
        entry = self._entry(child)
        entry.parent = parent
        entry.is_parent_specified = True

    def add_backlink(self, target: str, source: str) -> None:
        if target != source:
            self._entry(target).backlinks.add(source)

    def parent_of(self, slug: str) -> str:
        """Return the recorded parent, defaulting to the index page."""
        entry = self.entries.get(slug)
        if entry is None or entry.parent is None:
            return INDEX_SLUG
        return entry.parent

    def backlinks_of(self, slug: str) -> list[str]:
        entry = self.entries.get(slug)
        return sorted(entry.backlinks) if entry else []


@dc.dataclass(slots=True)
class CompileState:
    """Shallow sections awaiting resolution and the sections already resolved.

    A slug lives in exactly one of ``residued``, ``compiling`` and
    ``compiled`` at any time.
    """

    env: BuildEnvironment
    reporter: Reporter
    residued: dict[str, ShallowSection] = dc.field(default_factory=dict)
    compiled: dict[str, Section] = dc.field(default_factory=dict)
    compiling: dict[str, ShallowSection] = dc.field(default_factory=dict)
    callback: CallbackMap = dc.field(default_factory=CallbackMap)

    def __post_init__(self) -> None:
        self.callback.reporter = self.reporter

    def add(self, section: ShallowSection) -> None:
        """Register a Stage-1 result; a later source for the same slug wins."""
        self.residued[section.slug] = section

    def fetch(self, slug: str) -> Section:
        """Return the resolved section for ``slug``, resolving it on demand.

        Raises
        ------
        KodamaSyntaxError
            If no source defines ``slug`` or it is still being resolved.
        """
        if slug in self.compiled:
            return self.compiled[slug]
        if slug in self.compiling:
            msg = "cyclic embedding"
            raise KodamaSyntaxError(slug, msg)
        shallow = self.residued.pop(slug, None)
        if shallow is None:
            msg = "no such section"
            raise KodamaSyntaxError(slug, msg)
        return self.resolve_shallow(shallow)

    def compile_all(self) -> None:
        """Resolve the index page, then every section nothing reached."""
        if INDEX_SLUG in self.residued:
            self.fetch(INDEX_SLUG)
        for slug in sorted(self.residued):
            if slug in self.residued:
                self.fetch(slug)

    def resolve_shallow(self, shallow: ShallowSection) -> Section:
        slug = shallow.slug
        self.compiling[slug] = shallow
        try:
            section = Section(metadata=dict(shallow.metadata))
            parent = metadata_text(shallow.metadata, KEY_PARENT)
            if parent:
                self.callback.specify_parent(slug, to_slug(parent))
            for item in _items(shallow.content):
                match item:
                    case Plain(html=html):
                        section.children.append(html)
                    case Embed():
                        self._embed(section, item)
                    case Local():
                        section.children.append(self._local(section, item))
            self._render_metadata(section)
        finally:
            del self.compiling[slug]
        self.compiled[slug] = section
        return section

    def _embed(self, section: Section, embed: Embed) -> None:
        child_slug = to_slug(embed.url)
        if child_slug in self.compiling:
            section.children.append("")
            return
        try:
            child = self.fetch(child_slug)
        except KodamaSyntaxError:
            self._missing(section.slug, child_slug)
            section.children.append(html_error(f"missing section {child_slug}"))
            return
        clone = copy.deepcopy(child)
        clone.option = dc.replace(embed.option)
        if embed.title is not None:
            clone.metadata[KEY_TITLE] = Plain(embed.title)
        if embed.option.details_open:
            section.references |= child.references
        self.callback.insert_parent(child_slug, section.slug)
        section.children.append(clone)

    def _local(self, section: Section, local: Local) -> str:
        target = to_slug(local.slug)
        if not self.exists(target):
            self._missing(section.slug, target)
            return html_error(f"missing section {target}")
        title = self.get_metadata(target, KEY_TITLE) or target
        if self.is_reference(target):
            section.references.add(target)
        if section.asback() is not False:
            self.callback.add_backlink(target, section.slug)
        return html_link(
            self.env.full_html_url(target),
            f"{strip_tags(title)} [{target}]",
            local.text or title,
            "local",
        )

    def _missing(self, source: str, target: str) -> None:
        self.reporter.error(f"{source}: reference to unknown section `{target}`")

    def _render_metadata(self, section: Section) -> None:
        metadata = section.metadata
        for key, value in list(metadata.items()):
            if key in PLAIN_METADATA_KEYS or not isinstance(value, Lazy):
                continue
            metadata[key] = Plain(self._render_inline(section, value))
        title = metadata_text(metadata, KEY_TITLE)
        if KEY_PAGE_TITLE not in metadata and title is not None:
            metadata[KEY_PAGE_TITLE] = Plain(strip_tags(title))
        taxon = metadata_text(metadata, KEY_TAXON)
        if KEY_DATA_TAXON not in metadata and taxon is not None:
            metadata[KEY_DATA_TAXON] = Plain(data_taxon(taxon))

    def _render_inline(self, section: Section, value: Lazy) -> str:
        parts: list[str] = []
        for item in value.items:
            match item:
                case Plain(html=html):
                    parts.append(html)
                case Local():
                    parts.append(self._local(section, item))
                case Embed(url=url, title=title):
                    parts.append(self._local(section, Local(slug=url, text=title)))
        return "".join(parts)

    def exists(self, slug: str) -> bool:
        return slug in self.compiled or slug in self.compiling or slug in self.residued

    def metadata_of(self, slug: str) -> Metadata | None:
        """Return the metadata of ``slug`` in whichever stage it is in."""
        if slug in self.compiled:
            return self.compiled[slug].metadata
        shallow = self.compiling.get(slug) or self.residued.get(slug)
        return shallow.metadata if shallow else None

    def get_metadata(self, slug: str, key: str) -> str | None:
        metadata = self.metadata_of(slug)
        return metadata_text(metadata, key) if metadata else None

    def is_reference(self, slug: str) -> bool:
        """Return whether links to ``slug`` count as references."""
        metadata = self.metadata_of(slug)
        if metadata is None:
            return False
        asref = metadata_bool(metadata, KEY_ASREF)
        if asref is not None:
            return asref
        if self.env.config.build.asref:
            return True
        taxon = metadata_text(metadata, KEY_DATA_TAXON)
        if taxon is None:
            taxon = data_taxon(metadata_text(metadata, KEY_TAXON) or "")
        return taxon == REFERENCE_TAXON


def _items(content: HTMLContent) -> list[Plain | Embed | Local]:
    match content:
        case Plain():
            return [content]
        case Lazy(items=items):
            return list(items)
    msg = f"Unsupported content: {content!r}"
    raise TypeError(msg)


__all__ = ["CallbackMap", "CallbackValue", "CompileState"]
