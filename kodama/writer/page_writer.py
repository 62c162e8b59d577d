"""Render resolved sections into standalone HTML pages.

Each page is the article of one top-level section: embedded children become
nested ``<section>`` blocks, numbered children take their numbers from a
:class:`~kodama.counter.Counter` that starts afresh on every page, and the
catalog lists the children that asked for a table-of-contents entry.

Example
-------
>>> from kodama.writer import PageWriter
>>> writer = PageWriter(env, state, reporter, stylesheet=css)  # doctest: +SKIP
>>> writer.write_all(["index", "notes/a"])  # doctest: +SKIP
[PosixPath('publish/index.html'), PosixPath('publish/notes/a.html')]
"""

from __future__ import annotations

import typing as typ
from pathlib import Path

from jinja2 import Environment, FileSystemLoader, select_autoescape

from kodama._constants import (
    HEADER_METADATA_KEYS,
    INDEX_SLUG,
    KEY_EXT,
    MAIN_CSS_FILE,
)
from kodama.cache import verify_and_update_hash
from kodama.counter import Counter
from kodama.errors import KodamaIOError
from kodama.html_flake import numbered_taxon, strip_tags
from kodama.markdown_parser.links import is_external_link
from kodama.section import Section, content_text, metadata_text
from kodama.slug import Extension, to_hash_id, to_slug_text

from .models import (
    CatalogItem,
    FooterBlock,
    FooterEntry,
    HeaderModel,
    MetaItem,
    PageModel,
    ParentLink,
    SectionBlock,
)

if typ.TYPE_CHECKING:
    from kodama.environment import BuildEnvironment
    from kodama.reporting import Reporter
    from kodama.state import CompileState

FOOTER_LINK = "link"
FOOTER_EMBED = "embed"


class PageWriter:
    """Turn compiled sections into themed HTML documents on disk."""

    def __init__(
        self,
        env: BuildEnvironment,
        state: CompileState,
        reporter: Reporter,
        *,
        stylesheet: str = "",
        templates_dir: Path | None = None,
    ) -> None:
        """Initialize the writer with the build context and templates.

        Parameters
        ----------
        env : BuildEnvironment
            Paths, URLs, and configuration of the current run.
        state : CompileState
            State whose ``compiled`` map holds every resolved section.
        reporter : Reporter
            Console used for ``Output:`` lines and write failures.
        stylesheet : str, optional
            CSS inlined into every page when ``build.inline-css`` is set.
        templates_dir : Path, optional
            Directory containing Jinja templates; defaults to the package
            templates.
        """
        self.env = env
        self.state = state
        self.reporter = reporter
        self.stylesheet = stylesheet
        default_templates = Path(__file__).resolve().parents[1] / "templates"
        self.templates_dir = templates_dir or default_templates
        self.jinja = Environment(
            loader=FileSystemLoader(str(self.templates_dir)),
            autoescape=select_autoescape(["html", "xml", "jinja"]),
            trim_blocks=True,
            lstrip_blocks=True,
        )
        self.template = self.jinja.get_template("page.html.jinja")

    def write_all(self, slugs: typ.Iterable[str]) -> list[Path]:
        """Write a page for each slug that resolved, returning written paths."""
        written: list[Path] = []
        for slug in slugs:
            section = self.state.compiled.get(slug)
            if section is None:
                self.reporter.error(f"Slug `{slug}` not in compiled entries.")
                continue
            try:
                path = self.write(section)
            except KodamaIOError as exc:
                self.reporter.error(str(exc))
                continue
            if path is not None:
                written.append(path)
        return written

    def write(self, section: Section) -> Path | None:
        """Write the page of ``section`` unless its HTML is unchanged.

        Returns
        -------
        Path | None
            The written file, or ``None`` when the write was skipped.
        """
        html = self.render(section)
        path = self.env.output_dir / self.env.page_path(section.slug)
        name = self.env.relative_to_root(path)
        if not verify_and_update_hash(self.env, name, html.encode("utf-8")) and path.exists():
            self.reporter.skip(name)
            return None
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_text(html, encoding="utf-8")
        except OSError as exc:
            msg = f"Cannot write '{path}': {exc}"
            raise KodamaIOError(msg, path=path) from exc
        self.reporter.output(section.page_title, name)
        return path

    def render(self, section: Section) -> str:
        """Return the complete HTML document for ``section``."""
        page = self.page_model(section)
        config = self.env.config
        html = self.template.render(
            page=page,
            config=config,
            base_url=self.env.base_url,
            css_url=self.env.full_url(MAIN_CSS_FILE),
            inline_css=self.stylesheet if config.build.inline_css else None,
            themes=[self._theme_url(theme) for theme in config.kodama.themes],
        )
        return html if html.endswith("\n") else f"{html}\n"

    def page_model(self, section: Section) -> PageModel:
        article, catalog = self.section_block(section, Counter(), toplevel=True)
        return PageModel(
            slug=section.slug,
            page_title=section.page_title,
            article=article,
            catalog=catalog,
            footer=self._footer(section),
            parent=self._parent(section.slug),
        )

    def section_block(
        self,
        section: Section,
        counter: Counter,
        *,
        toplevel: bool = False,
        hide_metadata: bool = False,
    ) -> tuple[SectionBlock, list[CatalogItem]]:
        """Render ``section`` and collect the catalog entries it contributes.

        A numbered section steps ``counter`` before its own taxon is formed
        and numbers its children one level deeper. A top-level section
        contributes only its children's entries.
        """
        taxon = self._taxon(section, counter)
        subcounter = counter.left_shift() if section.option.numbering else counter.copy()
        hide_children = not section.is_collect()
        body: list[str | SectionBlock] = []
        items: list[CatalogItem] = []
        for child in section.children:
            if isinstance(child, str):
                body.append(child)
                continue
            block, child_items = self.section_block(
                child, subcounter, hide_metadata=hide_children
            )
            body.append(block)
            items.extend(child_items)
        block = SectionBlock(
            header=self.header(section, taxon),
            data_taxon=section.data_taxon,
            hide_metadata=hide_metadata,
            open=section.option.details_open,
            body=body,
        )
        if toplevel:
            return block, items
        if not section.option.catalog:
            return block, []
        return block, [self._catalog_item(section, taxon, items)]

    def header(self, section: Section, taxon: str | None = None) -> HeaderModel:
        slug = section.slug
        return HeaderModel(
            hash_id=to_hash_id(slug),
            title=section.title,
            taxon=section.taxon if taxon is None else taxon,
            slug=slug,
            slug_text=to_slug_text(slug, short_slug=self.env.config.build.short_slug),
            page_url=self.env.full_html_url(slug),
            edit_url=self._edit_url(section),
            metadata=[
                MetaItem(key=key, html=content_text(value))
                for key, value in section.metadata.items()
                if key not in HEADER_METADATA_KEYS
            ],
        )

    @staticmethod
    def _taxon(section: Section, counter: Counter) -> str:
        if not section.option.numbering:
            return section.taxon
        counter.step()
        return numbered_taxon(section.taxon, counter.display())

    def _catalog_item(
        self, section: Section, taxon: str, children: list[CatalogItem]
    ) -> CatalogItem:
        slug = section.slug
        return CatalogItem(
            hash_id=to_hash_id(slug),
            slug=slug,
            page_url=self.env.full_html_url(slug),
            title=section.page_title or section.title,
            page_title=section.page_title or strip_tags(section.title),
            taxon=taxon,
            summary=not section.option.details_open,
            children=children,
        )

    def _edit_url(self, section: Section) -> str | None:
        is_typst = metadata_text(section.metadata, KEY_EXT) == Extension.TYPST.value
        ext = Extension.TYPST if is_typst else Extension.MARKDOWN
        return self.env.edit_url(section.slug, ext)

    def _footer(self, section: Section) -> list[FooterBlock]:
        mode = section.footer_mode or self.env.config.build.footer_mode
        text = self.env.config.text
        blocks: list[FooterBlock] = []
        references = sorted(section.references) if section.shows_references() else []
        for heading, slugs in (
            (text.references, references),
            (text.backlinks, self.state.callback.backlinks_of(section.slug)),
        ):
            entries = [
                self._footer_entry(self.state.compiled[slug], mode)
                for slug in slugs
                if slug in self.state.compiled
            ]
            if entries:
                blocks.append(FooterBlock(heading=heading, entries=entries))
        return blocks

    def _footer_entry(self, section: Section, mode: str) -> FooterEntry:
        if mode == FOOTER_EMBED:
            body: list[str | SectionBlock] = [
                child if isinstance(child, str) else self._preview(child)
                for child in section.children
            ]
            block = SectionBlock(
                header=self.header(section),
                data_taxon=section.data_taxon,
                hide_metadata=False,
                open=True,
                body=body,
            )
            return FooterEntry(data_taxon=section.data_taxon, block=block)
        return FooterEntry(data_taxon=section.data_taxon, header=self.header(section))

    def _preview(self, section: Section) -> SectionBlock:
        """Return a header-only block for a section nested in a footer entry."""
        return SectionBlock(
            header=self.header(section),
            data_taxon=section.data_taxon,
            hide_metadata=True,
            open=False,
            body=[],
        )

    def _parent(self, slug: str) -> ParentLink | None:
        if slug == INDEX_SLUG:
            return None
        parent = self.state.callback.parent_of(slug)
        section = self.state.compiled.get(parent)
        title = section.title if section else parent
        page_title = section.page_title if section else parent
        return ParentLink(
            href=self.env.full_html_url(parent), title=title, page_title=page_title
        )

    def _theme_url(self, theme: str) -> str:
        return theme if is_external_link(theme) else self.env.full_url(theme)


__all__ = ["FOOTER_EMBED", "FOOTER_LINK", "PageWriter"]
