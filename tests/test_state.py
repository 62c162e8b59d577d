from __future__ import annotations

import typing as typ

import pytest
from bs4 import BeautifulSoup

from kodama import typst_cli
from kodama.compiler import build
from kodama.config import config_from_mapping
from kodama.errors import KodamaSyntaxError
from kodama.section import (
    Embed,
    Lazy,
    LazyContent,
    Local,
    Plain,
    Section,
    SectionOption,
    ShallowSection,
    collapse,
)
from kodama.slug import Extension
from kodama.state import CompileState

if typ.TYPE_CHECKING:
    from pathlib import Path

    from conftest import Project

    from kodama.reporting import Reporter


def shallow(slug: str, *items: LazyContent, **metadata: str) -> ShallowSection:
    meta = {"slug": Plain(slug)}
    meta.update({key.replace("_", "-"): Plain(value) for key, value in metadata.items()})
    return ShallowSection(metadata=meta, content=collapse(items))


def make_state(
    project: Project, reporter: Reporter, *sections: ShallowSection, **build: object
) -> CompileState:
    config = config_from_mapping({"build": build}) if build else None
    state = CompileState(project.env(config=config), reporter)
    for section in sections:
        state.add(section)
    return state


def test_cycle_renders_empty_fragment_at_inner_site(
    project: Project, reporter: Reporter
) -> None:
    state = make_state(
        project,
        reporter,
        shallow("a", Embed("b"), title="A"),
        shallow("b", Embed("a"), title="B"),
    )
    state.compile_all()
    a = state.compiled["a"]
    inner_b = a.children[0]
    assert isinstance(inner_b, Section)
    assert inner_b.slug == "b"
    assert inner_b.children == [""]
    assert state.compiled["b"].children == [""]
    assert reporter.error_count == 0


def test_fetch_is_memoised(project: Project, reporter: Reporter) -> None:
    state = make_state(
        project,
        reporter,
        shallow("index", Plain("<p>"), Embed("ch1"), Plain("</p>"), title="Root"),
        shallow("ch1", Plain("<p>Body.</p>"), title="Ch1"),
    )
    first = state.fetch("index")
    second = state.fetch("index")
    assert first is second
    assert state.residued == {}
    assert state.compiling == {}
    assert set(state.compiled) == {"index", "ch1"}


def test_fetch_missing_slug(project: Project, reporter: Reporter) -> None:
    state = make_state(project, reporter)
    with pytest.raises(KodamaSyntaxError, match="no such section"):
        state.fetch("nowhere")


def test_compile_all_resolves_unreached_sections(
    project: Project, reporter: Reporter
) -> None:
    state = make_state(
        project,
        reporter,
        shallow("orphan", Plain("<p>x</p>")),
        shallow("index", Plain("<p>root</p>")),
    )
    state.compile_all()
    assert list(state.compiled) == ["index", "orphan"]


def test_embed_applies_site_options_and_title(project: Project, reporter: Reporter) -> None:
    option = SectionOption(numbering=True, details_open=False, catalog=False)
    state = make_state(
        project,
        reporter,
        shallow("index", Embed("ch1", "Chapter One", option), title="Root"),
        shallow("ch1", Plain("<p>Body.</p>"), title="Ch1", taxon="Section. "),
    )
    index = state.fetch("index")
    clone = index.children[0]
    assert isinstance(clone, Section)
    assert clone.option == option
    assert clone.title == "Chapter One"
    assert clone.page_title == "Ch1"
    assert clone.data_taxon == "section"
    original = state.compiled["ch1"]
    assert original.title == "Ch1"
    assert original.option == SectionOption()


def test_missing_embed_target_is_reported_and_marked(
    project: Project, reporter: Reporter
) -> None:
    state = make_state(project, reporter, shallow("index", Embed("ghost")))
    index = state.fetch("index")
    assert reporter.error_count == 1
    assert index.children == ['<span class="kodama-error">missing section ghost</span>']


def test_local_link_uses_target_title(project: Project, reporter: Reporter) -> None:
    state = make_state(
        project,
        reporter,
        shallow("a", Plain("<p>"), Local("b"), Plain(" "), Local("b", "<em>bee</em>"), Plain("</p>")),
        shallow("b", title="B"),
    )
    a = state.fetch("a")
    soup = BeautifulSoup("".join(child for child in a.children if isinstance(child, str)), "html.parser")
    links = soup.select("span.link.local a")
    assert [link.decode_contents() for link in links] == ["B", "<em>bee</em>"]
    assert {link["href"] for link in links} == {"/b.html"}
    assert {link["title"] for link in links} == {"B [b]"}
    assert state.callback.backlinks_of("b") == ["a"]


def test_missing_local_target_is_reported(project: Project, reporter: Reporter) -> None:
    state = make_state(project, reporter, shallow("a", Local("ghost")))
    a = state.fetch("a")
    assert reporter.error_count == 1
    assert "kodama-error" in a.children[0]


def test_asback_false_suppresses_backlinks(project: Project, reporter: Reporter) -> None:
    state = make_state(
        project,
        reporter,
        shallow("a", Local("b"), asback="false"),
        shallow("b", title="B"),
    )
    state.compile_all()
    assert state.callback.backlinks_of("b") == []


def test_references_follow_taxon_and_open_embeds(
    project: Project, reporter: Reporter
) -> None:
    state = make_state(
        project,
        reporter,
        shallow(
            "index",
            Embed("open"),
            Embed("closed", option=SectionOption(details_open=False)),
            Local("plain"),
        ),
        shallow("open", Local("ref1")),
        shallow("closed", Local("ref2")),
        shallow("plain", title="Plain"),
        shallow("ref1", title="R1", taxon="Reference. "),
        shallow("ref2", title="R2", asref="true"),
    )
    index = state.fetch("index")
    assert state.compiled["open"].references == {"ref1"}
    assert state.compiled["closed"].references == {"ref2"}
    assert index.references == {"ref1"}


def test_asref_false_overrides_reference_taxon(
    project: Project, reporter: Reporter
) -> None:
    state = make_state(
        project,
        reporter,
        shallow("a", Local("r")),
        shallow("r", taxon="Reference. ", asref="false"),
    )
    assert state.fetch("a").references == set()


def test_build_asref_marks_every_section(project: Project, reporter: Reporter) -> None:
    state = make_state(
        project,
        reporter,
        shallow("a", Local("b"), Local("c")),
        shallow("b", title="B"),
        shallow("c", title="C", asref="false"),
        asref=True,
    )
    assert state.fetch("a").references == {"b"}


def test_parent_is_first_embedder_unless_specified(
    project: Project, reporter: Reporter
) -> None:
    state = make_state(
        project,
        reporter,
        shallow("index", Embed("x"), Embed("y")),
        shallow("other", Embed("x"), Embed("y")),
        shallow("x", title="X"),
        shallow("y", title="Y", parent="other"),
    )
    state.compile_all()
    assert state.callback.parent_of("x") == "index"
    assert state.callback.parent_of("y") == "other"
    assert state.callback.parent_of("unknown") == "index"
    assert reporter.error_count == 0


def test_lazy_metadata_is_resolved(project: Project, reporter: Reporter) -> None:
    section = ShallowSection(
        metadata={
            "slug": Plain("a"),
            "title": Lazy([Plain("About "), Local("b")]),
            "taxon": Plain("<em>Note</em>. "),
        },
        content=Plain(""),
    )
    state = make_state(project, reporter, section, shallow("b", title="B"))
    a = state.fetch("a")
    assert isinstance(a.metadata["title"], Plain)
    assert "About " in a.title
    assert 'href="/b.html"' in a.title
    assert a.page_title == "About B"
    assert a.data_taxon == "note"


def test_typst_source_overrides_markdown_of_the_same_slug(
    project: Project, reporter: Reporter, monkeypatch: pytest.MonkeyPatch
) -> None:
    project.write("index.md", "---\ntitle: Root\n---\n")
    project.write("x.md", "---\ntitle: From Markdown\n---\nMarkdown body.\n")
    project.write("x.typst", '#import "import.typ": *\n')
    rendered: list[str] = []

    def fake_file_to_html(rel_path: str, _root: Path) -> str:
        rendered.append(rel_path)
        return typst_cli.html_body(
            '<body><kodamameta key="title" value="From Typst"></kodamameta>'
            "<p>Typst body.</p></body>"
        )

    monkeypatch.setattr(typst_cli, "file_to_html", fake_file_to_html)
    env = project.env()
    state = build(env, reporter)
    assert reporter.error_count == 0
    assert rendered == ["x.typst"]
    x = state.compiled["x"]
    assert x.metadata["title"] == Plain("From Typst")
    assert x.metadata["ext"] == Plain("typst")
    assert x.children == ["<p>Typst body.</p>"]
    for ext in (Extension.MARKDOWN, Extension.TYPST):
        assert env.hash_path(f"x{ext.suffix}").is_file()
        assert env.entry_path("x", ext).is_file()
    page = (project.output() / "x.html").read_text(encoding="utf-8")
    assert "<title>From Typst</title>" in page
    assert "Markdown body." not in page
