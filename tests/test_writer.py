from __future__ import annotations

import typing as typ

from bs4 import BeautifulSoup

from kodama.compiler import build
from kodama.config import config_from_mapping

if typ.TYPE_CHECKING:
    from conftest import Project

    from kodama.reporting import Reporter


def _soup(project: Project, name: str = "index.html") -> BeautifulSoup:
    html = (project.output() / name).read_text(encoding="utf-8")
    return BeautifulSoup(html, "html.parser")


def _build(project: Project, reporter: Reporter, **tables: dict[str, object]) -> None:
    config = config_from_mapping(tables) if tables else None
    build(project.env(config=config), reporter)
    assert reporter.error_count == 0


def test_numbering_steps_siblings_and_resets_for_children(
    project: Project, reporter: Reporter
) -> None:
    project.write("index.md", "---\ntitle: Root\n---\n[+](a#:embed)\n\n[+](b#:embed)\n")
    project.write(
        "a.md",
        "---\ntitle: Alpha\ntaxon: section\n---\n[+](a1#:embed)\n\n[+](a2#:embed)\n",
    )
    for slug in ("a1", "a2", "b"):
        project.write(f"{slug}.md", f"---\ntitle: {slug.upper()}\ntaxon: section\n---\nText.\n")
    _build(project, reporter)
    soup = _soup(project)
    headings = [
        (section["data-taxon"], section.select_one("h1 span.taxon").get_text())
        for section in soup.select("article section.block section.block")
    ]
    assert headings == [
        ("section", "Section 1. "),
        ("section", "Section 1.1. "),
        ("section", "Section 1.2. "),
        ("section", "Section 2. "),
    ]
    toc = soup.select_one("nav#toc ul.block")
    assert toc is not None
    top = toc.find_all("li", recursive=False)
    assert [li.select_one("span.link a").get_text() for li in top] == [
        "Section 1. Alpha",
        "Section 2. B",
    ]
    nested = top[0].find("ul", recursive=False).find_all("li", recursive=False)
    assert [li.select_one("span.link span.taxon").get_text() for li in nested] == [
        "Section 1.1. ",
        "Section 1.2. ",
    ]


def test_catalog_skips_dotted_embeds_and_marks_closed_ones(
    project: Project, reporter: Reporter
) -> None:
    project.write("index.md", "[.](a#:embed)\n\n[-](b#:embed)\n")
    project.write("a.md", "---\ntitle: A\n---\n")
    project.write("b.md", "---\ntitle: B\n---\n")
    _build(project, reporter)
    soup = _soup(project)
    items = soup.select("nav#toc li")
    assert len(items) == 1
    assert items[0]["class"] == ["item-summary"]
    assert items[0].select_one("a.bullet")["title"] == "B [b]"
    details = soup.select_one("details#b")
    assert details is not None
    assert not details.has_attr("open")


def test_embedded_metadata_is_hidden_unless_collecting(
    project: Project, reporter: Reporter
) -> None:
    project.write("index.md", "[](a#:embed)\n")
    project.write("a.md", "---\ntitle: A\nauthor: Ann\n---\n")
    project.write("list.md", "---\ntitle: List\ncollect: true\n---\n[](a#:embed)\n")
    _build(project, reporter)
    inner = _soup(project).select_one("article section.block section.block")
    assert inner is not None
    assert "hide-metadata" in inner["class"]
    collected = _soup(project, "list.html").select_one("article section.block section.block")
    assert collected is not None
    assert "hide-metadata" not in collected["class"]
    author = collected.select_one('li.meta-item[data-key="author"]')
    assert author is not None
    assert author.get_text() == "Ann"


def test_footer_lists_references_and_backlinks(project: Project, reporter: Reporter) -> None:
    project.write("index.md", "---\ntitle: Root\n---\n[](a#:embed)\n")
    project.write("a.md", "---\ntitle: A\n---\nCites [](r).\n")
    project.write("r.md", "---\ntitle: Paper\ntaxon: reference\n---\n")
    project.write("b.md", "---\ntitle: B\n---\nSee [](a).\n")
    _build(project, reporter)
    soup = _soup(project, "a.html")
    blocks = {
        block.h1.get_text(): block for block in soup.select("footer section.footer-block")
    }
    assert set(blocks) == {"References", "Backlinks"}
    reference = blocks["References"].select_one('section.block[data-taxon="reference"]')
    assert reference is not None
    assert reference.select_one("span.slug a")["href"] == "/r.html"
    backlink = blocks["Backlinks"].select_one("section.block")
    assert backlink is not None
    assert backlink.select_one("h1").get_text() == "B"
    root = _soup(project)
    assert [block.h1.get_text() for block in root.select("footer section.footer-block")] == [
        "References"
    ]


def test_footer_embed_mode_renders_sections(project: Project, reporter: Reporter) -> None:
    project.write("index.md", "See [](r).\n")
    project.write("r.md", "---\ntitle: Paper\ntaxon: reference\n---\nAbstract.\n")
    _build(project, reporter, build={"footer-mode": "embed"})
    footer = _soup(project).select_one("footer section.footer-block")
    assert footer is not None
    details = footer.select_one("details#r")
    assert details is not None
    assert "Abstract." in details.get_text()


def test_page_chrome_follows_config(project: Project, reporter: Reporter) -> None:
    project.write("index.md", "---\ntitle: Root\n---\n[](a#:embed)\n")
    project.write("a.md", "---\ntitle: A\n---\nText.\n")
    _build(
        project,
        reporter,
        kodama={"themes": ["theme.css", "https://cdn.example.org/t.css"]},
        toc={"placement": "left", "sticky": False},
        build={"inline-css": True, "edit": "https://edit.example/"},
    )
    soup = _soup(project, "a.html")
    assert soup.title.get_text() == "A"
    style = soup.select_one("head style")
    assert style is not None
    assert ".codehilite" in style.get_text()
    stylesheets = [link["href"] for link in soup.select('link[rel="stylesheet"]')]
    assert "/main.css" not in stylesheets
    assert "/theme.css" in stylesheets
    assert "https://cdn.example.org/t.css" in stylesheets
    assert not (project.output() / "main.css").exists()
    edit = soup.select_one("span.edit a")
    assert edit is not None
    assert edit["href"].startswith("https://edit.example/")
    assert edit["href"].endswith("trees/a.md")
    back = soup.select_one("header.header a.back")
    assert back is not None
    assert back["href"] == "/index.html"
    assert back.get_text().strip() == "« Root"
    toc = soup.select_one("nav#toc")
    assert toc is not None
    assert "left" in toc["class"]
    assert "sticky" not in toc["class"]
    assert _soup(project).select_one("header.header a.back") is None


def test_pretty_urls_write_directory_pages(project: Project, reporter: Reporter) -> None:
    project.write("index.md", "See [](notes/a).\n")
    project.write("notes/a.md", "---\ntitle: A\n---\n")
    _build(project, reporter, build={"pretty-urls": True}, kodama={"base-url": "/site"})
    output = project.output()
    assert (output / "index.html").is_file()
    assert (output / "notes/a/index.html").is_file()
    link = _soup(project).select_one("span.link.local a")
    assert link is not None
    assert link["href"] == "/site/notes/a"
    assert (output / "main.css").is_file()
