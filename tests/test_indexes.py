from __future__ import annotations

import json
import typing as typ

import pytest

from kodama.compiler import build
from kodama.errors import KodamaIOError
from kodama.indexes import build_snippets, snippet_label, write_snippets

if typ.TYPE_CHECKING:
    from conftest import Project

    from kodama.reporting import Reporter


def _build(project: Project, reporter: Reporter) -> None:
    project.write("index.md", "---\ntitle: Root\n---\nSee [](notes/open).\n")
    project.write("notes/open.md", "---\ntitle: Open *Sets*\ntaxon: definition\n---\n")
    build(project.env(), reporter)
    assert reporter.error_count == 0


def test_indexes_hold_plain_text_metadata(project: Project, reporter: Reporter) -> None:
    _build(project, reporter)
    indexes = json.loads((project.output() / "indexes.json").read_text(encoding="utf-8"))
    assert list(indexes) == ["index", "notes/open"]
    entry = indexes["notes/open"]
    assert entry["slug"] == "notes/open"
    assert entry["title"] == "Open Sets"
    assert entry["taxon"] == "Definition."
    assert entry["ext"] == "md"
    assert indexes["index"]["title"] == "Root"


def test_snippet_label() -> None:
    assert snippet_label("Open Sets") == "open-sets"
    assert snippet_label("x") == "x"


def test_snippets_link_to_section_sources(project: Project) -> None:
    snippets = build_snippets(
        project.env(),
        {
            "notes/open": {"title": "Open Sets", "ext": "md"},
            "knots": {"ext": "typst"},
        },
    )
    assert snippets["notes/open"] == {
        "prefix": "Open Sets",
        "body": ["[open-sets]: /trees/notes/open.md"],
        "description": "notes/open",
    }
    assert snippets["knots"]["prefix"] == "knots"
    assert snippets["knots"]["body"] == ["[knots]: /trees/knots.typst"]


def test_write_snippets_reads_built_index(project: Project, reporter: Reporter) -> None:
    _build(project, reporter)
    path = write_snippets(project.env())
    assert path == project.root / ".vscode" / "markdown.code-snippets"
    snippets = json.loads(path.read_text(encoding="utf-8"))
    assert set(snippets) == {"index", "notes/open"}
    assert snippets["index"]["body"] == ["[root]: /trees/index.md"]


def test_write_snippets_requires_a_build(project: Project) -> None:
    with pytest.raises(KodamaIOError, match="Run `kodama build` first"):
        write_snippets(project.env())
