from __future__ import annotations

import typing as typ

import pytest

from kodama.compiler import build
from kodama.config import KodamaConfig, load_config
from kodama.errors import KodamaIOError
from kodama.scaffold import (
    init_site,
    new_config,
    new_section,
    new_site,
    remove_sections,
    section_files,
)

if typ.TYPE_CHECKING:
    from pathlib import Path

    from conftest import Project

    from kodama.reporting import Reporter


def test_new_site_creates_project_files(tmp_path: Path, reporter: Reporter) -> None:
    root = new_site(tmp_path / "garden", reporter)
    assert load_config(root / "Kodama.toml") == KodamaConfig()
    assert (root / "trees" / "index.md").read_text(encoding="utf-8") == (
        "---\ntitle: index\n---\n"
    )
    assert (root / "assets").is_dir()
    assert not (root / "trees" / "import.typ").exists()


def test_new_site_refuses_existing_path(tmp_path: Path, reporter: Reporter) -> None:
    with pytest.raises(KodamaIOError, match="Already exists"):
        new_site(tmp_path, reporter)


def test_new_config_refuses_to_overwrite(tmp_path: Path, reporter: Reporter) -> None:
    path = new_config(tmp_path / "Kodama.toml", reporter)
    assert load_config(path) == KodamaConfig()
    with pytest.raises(KodamaIOError, match="Already exists"):
        new_config(path, reporter)


def test_init_site_keeps_existing_files(
    tmp_path: Path, reporter: Reporter, capsys: pytest.CaptureFixture[str]
) -> None:
    index = tmp_path / "trees" / "index.md"
    index.parent.mkdir()
    index.write_text("Mine.\n", encoding="utf-8")
    created = init_site(tmp_path, reporter)
    assert created == [tmp_path / "Kodama.toml", tmp_path / "trees" / "import.typ"]
    assert index.read_text(encoding="utf-8") == "Mine.\n"
    assert "kodamaembed" in created[1].read_text(encoding="utf-8")
    assert "Already exists, skipping" in capsys.readouterr().out


def test_init_site_without_typst(tmp_path: Path, reporter: Reporter) -> None:
    init_site(tmp_path, reporter, typst=False)
    assert (tmp_path / "trees" / "index.md").is_file()
    assert not (tmp_path / "trees" / "import.typ").exists()


def test_init_site_requires_a_directory(tmp_path: Path, reporter: Reporter) -> None:
    with pytest.raises(KodamaIOError, match="Does not exist"):
        init_site(tmp_path / "missing", reporter)


def test_new_section_appends_markdown_suffix(project: Project, reporter: Reporter) -> None:
    path = new_section(project.env(), "./notes/open", reporter)
    assert path == project.trees / "notes" / "open.md"
    assert path.read_text(encoding="utf-8") == "---\ntitle: open\n---\n"
    with pytest.raises(KodamaIOError, match="Already exists"):
        new_section(project.env(), "notes/open.md", reporter)


def test_new_section_fills_template(
    project: Project, reporter: Reporter, tmp_path: Path
) -> None:
    template = tmp_path / "lemma.md"
    template.write_text("---\ntitle: <FILE_NAME>\ntaxon: lemma\n---\n", encoding="utf-8")
    path = new_section(project.env(), "knots.typst", reporter, template=template)
    assert path == project.trees / "knots.typst"
    assert path.read_text(encoding="utf-8") == "---\ntitle: knots\ntaxon: lemma\n---\n"


def test_missing_template_is_an_io_error(
    project: Project, reporter: Reporter, tmp_path: Path
) -> None:
    with pytest.raises(KodamaIOError, match="Failed to read template"):
        new_section(project.env(), "a", reporter, template=tmp_path / "none.md")
    assert not (project.trees / "a.md").exists()


def test_remove_deletes_source_cache_and_page(
    project: Project, reporter: Reporter, capsys: pytest.CaptureFixture[str]
) -> None:
    project.write("index.md", "---\ntitle: Root\n---\n")
    project.write("a.md", "---\ntitle: A\n---\n")
    env = project.env()
    build(env, reporter)
    files = section_files(env, "a")
    assert all(path.exists() for path in files)
    assert remove_sections(env, ["a"], reporter) == files
    assert not any(path.exists() for path in files)
    assert (project.output() / "index.html").is_file()
    capsys.readouterr()
    assert remove_sections(env, ["a.md"], reporter) == []
    assert capsys.readouterr().out.count("does not exist, skipping") == len(files)
