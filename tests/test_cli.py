from __future__ import annotations

import typing as typ

import pytest

from kodama import cli
from kodama.errors import EntryCacheError

if typ.TYPE_CHECKING:
    from pathlib import Path

    from conftest import Project


def _config(project: Project) -> Path:
    return project.root / "Kodama.toml"


def test_build_writes_pages(project: Project) -> None:
    project.write("index.md", "---\ntitle: Root\n---\nHello.")
    assert cli.build(config=_config(project)) == cli.EXIT_OK
    html = (project.output() / "index.html").read_text(encoding="utf-8")
    assert "<title>Root</title>" in html
    assert "<p>Hello.</p>" in html


def test_build_finds_config_from_cwd(
    project: Project, monkeypatch: pytest.MonkeyPatch
) -> None:
    project.write("index.md", "Hello.")
    monkeypatch.chdir(project.trees)
    assert cli.build() == cli.EXIT_OK
    assert (project.output() / "index.html").is_file()


def test_build_with_section_errors_exits_one(project: Project) -> None:
    project.write("index.md", "[](ghost#:embed)\n")
    assert cli.build(config=_config(project)) == cli.EXIT_FAILURE
    assert (project.output() / "index.html").is_file()


def test_build_without_config_exits_two(tmp_path: Path) -> None:
    assert cli.build(config=tmp_path / "missing.toml") == cli.EXIT_FATAL


def test_build_without_index_exits_two(project: Project) -> None:
    project.write("a.md", "A.")
    assert cli.build(config=_config(project)) == cli.EXIT_FATAL


def test_corrupt_entry_cache_exits_two(
    project: Project, monkeypatch: pytest.MonkeyPatch
) -> None:
    def corrupt(*_args: object) -> None:
        raise EntryCacheError(project.root / ".cache/entry/index.md.entry", "bad JSON")

    monkeypatch.setattr(cli, "build_forest", corrupt)
    assert cli.build(config=_config(project)) == cli.EXIT_FATAL


def test_new_section_command(project: Project) -> None:
    assert cli.new_section_command("notes/a", config=_config(project)) == cli.EXIT_OK
    assert (project.trees / "notes" / "a.md").is_file()
    assert cli.new_section_command("notes/a", config=_config(project)) == cli.EXIT_FAILURE


def test_new_site_and_config_commands(tmp_path: Path) -> None:
    assert cli.new_site_command(tmp_path / "garden") == cli.EXIT_OK
    assert cli.new_site_command(tmp_path / "garden") == cli.EXIT_FAILURE
    assert cli.new_config_command(tmp_path / "other.toml") == cli.EXIT_OK
    assert cli.new_config_command(tmp_path / "other.toml") == cli.EXIT_FAILURE


def test_init_command(tmp_path: Path) -> None:
    assert cli.init_command(tmp_path, no_typst=True) == cli.EXIT_OK
    assert (tmp_path / "Kodama.toml").is_file()
    assert not (tmp_path / "trees" / "import.typ").exists()
    assert cli.init_command(tmp_path / "missing") == cli.EXIT_FAILURE


def test_remove_command(project: Project) -> None:
    source = project.write("a.md", "A.")
    assert cli.remove("a", config=_config(project)) == cli.EXIT_OK
    assert not source.exists()


def test_snip_requires_a_build(project: Project) -> None:
    project.write("index.md", "---\ntitle: Root\n---\n")
    assert cli.snip(config=_config(project)) == cli.EXIT_FAILURE
    assert cli.build(config=_config(project)) == cli.EXIT_OK
    assert cli.snip(config=_config(project)) == cli.EXIT_OK
    assert (project.root / ".vscode" / "markdown.code-snippets").is_file()
