from __future__ import annotations

import queue
import typing as typ

import pytest
from watchdog.events import (
    DirModifiedEvent,
    FileClosedEvent,
    FileCreatedEvent,
    FileModifiedEvent,
)

from kodama import cli, serve
from kodama.compiler import build
from kodama.config import KodamaConfig, KodamaConfigError
from kodama.environment import BuildEnvironment
from kodama.errors import KodamaIOError
from kodama.reporting import Reporter
from kodama.serve import RebuildHandler, rebuild, server_command, start_server, watch_paths

if typ.TYPE_CHECKING:
    from pathlib import Path

    from conftest import Project


def test_server_command_fills_output_dir(project: Project) -> None:
    env = project.env("serve")
    assert server_command(env) == [
        "miniserve",
        str(project.root / ".cache" / "publish"),
        "--index",
        "index.html",
        "--pretty-urls",
    ]


def test_handler_coalesces_pending_rebuilds() -> None:
    events: queue.Queue[str] = queue.Queue(maxsize=1)
    handler = RebuildHandler(events)
    handler.on_any_event(FileModifiedEvent("/site/trees/a.md"))
    handler.on_any_event(FileCreatedEvent("/site/trees/b.md"))
    assert events.get_nowait() == "/site/trees/a.md"
    assert events.empty()


def test_handler_ignores_directories_and_closes() -> None:
    events: queue.Queue[str] = queue.Queue(maxsize=1)
    handler = RebuildHandler(events)
    handler.on_any_event(DirModifiedEvent("/site/trees"))
    handler.on_any_event(FileClosedEvent("/site/trees/a.md"))
    assert events.empty()


def test_rebuild_reports_missing_trees(tmp_path: Path) -> None:
    reporter = Reporter()
    env = BuildEnvironment(KodamaConfig(), tmp_path, mode="serve")
    assert rebuild(env, reporter) is False
    assert reporter.error_count == 1


def test_rebuild_resets_previous_errors(project: Project) -> None:
    project.write("index.md", "Hello.")
    reporter = Reporter()
    reporter.error_count = 3
    assert rebuild(project.env("serve"), reporter) is True
    assert (project.output("serve") / "index.html").is_file()


def test_watch_paths_skip_missing_directories(project: Project) -> None:
    env = project.env("serve")
    assert watch_paths(env) == [project.trees]
    env.assets_dir.mkdir()
    assert watch_paths(env) == [project.trees, env.assets_dir]


def test_missing_server_binary_is_an_io_error() -> None:
    with pytest.raises(KodamaIOError, match="Failed to start server"):
        start_server(["kodama-test-no-such-server"], Reporter())


def _record_server_starts(monkeypatch: pytest.MonkeyPatch) -> list[list[str]]:
    started: list[list[str]] = []

    def fake_start(command: list[str], _reporter: Reporter) -> None:
        started.append(command)

    monkeypatch.setattr(serve, "start_server", fake_start)
    return started


def test_corrupt_entry_cache_stops_serve_before_the_server(
    project: Project, monkeypatch: pytest.MonkeyPatch
) -> None:
    project.write("index.md", "---\ntitle: Root\n---\nHello.")
    reporter = Reporter()
    build(project.env(), reporter)
    assert reporter.error_count == 0
    entry = project.root / ".cache" / "entry" / "index.md.entry"
    entry.write_text("{not json", encoding="utf-8")
    started = _record_server_starts(monkeypatch)
    assert cli.serve(config=project.root / "Kodama.toml") == cli.EXIT_FATAL
    assert started == []


def test_missing_trees_stop_serve_before_the_server(
    tmp_path: Path, monkeypatch: pytest.MonkeyPatch
) -> None:
    started = _record_server_starts(monkeypatch)
    env = BuildEnvironment(KodamaConfig(), tmp_path, mode="serve")
    with pytest.raises(KodamaConfigError, match="does not exist"):
        serve.serve(env, Reporter())
    assert started == []
