"""Watch mode: rebuild on source changes and run the static file server.

The first build runs before the server starts and lets configuration and
cache errors escape. After that a watchdog observer feeds a one-slot queue,
so changes that arrive while a rebuild is running collapse into a single
pending rebuild. Rebuilds run on the calling thread, and daemon threads
drain the server output.
"""

from __future__ import annotations

import queue
import subprocess
import threading
import typing as typ

from watchdog.events import FileSystemEvent, FileSystemEventHandler
from watchdog.observers import Observer

from ._constants import OUTPUT_PLACEHOLDER
from .compiler import build
from .config import KodamaConfigError
from .errors import KodamaError, KodamaIOError

if typ.TYPE_CHECKING:
    from pathlib import Path

    from .environment import BuildEnvironment
    from .reporting import Reporter

REBUILD_EVENTS = frozenset({"created", "modified", "deleted", "moved"})
SERVER_SHUTDOWN_TIMEOUT = 5.0


class RebuildHandler(FileSystemEventHandler):
    """Queue a rebuild for every file change under a watched directory."""

    def __init__(self, events: queue.Queue[str]) -> None:
        super().__init__()
        self.events = events

    def on_any_event(self, event: FileSystemEvent) -> None:
        if event.is_directory or event.event_type not in REBUILD_EVENTS:
            return
        try:
            self.events.put_nowait(str(event.src_path))
        except queue.Full:
            # A rebuild is already pending and will pick this change up.
            return


def server_command(env: BuildEnvironment) -> list[str]:
    """Return the configured server command with the output dir filled in."""
    output = str(env.output_dir)
    return [part.replace(OUTPUT_PLACEHOLDER, output) for part in env.config.serve.command]


def _drain(stream: typ.IO[str], emit: typ.Callable[[str], None]) -> None:
    for line in stream:
        emit(line.rstrip("\n"))


def start_server(command: list[str], reporter: Reporter) -> subprocess.Popen[str]:
    """Launch the static server and forward its output to the reporter.

    Raises
    ------
    KodamaIOError
        If the server binary cannot be started.
    """
    try:
        process = subprocess.Popen(  # noqa: S603
            command,
            stdout=subprocess.PIPE,
            stderr=subprocess.PIPE,
            text=True,
        )
    except OSError as exc:
        msg = f"Failed to start server {' '.join(command)}: {exc}"
        raise KodamaIOError(msg) from exc
    for stream in (process.stdout, process.stderr):
        if stream is not None:
            threading.Thread(
                target=_drain, args=(stream, reporter.info), daemon=True
            ).start()
    return process


def rebuild(env: BuildEnvironment, reporter: Reporter) -> bool:
    """Run one build, reporting failures instead of raising them.

    Returns
    -------
    bool
        Whether the build finished without reported errors.
    """
    reporter.reset()
    try:
        build(env, reporter)
    except (KodamaError, KodamaConfigError) as exc:
        reporter.watch_error(str(exc))
    return reporter.error_count == 0


def watch_paths(env: BuildEnvironment) -> list[Path]:
    return [path for path in (env.trees_dir, env.assets_dir) if path.is_dir()]


def serve(env: BuildEnvironment, reporter: Reporter) -> None:
    """Build, start the server, and rebuild on every change until interrupted.

    Raises
    ------
    KodamaConfigError, EntryCacheError
        If the first build fails before anything is served.
    """
    build(env, reporter)
    events: queue.Queue[str] = queue.Queue(maxsize=1)
    observer = Observer()
    handler = RebuildHandler(events)
    for path in watch_paths(env):
        observer.schedule(handler, str(path), recursive=True)
    observer.start()
    server: subprocess.Popen[str] | None = None
    try:
        server = start_server(server_command(env), reporter)
        watched = ", ".join(env.relative_to_root(path) for path in watch_paths(env))
        reporter.status("serve", f"Watching {watched}")
        while True:
            changed = events.get()
            reporter.status("serve", f"Change detected: {changed}")
            rebuild(env, reporter)
    except KeyboardInterrupt:
        reporter.status("serve", "Stopping")
    finally:
        observer.stop()
        observer.join()
        if server is not None:
            server.terminate()
            try:
                server.wait(timeout=SERVER_SHUTDOWN_TIMEOUT)
            except subprocess.TimeoutExpired:
                server.kill()


__all__ = [
    "RebuildHandler",
    "rebuild",
    "serve",
    "server_command",
    "start_server",
    "watch_paths",
]
