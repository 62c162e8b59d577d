"""Rich console output for build progress and diagnostics.

Every user-visible line goes through :class:`Reporter` so that status lines
land on stdout, errors land on stderr, and the error count can decide the
process exit code.

Examples
--------
>>> reporter = Reporter(verbose=True)
>>> reporter.status("build", "Compiled 3 sections")  # doctest: +SKIP
[build] Compiled 3 sections
>>> reporter.error_count
0
"""

from __future__ import annotations

import dataclasses as dc

from rich.console import Console
from rich.text import Text


def _console(*, stderr: bool) -> Console:
    return Console(stderr=stderr, soft_wrap=True, highlight=False)


@dc.dataclass(slots=True)
class Reporter:
    """Print build status lines and count reported errors."""

    verbose: bool = False
    verbose_skip: bool = False
    console: Console = dc.field(default_factory=lambda: _console(stderr=False))
    err_console: Console = dc.field(default_factory=lambda: _console(stderr=True))
    error_count: int = 0

    def status(self, tag: str, message: str) -> None:
        """Print ``[tag] message`` to stdout."""
        self.console.print(Text.assemble((f"[{tag}]", "bold green"), " ", message))

    def output(self, title: str, path: str) -> None:
        """Announce a written page."""
        self.console.print(
            Text.assemble(("Output:", "bold cyan"), f' "{title}" {path}')
        )

    def info(self, message: str) -> None:
        self.console.print(Text(message))

    def skip(self, path: str) -> None:
        """Report a source whose output is already current."""
        if self.verbose_skip:
            self.console.print(Text.assemble(("Skip:", "dim"), f" {path}"))

    def reuse(self, path: str) -> None:
        """Report a section loaded from the entry cache."""
        if self.verbose:
            self.console.print(Text.assemble(("Reuse:", "dim"), f" {path}"))

    def detail(self, message: str) -> None:
        if self.verbose:
            self.console.print(Text(message, style="dim"))

    def warn(self, message: str) -> None:
        """Print a yellow warning to stderr without counting it as an error."""
        self.err_console.print(Text(f"Warning: {message}", style="yellow"))

    def error(self, message: str) -> None:
        """Print ``[error] message`` to stderr and count it."""
        self.error_count += 1
        self.err_console.print(Text.assemble(("[error]", "bold red"), " ", message))

    def watch_error(self, message: str) -> None:
        """Report a failure raised while rebuilding on a file change."""
        self.error_count += 1
        self.err_console.print(
            Text.assemble(("[watch] Error:", "bold red"), " ", message)
        )

    def reset(self) -> None:
        """Forget errors counted by a previous build."""
        self.error_count = 0


__all__ = ["Reporter"]
