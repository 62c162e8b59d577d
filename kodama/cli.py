"""Cyclopts CLI entrypoint for building and serving Kodama forests.

The ``kodama`` console script defined here compiles a tree of Markdown and
Typst notes into a static site, watches it while serving, scaffolds new
projects and sections, and emits editor snippets from the built index.

Examples
--------
Build the project described by ``Kodama.toml`` in the current directory:

>>> from kodama.cli import main
>>> main()  # doctest: +SKIP

Serve a project from another directory:

>>> from kodama.cli import app
>>> app.run(["serve", "--config", "notes/Kodama.toml"])  # doctest: +SKIP
"""

from __future__ import annotations

import typing as typ
from pathlib import Path

from cyclopts import App, Parameter

from ._constants import DEFAULT_CONFIG_FILE
from .compiler import build as build_forest
from .config import KodamaConfigError, find_config, load_config
from .environment import BuildEnvironment
from .errors import EntryCacheError, KodamaError
from .indexes import write_snippets
from .reporting import Reporter
from .scaffold import init_site, new_config, new_section, new_site, remove_sections
from .serve import serve as serve_forest

if typ.TYPE_CHECKING:
    from .environment import RunMode

DEFAULT_CONFIG = Path(DEFAULT_CONFIG_FILE)
EXIT_OK = 0
EXIT_FAILURE = 1
EXIT_FATAL = 2

ConfigOption = typ.Annotated[
    Path, Parameter(help="Path to the Kodama.toml configuration file")
]

app = App(name="kodama", help="Compile a forest of notes into a static site.")
new_app = App(name="new", help="Create a new site, config file, or section.")
app.command(new_app)


def load_environment(config: Path, mode: RunMode = "build") -> BuildEnvironment:
    """Load ``config`` and bind it to its directory as the project root.

    Raises
    ------
    KodamaConfigError
        If the configuration file is missing or invalid.
    """
    path = find_config(config)
    return BuildEnvironment(load_config(path), path.resolve().parent, mode=mode)


def _fatal(reporter: Reporter, exc: Exception) -> int:
    reporter.error(str(exc))
    return EXIT_FATAL


@app.command(help="Compile every section into the build output directory.")
def build(
    *,
    config: ConfigOption = DEFAULT_CONFIG,
    verbose: typ.Annotated[
        bool, Parameter(help="Report sections reused from the cache")
    ] = False,
    verbose_skip: typ.Annotated[
        bool, Parameter(help="Report pages whose output is already current")
    ] = False,
) -> int:
    """Run a one-shot production build.

    Parameters
    ----------
    config : Path, optional
        Configuration file; its directory is the project root.
    verbose : bool, optional
        Print a line for each section loaded from the entry cache.
    verbose_skip : bool, optional
        Print a line for each page left untouched.

    Returns
    -------
    int
        ``0`` on success, ``1`` when any section failed, and ``2`` for
        configuration or cache-corruption errors.
    """
    reporter = Reporter(verbose=verbose, verbose_skip=verbose_skip)
    try:
        env = load_environment(config, "build")
        build_forest(env, reporter)
    except (KodamaConfigError, EntryCacheError) as exc:
        return _fatal(reporter, exc)
    except KodamaError as exc:
        reporter.error(str(exc))
    return EXIT_FAILURE if reporter.error_count else EXIT_OK


@app.command(help="Build, serve the output, and rebuild whenever a source changes.")
def serve(
    *,
    config: ConfigOption = DEFAULT_CONFIG,
    verbose: typ.Annotated[
        bool, Parameter(help="Report sections reused from the cache")
    ] = False,
) -> int:
    """Watch the trees and assets directories while a static server runs."""
    reporter = Reporter(verbose=verbose)
    try:
        env = load_environment(config, "serve")
        serve_forest(env, reporter)
    except (KodamaConfigError, EntryCacheError) as exc:
        return _fatal(reporter, exc)
    except KodamaError as exc:
        reporter.error(str(exc))
        return EXIT_FAILURE
    return EXIT_OK


@new_app.command(name="site", help="Create a new site directory.")
def new_site_command(path: Path, /) -> int:
    """Create ``path`` holding a config file, an index section, and assets."""
    reporter = Reporter()
    try:
        new_site(path, reporter)
    except KodamaError as exc:
        reporter.error(str(exc))
        return EXIT_FAILURE
    return EXIT_OK


@new_app.command(name="config", help="Write a configuration file with every default.")
def new_config_command(path: Path = DEFAULT_CONFIG, /) -> int:
    reporter = Reporter()
    try:
        new_config(path, reporter)
    except KodamaError as exc:
        reporter.error(str(exc))
        return EXIT_FAILURE
    return EXIT_OK


@new_app.command(name="section", help="Create a section under the trees directory.")
def new_section_command(
    path: str,
    /,
    *,
    template: typ.Annotated[
        Path | None, Parameter(help="File whose text seeds the new section")
    ] = None,
    config: ConfigOption = DEFAULT_CONFIG,
) -> int:
    """Create a section from ``template`` or the default front matter.

    Parameters
    ----------
    path : str
        Section path relative to the trees directory; ``.md`` is appended
        when no source suffix is given.
    template : Path or None, optional
        Template file; ``<FILE_NAME>`` in it is replaced by the file stem.
    config : Path, optional
        Configuration file locating the trees directory.

    Returns
    -------
    int
        Process exit code.
    """
    reporter = Reporter()
    try:
        env = load_environment(config)
        new_section(env, path, reporter, template=template)
    except KodamaConfigError as exc:
        return _fatal(reporter, exc)
    except KodamaError as exc:
        reporter.error(str(exc))
        return EXIT_FAILURE
    return EXIT_OK


@app.command(name="init", help="Populate an existing directory with a Kodama project.")
def init_command(
    path: Path = Path(),
    /,
    *,
    no_typst: typ.Annotated[
        bool, Parameter(help="Skip the Typst helper import file")
    ] = False,
) -> int:
    reporter = Reporter()
    try:
        init_site(path, reporter, typst=not no_typst)
    except KodamaError as exc:
        reporter.error(str(exc))
        return EXIT_FAILURE
    return EXIT_OK


@app.command(help="Delete sections along with their cache entries and pages.")
def remove(*paths: str, config: ConfigOption = DEFAULT_CONFIG) -> int:
    """Remove each section's source, hash, entry, and output page."""
    reporter = Reporter()
    try:
        env = load_environment(config)
        remove_sections(env, paths, reporter)
    except KodamaConfigError as exc:
        return _fatal(reporter, exc)
    except KodamaError as exc:
        reporter.error(str(exc))
        return EXIT_FAILURE
    return EXIT_OK


@app.command(help="Write VS Code snippets linking every built section.")
def snip(*, config: ConfigOption = DEFAULT_CONFIG) -> int:
    """Turn the build's ``indexes.json`` into ``.vscode/markdown.code-snippets``."""
    reporter = Reporter()
    try:
        env = load_environment(config)
        path = write_snippets(env)
    except KodamaConfigError as exc:
        return _fatal(reporter, exc)
    except KodamaError as exc:
        reporter.error(str(exc))
        return EXIT_FAILURE
    reporter.status("snip", f"Wrote {env.relative_to_root(path)}")
    return EXIT_OK


def main() -> None:
    """Invoke the Cyclopts application that powers the ``kodama`` command.

    Examples
    --------
    >>> main()  # doctest: +SKIP
    """
    raise SystemExit(app())


if __name__ == "__main__":  # pragma: no cover - manual invocation helper
    main()
