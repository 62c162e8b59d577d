"""Workspace collection and the two-stage build.

Stage 1 turns every source into a :class:`~kodama.section.ShallowSection`,
reusing the entry cache when the source hash is unchanged; Stage 2 resolves
the whole forest and writes pages, ``indexes.json``, the stylesheet, and
the mirrored assets.

Example
-------
>>> from kodama.compiler import build
>>> state = build(env, reporter)  # doctest: +SKIP
[build] Compiled 12 sections
"""

from __future__ import annotations

import dataclasses as dc
import os
import time
import typing as typ
from pathlib import Path

from ._constants import INDEX_SLUG
from .assets_sync import sync_assets
from .cache import check_hash, read_entry, write_entry, write_hash
from .config import KodamaConfigError
from .errors import KodamaIOError, KodamaSyntaxError
from .indexes import write_indexes
from .markdown_parser import MarkdownParser
from .slug import Extension, pretty_path, to_slug
from .state import CompileState
from .typst_parser import parse_typst
from .writer import PageWriter, main_stylesheet, write_stylesheet

if typ.TYPE_CHECKING:
    from .environment import BuildEnvironment
    from .reporting import Reporter
    from .section import ShallowSection

IGNORED_FILES = frozenset({"README.md"})
EXTENSION_ORDER = (Extension.MARKDOWN, Extension.TYPST)


@dc.dataclass(slots=True)
class Workspace:
    """Every section source under the trees directory.

    ``sources`` lists Markdown sources before Typst ones, each group sorted
    by slug, which is the order Stage 1 runs in.
    """

    sources: list[tuple[str, Extension]] = dc.field(default_factory=list)

    @property
    def slugs(self) -> list[str]:
        """Return each slug once, in source order."""
        return list(dict.fromkeys(slug for slug, _ext in self.sources))


def is_ignored_dir(name: str) -> bool:
    return name.startswith((".", "_"))


def collect_workspace(env: BuildEnvironment) -> Workspace:
    """Find every ``.md`` and ``.typst`` section under the trees directory.

    Raises
    ------
    KodamaConfigError
        If the trees directory or its index section is missing.
    """
    trees = env.trees_dir
    if not trees.is_dir():
        msg = f"Trees directory '{trees}' does not exist"
        raise KodamaConfigError(msg)
    if not any((trees / f"{INDEX_SLUG}{ext.suffix}").is_file() for ext in Extension):
        msg = (
            f"Entry file not found in '{trees}'. Create "
            f"'{INDEX_SLUG}{Extension.MARKDOWN.suffix}' or "
            f"'{INDEX_SLUG}{Extension.TYPST.suffix}'."
        )
        raise KodamaConfigError(msg)
    found: dict[Extension, set[str]] = {ext: set() for ext in Extension}
    for dirpath, dirnames, filenames in os.walk(trees, followlinks=True):
        dirnames[:] = [name for name in dirnames if not is_ignored_dir(name)]
        for filename in filenames:
            if filename in IGNORED_FILES:
                continue
            path = Path(dirpath) / filename
            ext = Extension.from_suffix(path.suffix)
            if ext is None:
                continue
            found[ext].add(to_slug(path.relative_to(trees).as_posix()))
    return Workspace(
        sources=[(slug, ext) for ext in EXTENSION_ORDER for slug in sorted(found[ext])]
    )


def parse_markdown(parser: MarkdownParser, slug: str) -> ShallowSection:
    return parser.parse(slug)


def load_section(
    env: BuildEnvironment,
    reporter: Reporter,
    parser: MarkdownParser,
    slug: str,
    ext: Extension,
) -> ShallowSection | None:
    """Run Stage 1 for one source, reusing its entry when unchanged.

    IO and syntax failures are reported and yield ``None``; a corrupt entry
    raises :class:`~kodama.errors.EntryCacheError`.
    """
    name = f"{slug}{ext.suffix}"
    source = env.source_path(slug, ext)
    try:
        content = source.read_bytes()
    except OSError as exc:
        reporter.error(f"Cannot read '{source}': {exc}")
        return None
    modified, digest = check_hash(env, name, content)
    entry_path = env.entry_path(slug, ext)
    if not modified and entry_path.exists():
        reporter.reuse(name)
        return read_entry(entry_path)
    try:
        if ext is Extension.MARKDOWN:
            shallow = parse_markdown(parser, slug)
        else:
            shallow = parse_typst(env, slug, parser)
        write_entry(entry_path, shallow)
    except (KodamaIOError, KodamaSyntaxError) as exc:
        reporter.error(f"Failed to parse '{name}': {exc}")
        return None
    write_hash(env.hash_path(name), digest)
    return shallow


def build(env: BuildEnvironment, reporter: Reporter) -> CompileState:
    """Compile the workspace and write every output.

    Raises
    ------
    KodamaConfigError
        If the workspace cannot be collected.
    EntryCacheError
        If a cached entry is corrupt.
    """
    started = time.perf_counter()
    workspace = collect_workspace(env)
    parser = MarkdownParser(env, reporter)
    state = CompileState(env, reporter)
    for slug, ext in workspace.sources:
        shallow = load_section(env, reporter, parser, slug, ext)
        if shallow is not None:
            state.add(shallow)
    state.compile_all()
    stylesheet = main_stylesheet(parser.stylesheet)
    writer = PageWriter(env, state, reporter, stylesheet=stylesheet)
    writer.write_all(slug for slug in workspace.slugs if slug in state.compiled)
    try:
        write_indexes(env, state)
        write_stylesheet(env, reporter, stylesheet)
        assets = env.output_dir / pretty_path(env.config.kodama.assets)
        if not sync_assets(env.assets_dir, assets):
            reporter.detail(f"Synced assets to {env.relative_to_root(assets)}")
    except KodamaIOError as exc:
        reporter.error(str(exc))
    elapsed = time.perf_counter() - started
    reporter.status(
        env.mode, f"Compiled {len(state.compiled)} sections in {elapsed:.2f}s"
    )
    return state


__all__ = [
    "Workspace",
    "build",
    "collect_workspace",
    "load_section",
    "parse_markdown",
]
