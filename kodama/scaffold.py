"""Project scaffolding: ``new``, ``init``, and ``remove``.

Example
-------
>>> from pathlib import Path
>>> from kodama.scaffold import new_site
>>> new_site(Path("garden"), reporter)  # doctest: +SKIP
Created new site at: garden
"""

from __future__ import annotations

import typing as typ
from pathlib import Path

from ._constants import DEFAULT_CONFIG_FILE, FILE_NAME_PLACEHOLDER, INDEX_SLUG
from .config import KodamaConfig, config_to_toml
from .errors import KodamaIOError
from .slug import Extension, pretty_path, to_slug

if typ.TYPE_CHECKING:
    from .environment import BuildEnvironment
    from .reporting import Reporter

DEFAULT_SECTION_TEMPLATE = f"---\ntitle: {FILE_NAME_PLACEHOLDER}\n---\n"
TYPST_IMPORT_FILE = "import.typ"
TYPST_IMPORT_STUB = """\
// Helpers emitting the tags kodama reads from Typst sections.
#let kodama-meta(key, value) = html.elem("kodamameta", attrs: (key: key, value: value))
#let title(value) = kodama-meta("title", value)
#let taxon(value) = kodama-meta("taxon", value)
#let author(value) = kodama-meta("author", value)
#let date(value) = kodama-meta("date", value)
#let embed(url, title, numbering: "auto", open: "auto", catalog: "auto") = html.elem(
  "kodamaembed",
  attrs: (url: url, numbering: numbering, open: open, catalog: catalog),
  title,
)
#let local(slug, text) = html.elem("kodamalocal", attrs: (slug: slug), text)
"""


def _write_new(path: Path, content: str) -> None:
    """Create ``path`` with ``content``, refusing to overwrite."""
    if path.exists():
        msg = f"Already exists: {path}"
        raise KodamaIOError(msg, path=path)
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(content, encoding="utf-8")
    except OSError as exc:
        msg = f"Cannot create '{path}': {exc}"
        raise KodamaIOError(msg, path=path) from exc


def section_content(name: str, template: Path | None = None) -> str:
    """Return the initial text of a section named ``name``."""
    if template is None:
        text = DEFAULT_SECTION_TEMPLATE
    else:
        try:
            text = template.read_text(encoding="utf-8")
        except OSError as exc:
            msg = f"Failed to read template file '{template}': {exc}"
            raise KodamaIOError(msg, path=template) from exc
    return text.replace(FILE_NAME_PLACEHOLDER, name)


def new_config(path: Path, reporter: Reporter) -> Path:
    """Write a configuration file holding every default."""
    _write_new(path, config_to_toml(KodamaConfig()))
    reporter.info(f"Created new config at: {path}")
    return path


def new_section(
    env: BuildEnvironment,
    path: str,
    reporter: Reporter,
    *,
    template: Path | None = None,
) -> Path:
    """Create a section at ``path`` relative to the trees directory."""
    relative = pretty_path(path)
    if Extension.from_suffix(Path(relative).suffix) is None:
        relative = f"{relative}{Extension.MARKDOWN.suffix}"
    target = env.trees_dir / relative
    _write_new(target, section_content(Path(relative).stem, template))
    reporter.info(f"Created new section at: {target}")
    return target


def new_site(path: Path, reporter: Reporter) -> Path:
    """Create a new site directory with a config file and an index section."""
    if path.exists():
        msg = f"Already exists: {path}"
        raise KodamaIOError(msg, path=path)
    path.mkdir(parents=True)
    reporter.info(f"Created new site at: {path}")
    _add_project_files(path, reporter, typst=False)
    return path


def init_site(path: Path, reporter: Reporter, *, typst: bool = True) -> list[Path]:
    """Populate an existing directory with the files of a kodama project.

    Files that already exist are left untouched.
    """
    if not path.is_dir():
        msg = f"Does not exist: {path}"
        raise KodamaIOError(msg, path=path)
    return _add_project_files(path, reporter, typst=typst)


def _add_project_files(root: Path, reporter: Reporter, *, typst: bool) -> list[Path]:
    config = KodamaConfig()
    trees = root / config.kodama.trees
    files = {
        root / DEFAULT_CONFIG_FILE: config_to_toml(config),
        trees / f"{INDEX_SLUG}{Extension.MARKDOWN.suffix}": section_content(INDEX_SLUG),
    }
    if typst:
        files[trees / TYPST_IMPORT_FILE] = TYPST_IMPORT_STUB
    created: list[Path] = []
    for target, content in files.items():
        if target.exists():
            reporter.info(f"Already exists, skipping: {target}")
            continue
        _write_new(target, content)
        reporter.info(f"Created: {target}")
        created.append(target)
    (root / config.kodama.assets).mkdir(parents=True, exist_ok=True)
    return created


def section_files(env: BuildEnvironment, path: str) -> list[Path]:
    """Return the source, hash, entry, and page files of a section."""
    relative = pretty_path(path)
    ext = Extension.from_suffix(Path(relative).suffix) or Extension.MARKDOWN
    slug = to_slug(relative)
    return [
        env.source_path(slug, ext),
        env.hash_path(f"{slug}{ext.suffix}"),
        env.entry_path(slug, ext),
        env.output_dir / env.page_path(slug),
    ]


def remove_sections(
    env: BuildEnvironment, paths: typ.Iterable[str], reporter: Reporter
) -> list[Path]:
    """Delete the files of each section, reporting every path considered."""
    removed: list[Path] = []
    for path in paths:
        for target in section_files(env, path):
            if not target.exists():
                reporter.info(f'File "{target}" does not exist, skipping.')
                continue
            try:
                target.unlink()
            except OSError as exc:
                msg = f"Failed to remove '{target}': {exc}"
                raise KodamaIOError(msg, path=target) from exc
            reporter.info(f'Removed: "{target}"')
            removed.append(target)
    return removed


__all__ = [
    "DEFAULT_SECTION_TEMPLATE",
    "init_site",
    "new_config",
    "new_section",
    "new_site",
    "remove_sections",
    "section_content",
    "section_files",
]
