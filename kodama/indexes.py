"""Emit ``indexes.json`` and the editor snippets derived from it.

``indexes.json`` maps every compiled slug to its metadata as plain text.
``kodama snip`` turns that index into VS Code snippets so a section can be
linked by typing its title::

    "Open sets": {
        "prefix": "Open sets",
        "body": ["[open-sets]: /trees/topology/open.md"],
        "description": "topology/open"
    }
"""

from __future__ import annotations

import json
import typing as typ

from ._constants import INDEXES_FILE, KEY_EXT, KEY_TITLE, SNIPPETS_FILE
from .errors import KodamaIOError
from .html_flake import strip_tags
from .section import content_text
from .slug import pretty_path

if typ.TYPE_CHECKING:
    from pathlib import Path

    from .environment import BuildEnvironment
    from .state import CompileState

IndexMap: typ.TypeAlias = dict[str, dict[str, str]]


def build_indexes(state: CompileState) -> IndexMap:
    """Return the slug-to-metadata index of every compiled section."""
    return {
        slug: {
            key: strip_tags(content_text(value)).strip()
            for key, value in section.metadata.items()
        }
        for slug, section in sorted(state.compiled.items())
    }


def write_indexes(env: BuildEnvironment, state: CompileState) -> Path:
    """Write ``indexes.json`` into the output directory."""
    path = env.output_dir / INDEXES_FILE
    _write_json(path, build_indexes(state))
    return path


def read_indexes(path: Path) -> IndexMap:
    """Load an index written by :func:`write_indexes`.

    Raises
    ------
    KodamaIOError
        If the file is missing or not a JSON object.
    """
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except (OSError, json.JSONDecodeError) as exc:
        msg = f"Cannot read '{path}': {exc}. Run `kodama build` first."
        raise KodamaIOError(msg, path=path) from exc
    if not isinstance(data, dict):
        msg = f"'{path}' does not contain a JSON object"
        raise KodamaIOError(msg, path=path)
    return data


def snippet_label(title: str) -> str:
    """Return the link label used in a snippet body.

    Examples
    --------
    >>> snippet_label("Open Sets")
    'open-sets'
    """
    return title.lower().replace(" ", "-")


def build_snippets(env: BuildEnvironment, indexes: IndexMap) -> dict[str, dict[str, typ.Any]]:
    """Return the VS Code snippet document for ``indexes``."""
    trees = pretty_path(env.config.kodama.trees)
    snippets: dict[str, dict[str, typ.Any]] = {}
    for slug, metadata in indexes.items():
        title = metadata.get(KEY_TITLE) or slug
        ext = metadata.get(KEY_EXT) or "md"
        snippets[slug] = {
            "prefix": title,
            "body": [f"[{snippet_label(title)}]: /{trees}/{slug}.{ext}"],
            "description": slug,
        }
    return snippets


def write_snippets(env: BuildEnvironment) -> Path:
    """Read ``indexes.json`` and write ``.vscode/markdown.code-snippets``."""
    indexes = read_indexes(env.output_dir / INDEXES_FILE)
    path = env.root / SNIPPETS_FILE
    _write_json(path, build_snippets(env, indexes))
    return path


def _write_json(path: Path, data: object) -> None:
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(
            json.dumps(data, ensure_ascii=False, indent=2) + "\n", encoding="utf-8"
        )
    except OSError as exc:
        msg = f"Cannot write '{path}': {exc}"
        raise KodamaIOError(msg, path=path) from exc


__all__ = [
    "build_indexes",
    "build_snippets",
    "read_indexes",
    "snippet_label",
    "write_indexes",
    "write_snippets",
]
