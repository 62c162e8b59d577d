"""Content-hash and shallow-section caches under ``.cache/``.

Hash files hold a 64-bit blake2b digest as ASCII decimal and decide whether a
source changed since the last build. Entry files hold the JSON form of a
:class:`~kodama.section.ShallowSection` so unchanged sources skip Stage 1.
"""

from __future__ import annotations

import hashlib
import json
import typing as typ

from .errors import EntryCacheError, KodamaIOError
from .section import ShallowSection, shallow_from_json, shallow_to_json

if typ.TYPE_CHECKING:
    from pathlib import Path

    from .environment import BuildEnvironment


def content_hash(content: bytes) -> int:
    """Return the 64-bit digest recorded for ``content``.

    Examples
    --------
    >>> content_hash(b"Hello.") == content_hash(b"Hello.")
    True
    >>> 0 <= content_hash(b"") < 2**64
    True
    """
    digest = hashlib.blake2b(content, digest_size=8).digest()
    return int.from_bytes(digest, "big")


def read_hash(path: Path) -> int:
    """Return the recorded digest, treating a missing or garbled file as 0."""
    try:
        return int(path.read_text(encoding="ascii").strip())
    except (FileNotFoundError, ValueError, UnicodeDecodeError):
        return 0


def write_hash(path: Path, digest: int) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(str(digest), encoding="ascii")


def check_hash(env: BuildEnvironment, name: str, content: bytes) -> tuple[bool, int]:
    """Compare ``content`` with the hash recorded for ``name``.

    Returns
    -------
    tuple[bool, int]
        Whether the content counts as modified and its new digest. Build
        mode always reports a modification so every source is reparsed.
    """
    digest = content_hash(content)
    modified = digest != read_hash(env.hash_path(name))
    return (modified or not env.is_serve), digest


def verify_and_update_hash(env: BuildEnvironment, name: str, content: bytes) -> bool:
    """Return whether ``content`` changed, recording the new hash if so."""
    modified, digest = check_hash(env, name, content)
    if modified:
        write_hash(env.hash_path(name), digest)
    return modified


def read_entry(path: Path) -> ShallowSection:
    """Load a cached shallow section.

    Raises
    ------
    EntryCacheError
        If the file is not valid JSON or does not match the entry schema.
    KodamaIOError
        If the file cannot be read.
    """
    try:
        text = path.read_text(encoding="utf-8")
    except OSError as exc:
        msg = f"Cannot read entry cache '{path}': {exc}"
        raise KodamaIOError(msg, path=path) from exc
    try:
        return shallow_from_json(json.loads(text))
    except (json.JSONDecodeError, KeyError, TypeError, ValueError) as exc:
        raise EntryCacheError(path, str(exc)) from exc


def write_entry(path: Path, section: ShallowSection) -> None:
    """Overwrite the cached shallow section at ``path``."""
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(
            json.dumps(shallow_to_json(section), ensure_ascii=False), encoding="utf-8"
        )
    except OSError as exc:
        msg = f"Cannot write entry cache '{path}': {exc}"
        raise KodamaIOError(msg, path=path) from exc


__all__ = [
    "check_hash",
    "content_hash",
    "read_entry",
    "read_hash",
    "verify_and_update_hash",
    "write_entry",
    "write_hash",
]
