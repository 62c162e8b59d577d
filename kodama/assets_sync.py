"""Mirror the assets directory into the output by modification time."""

from __future__ import annotations

import shutil
import typing as typ

from .errors import KodamaIOError

if typ.TYPE_CHECKING:
    from pathlib import Path


def sync_assets(source: Path, target: Path) -> bool:
    """Copy files from ``source`` that are missing or older under ``target``.

    ``shutil.copy2`` keeps the source modification time, so an unchanged
    asset is never copied twice.

    Returns
    -------
    bool
        ``True`` when nothing needed copying, including when ``source`` does
        not exist.

    Raises
    ------
    KodamaIOError
        If ``target`` exists but is not a directory, or a copy fails.
    """
    if not source.exists():
        return True
    if target.exists() and not target.is_dir():
        msg = f"Target path '{target}' is not a directory"
        raise KodamaIOError(msg, path=target)
    unchanged = True
    try:
        target.mkdir(parents=True, exist_ok=True)
        for entry in sorted(source.rglob("*")):
            if not entry.is_file():
                continue
            destination = target / entry.relative_to(source)
            if destination.exists() and entry.stat().st_mtime <= destination.stat().st_mtime:
                continue
            destination.parent.mkdir(parents=True, exist_ok=True)
            shutil.copy2(entry, destination)
            unchanged = False
    except OSError as exc:
        msg = f"Cannot mirror assets from '{source}' to '{target}': {exc}"
        raise KodamaIOError(msg, path=source) from exc
    return unchanged


__all__ = ["sync_assets"]
