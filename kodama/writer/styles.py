"""The packaged stylesheet and its export to the output directory."""

from __future__ import annotations

import typing as typ
from pathlib import Path

from kodama._constants import MAIN_CSS_FILE
from kodama.cache import verify_and_update_hash
from kodama.errors import KodamaIOError

if typ.TYPE_CHECKING:
    from kodama.environment import BuildEnvironment
    from kodama.reporting import Reporter

STATIC_DIR = Path(__file__).resolve().parents[1] / "static"


def main_stylesheet(pygments_css: str) -> str:
    """Return the page stylesheet followed by the code highlighting rules."""
    base = (STATIC_DIR / MAIN_CSS_FILE).read_text(encoding="utf-8")
    return f"{base.rstrip()}\n\n{pygments_css.strip()}\n"


def write_stylesheet(env: BuildEnvironment, reporter: Reporter, css: str) -> bool:
    """Write ``main.css`` unless the stylesheet is inlined or unchanged.

    Returns
    -------
    bool
        Whether the file was written.
    """
    if env.config.build.inline_css:
        return False
    path = env.output_dir / MAIN_CSS_FILE
    name = env.relative_to_root(path)
    if not verify_and_update_hash(env, name, css.encode("utf-8")) and path.exists():
        reporter.skip(name)
        return False
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(css, encoding="utf-8")
    except OSError as exc:
        msg = f"Cannot write '{path}': {exc}"
        raise KodamaIOError(msg, path=path) from exc
    reporter.output(MAIN_CSS_FILE, name)
    return True


__all__ = ["STATIC_DIR", "main_stylesheet", "write_stylesheet"]
