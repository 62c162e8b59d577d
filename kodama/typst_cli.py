"""Thin wrappers around the external ``typst`` binary.

Every call shells out to ``typst compile`` (spelled ``typst c``) and raises
:class:`~kodama.errors.KodamaIOError` with the binary's stderr when it exits
with a non-zero status or cannot be started.
"""

from __future__ import annotations

import re
import subprocess
import typing as typ

from .cache import verify_and_update_hash
from .errors import KodamaIOError
from .html_flake import html_inline_typst_span

if typ.TYPE_CHECKING:
    from pathlib import Path

    from .environment import BuildEnvironment

TYPST_BINARY = "typst"
BODY_PATTERN = re.compile(r"<body[^>]*>(.*)</body>", re.DOTALL)
HTML_PATTERN = re.compile(r"<html[^>]*>(.*)</html>", re.DOTALL)
DEFAULT_MARGIN = "0em"
INLINE_PREAMBLE = (
    "#set page(width: auto, height: auto, margin: (x: {x}, y: {y}), "
    "fill: rgb(0, 0, 0, 0));\n"
    '#set text(size: 15.427pt, top-edge: "bounds", bottom-edge: "bounds");\n'
)


def run_typst(args: list[str], *, stdin: str | None = None) -> str:
    """Run ``typst`` with ``args`` and return its standard output.

    Raises
    ------
    KodamaIOError
        If the binary is missing or exits with a non-zero status.
    """
    command = [TYPST_BINARY, *args]
    try:
        result = subprocess.run(  # noqa: S603
            command,
            input=stdin,
            capture_output=True,
            text=True,
            check=False,
        )
    except OSError as exc:
        msg = f"Failed to run {' '.join(command)}: {exc}"
        raise KodamaIOError(msg) from exc
    if result.returncode != 0:
        msg = f"{' '.join(command)} failed: {result.stderr.strip()}"
        raise KodamaIOError(msg)
    return result.stdout


def html_body(html: str) -> str:
    """Return the markup inside ``<body>``, or inside ``<html>`` without one."""
    for pattern in (BODY_PATTERN, HTML_PATTERN):
        match = pattern.search(html)
        if match:
            return match.group(1)
    return html


def file_to_html(rel_path: str, root: Path) -> str:
    """Compile a Typst file to HTML and return its body markup."""
    html = run_typst(
        [
            "c",
            "-f=html",
            "--features=html",
            f"--root={root}",
            "--input",
            f"path={rel_path}",
            str(root / rel_path),
            "-",
        ]
    )
    return html_body(html)


def write_inline_html(env: BuildEnvironment, rel_path: str, html_path: Path) -> str:
    """Compile ``rel_path`` to ``html_path`` and return the body markup.

    An unchanged source whose HTML already exists is read back instead of
    being recompiled.
    """
    source = env.typst_root / rel_path
    content = _read_bytes(source)
    if not verify_and_update_hash(env, rel_path, content) and html_path.exists():
        return html_body(html_path.read_text(encoding="utf-8"))
    html = run_typst(
        [
            "c",
            "-f=html",
            "--features=html",
            f"--root={env.typst_root}",
            "--input",
            f"path={rel_path}",
            str(source),
            "-",
        ]
    )
    html_path.parent.mkdir(parents=True, exist_ok=True)
    html_path.write_text(html, encoding="utf-8")
    return html_body(html)


def write_svg(env: BuildEnvironment, rel_path: str, svg_path: Path) -> bool:
    """Compile ``rel_path`` to ``svg_path``.

    Returns
    -------
    bool
        ``False`` when the SVG was already current and compilation was
        skipped.
    """
    source = env.typst_root / rel_path
    content = _read_bytes(source)
    if not verify_and_update_hash(env, rel_path, content) and svg_path.exists():
        return False
    svg_path.parent.mkdir(parents=True, exist_ok=True)
    run_typst(["c", "-f=svg", f"--root={env.typst_root}", str(source), str(svg_path)])
    return True


def source_to_inline_svg(
    source: str,
    root: Path,
    *,
    margin_x: str | None = None,
    margin_y: str | None = None,
) -> str:
    """Render a Typst fragment piped through stdin into an inline SVG span."""
    preamble = INLINE_PREAMBLE.format(
        x=margin_x or DEFAULT_MARGIN, y=margin_y or margin_x or DEFAULT_MARGIN
    )
    svg = run_typst(["c", "-f=svg", f"--root={root}", "-", "-"], stdin=preamble + source)
    return f"\n{html_inline_typst_span(svg)}\n"


def _read_bytes(path: Path) -> bytes:
    try:
        return path.read_bytes()
    except OSError as exc:
        msg = f"Cannot read Typst source '{path}': {exc}"
        raise KodamaIOError(msg, path=path) from exc


__all__ = [
    "BODY_PATTERN",
    "file_to_html",
    "html_body",
    "run_typst",
    "source_to_inline_svg",
    "write_inline_html",
    "write_svg",
]
