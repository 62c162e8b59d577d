"""Route ``.typ`` links carrying a ``#:`` action to the Typst binary.

Supported forms::

    [caption](figures/knot.typ#:span)     inline <img> of the compiled SVG
    [caption](figures/knot.typ#:block)    centered <figure> with a caption
    [caption](figures/knot.typ#:code)     figure followed by its source
    [](figures/table.typ#:html)           inline HTML body of the document
    [*](lib/macros.typ#:shared)           import for later inline fragments
    [$x^2$](inline-math-0.2em)            inline SVG rendered through stdin

The links are replaced on the raw source lines, before block parsing, so the
emitted HTML is stashed and never re-parsed as Markdown.
"""

from __future__ import annotations

import re
import typing as typ

from markdown.preprocessors import Preprocessor

from kodama import typst_cli
from kodama._constants import (
    ACTION_BLOCK,
    ACTION_CODE,
    ACTION_HTML,
    ACTION_SEPARATOR,
    ACTION_SHARED,
    ACTION_SPAN,
    INLINE_TYPST_PREFIX,
)
from kodama.errors import KodamaIOError
from kodama.html_flake import html_figure, html_figure_code
from kodama.slug import adjust_suffix, pretty_path

from .conversion import in_code_span

if typ.TYPE_CHECKING:
    from markdown import Markdown

    from kodama.environment import BuildEnvironment

    from .conversion import Conversion

TYPST_LINK_PATTERN = re.compile(
    r"\[((?:[^\[\]]|\[[^\[\]]*\])*)\]\(\s*([^()\s]+)\s*\)", re.DOTALL
)
FIGURE_ACTIONS = frozenset({ACTION_SPAN, ACTION_BLOCK, ACTION_CODE})


def url_action(target: str) -> tuple[str, str]:
    """Split ``path#:action`` into its path and action.

    Examples
    --------
    >>> url_action("./ch1#:embed")
    ('./ch1', 'embed')
    >>> url_action("https://example.org/#top")
    ('https://example.org/#top', '')
    """
    url, _sep, action = target.partition(ACTION_SEPARATOR)
    return url, action


def is_inline_typst(target: str) -> bool:
    return target == INLINE_TYPST_PREFIX or target.startswith(f"{INLINE_TYPST_PREFIX}-")


def relativize(env: BuildEnvironment, url: str) -> str:
    """Return ``url`` relative to the trees directory.

    Examples
    --------
    >>> from pathlib import Path
    >>> from kodama.config import KodamaConfig
    >>> from kodama.environment import BuildEnvironment
    >>> env = BuildEnvironment(KodamaConfig(), Path("."))
    >>> relativize(env, "/trees/figures/knot.typ")
    'figures/knot.typ'
    """
    path = pretty_path(url)
    prefix = f"{pretty_path(env.config.kodama.trees)}/"
    if path.startswith(prefix):
        return path[len(prefix) :]
    return path


def _strip_delimiters(text: str) -> str:
    """Drop one enclosing pair of math or code delimiters."""
    for delimiter in ("$$", "$", "`"):
        size = len(delimiter)
        if len(text) > 2 * size and text.startswith(delimiter) and text.endswith(delimiter):
            return text[size:-size]
    return text


class TypstActionPreprocessor(Preprocessor):
    """Replace Typst action links with stashed HTML."""

    def __init__(self, md: Markdown, conversion: Conversion) -> None:
        super().__init__(md)
        self.conversion = conversion

    def run(self, lines: list[str]) -> list[str]:
        text = "\n".join(lines)

        def _repl(match: re.Match[str]) -> str:
            if in_code_span(text, match.start()):
                return match.group(0)
            return self._replace(match)

        return TYPST_LINK_PATTERN.sub(_repl, text).split("\n")

    def _replace(self, match: re.Match[str]) -> str:
        label, target = match.group(1), match.group(2)
        url, action = url_action(target)
        if is_inline_typst(target):
            return self._stash(lambda: self._inline(label, target))
        if action == ACTION_SHARED:
            imported = label.strip() or "*"
            self.conversion.shared_imports.append(f'#import "{url}": {imported}')
            return ""
        if action == ACTION_HTML:
            return self._stash(lambda: self._html(url))
        if action in FIGURE_ACTIONS:
            return self._stash(lambda: self._figure(url, action, label.strip()))
        return match.group(0)

    def _stash(self, render: typ.Callable[[], str]) -> str:
        """Render a fragment, reporting Typst failures as an empty fragment."""
        try:
            html = render()
        except KodamaIOError as exc:
            self.conversion.reporter.error(f"{self.conversion.slug}: {exc}")
            html = ""
        return self.md.htmlStash.store(html)

    def _inline(self, label: str, target: str) -> str:
        args = target.split("-")[1:]
        content = _strip_delimiters(label.strip())
        if args and args[0] == "math":
            args = args[1:]
            content = f"${content}$"
        margin_x = args[0] if args else None
        margin_y = args[1] if len(args) > 1 else margin_x
        source = "\n".join([*self.conversion.shared_imports, content])
        return typst_cli.source_to_inline_svg(
            source,
            self.conversion.env.typst_root,
            margin_x=margin_x,
            margin_y=margin_y,
        )

    def _html(self, url: str) -> str:
        env = self.conversion.env
        rel_path = relativize(env, url)
        html_path = env.output_dir / adjust_suffix(rel_path, ".typ", ".html")
        return typst_cli.write_inline_html(env, rel_path, html_path)

    def _figure(self, url: str, action: str, caption: str) -> str:
        env = self.conversion.env
        reporter = self.conversion.reporter
        rel_path = relativize(env, url)
        svg_rel = adjust_suffix(rel_path, ".typ", ".svg")
        svg_path = env.output_dir / svg_rel
        if typst_cli.write_svg(env, rel_path, svg_path):
            reporter.detail(f"Compiled to SVG: {env.relative_to_root(svg_path)}")
        else:
            reporter.skip(rel_path)
        src = env.full_url(svg_rel)
        if action == ACTION_SPAN:
            return html_figure(src, center=False, caption=caption)
        if action == ACTION_BLOCK:
            return html_figure(src, center=True, caption=caption)
        return html_figure_code(src, caption, self._read_code(rel_path))

    def _read_code(self, rel_path: str) -> str:
        source = self.conversion.env.typst_root / rel_path
        for candidate in (source.with_name(f"{source.name}.code"), source):
            if candidate.is_file():
                return candidate.read_text(encoding="utf-8")
        msg = f"Typst source '{source}' not found"
        raise KodamaIOError(msg, path=source)


__all__ = [
    "TYPST_LINK_PATTERN",
    "TypstActionPreprocessor",
    "is_inline_typst",
    "relativize",
    "url_action",
]
