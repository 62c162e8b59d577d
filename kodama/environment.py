"""The immutable build environment passed through every compiler stage.

The environment binds a loaded :class:`~kodama.config.KodamaConfig` to the
project root and the run mode, and answers every path and URL question the
parsers, the resolver, and the writer ask.

Examples
--------
>>> from pathlib import Path
>>> from kodama.config import KodamaConfig
>>> env = BuildEnvironment(KodamaConfig(), Path("/site"), mode="build")
>>> env.full_html_url("notes/a")
'/notes/a.html'
>>> env.hash_path("notes/a.md").as_posix()
'/site/.cache/hash/notes/a.md.hash'
"""

from __future__ import annotations

import dataclasses as dc
import typing as typ
from pathlib import Path

from ._constants import (
    CACHE_DIR,
    ENTRY_DIR,
    ENTRY_FILE_TEMPLATE,
    HASH_DIR,
    INDEX_SLUG,
)

if typ.TYPE_CHECKING:
    from .config import KodamaConfig
    from .slug import Extension

RunMode = typ.Literal["build", "serve"]


@dc.dataclass(frozen=True, slots=True)
class BuildEnvironment:
    """Configuration plus project root for a single build invocation."""

    config: KodamaConfig
    root: Path
    mode: RunMode = "build"

    @property
    def is_serve(self) -> bool:
        return self.mode == "serve"

    @property
    def trees_dir(self) -> Path:
        return self.root / self.config.kodama.trees

    @property
    def assets_dir(self) -> Path:
        return self.root / self.config.kodama.assets

    @property
    def typst_root(self) -> Path:
        return self.root / self.config.build.typst_root

    @property
    def output_dir(self) -> Path:
        output = self.config.serve.output if self.is_serve else self.config.build.output
        return self.root / output

    @property
    def cache_dir(self) -> Path:
        return self.root / CACHE_DIR

    @property
    def base_url(self) -> str:
        """Return the URL prefix for links; always ``/`` while serving."""
        if self.is_serve:
            return "/"
        base = self.config.kodama.base_url
        return base if base.endswith("/") else f"{base}/"

    @property
    def edit(self) -> str | None:
        return self.config.serve.edit if self.is_serve else self.config.build.edit

    def hash_path(self, name: str) -> Path:
        """Return the hash file recording the last seen content of ``name``."""
        return self.cache_dir / HASH_DIR / f"{name}.hash"

    def entry_path(self, slug: str, ext: Extension) -> Path:
        """Return the cached shallow-section file for ``slug``."""
        name = ENTRY_FILE_TEMPLATE.format(slug=slug, ext=ext.value)
        return self.cache_dir / ENTRY_DIR / name

    def source_path(self, slug: str, ext: Extension) -> Path:
        return self.trees_dir / f"{slug}{ext.suffix}"

    def page_path(self, slug: str) -> str:
        """Return the output path of a page relative to the output dir."""
        if self.config.build.pretty_urls and slug != INDEX_SLUG:
            return f"{slug}/index.html"
        return f"{slug}.html"

    def full_url(self, path: str) -> str:
        """Join ``path`` onto the base URL."""
        return f"{self.base_url}{path.lstrip('/')}"

    def full_html_url(self, slug: str) -> str:
        """Return the public URL of the page rendered for ``slug``."""
        if self.config.build.pretty_urls:
            return self.full_url("" if slug == INDEX_SLUG else slug)
        return self.full_url(f"{slug}.html")

    def edit_url(self, slug: str, ext: Extension) -> str | None:
        """Return the editor link for a section source, when configured."""
        if not self.edit:
            return None
        return f"{self.edit}{self.source_path(slug, ext).resolve().as_posix()}"

    def relative_to_root(self, path: Path) -> str:
        """Return ``path`` relative to the project root when possible."""
        try:
            return path.relative_to(self.root).as_posix()
        except ValueError:
            return path.as_posix()


__all__ = ["BuildEnvironment", "RunMode"]
