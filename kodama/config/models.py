"""Typed dataclasses describing a Kodama project configuration."""

from __future__ import annotations

import dataclasses as dc
import typing as typ

from kodama._constants import OUTPUT_PLACEHOLDER

FooterMode = typ.Literal["link", "embed"]
TocPlacement = typ.Literal["left", "right"]
FOOTER_MODES: tuple[str, ...] = ("link", "embed")
TOC_PLACEMENTS: tuple[str, ...] = ("left", "right")


class KodamaConfigError(ValueError):
    """Raised when ``Kodama.toml`` is missing, malformed, or inconsistent."""


@dc.dataclass(slots=True)
class ProjectConfig:
    """The ``[kodama]`` table: where sources and assets live."""

    trees: str = "trees"
    assets: str = "assets"
    base_url: str = "/"
    themes: list[str] = dc.field(default_factory=list)


@dc.dataclass(slots=True)
class TocConfig:
    """The ``[toc]`` table: table-of-contents layout."""

    placement: TocPlacement = "right"
    sticky: bool = True
    mobile_sticky: bool = True
    max_width: str = "45ex"


@dc.dataclass(slots=True)
class TextConfig:
    """The ``[text]`` table: user-facing strings."""

    edit: str = "[edit]"
    toc: str = "Table of Contents"
    references: str = "References"
    backlinks: str = "Backlinks"


@dc.dataclass(slots=True)
class BuildConfig:
    """The ``[build]`` table: one-shot production build settings."""

    typst_root: str = "trees"
    short_slug: bool = False
    pretty_urls: bool = False
    footer_mode: FooterMode = "link"
    inline_css: bool = False
    asref: bool = False
    output: str = "./publish"
    edit: str | None = None


def _default_serve_command() -> list[str]:
    return ["miniserve", OUTPUT_PLACEHOLDER, "--index", "index.html", "--pretty-urls"]


@dc.dataclass(slots=True)
class ServeConfig:
    """The ``[serve]`` table: watch-mode output and server command."""

    edit: str | None = "vscode://file/"
    output: str = "./.cache/publish"
    command: list[str] = dc.field(default_factory=_default_serve_command)


@dc.dataclass(slots=True)
class KodamaConfig:
    """Complete configuration loaded from ``Kodama.toml``."""

    kodama: ProjectConfig = dc.field(default_factory=ProjectConfig)
    toc: TocConfig = dc.field(default_factory=TocConfig)
    text: TextConfig = dc.field(default_factory=TextConfig)
    build: BuildConfig = dc.field(default_factory=BuildConfig)
    serve: ServeConfig = dc.field(default_factory=ServeConfig)


__all__ = [
    "FOOTER_MODES",
    "TOC_PLACEMENTS",
    "BuildConfig",
    "FooterMode",
    "KodamaConfig",
    "KodamaConfigError",
    "ProjectConfig",
    "ServeConfig",
    "TextConfig",
    "TocConfig",
    "TocPlacement",
]
