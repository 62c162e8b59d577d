"""Stage-1 Markdown parsing built from Python-Markdown extensions."""

from __future__ import annotations

from .conversion import Conversion
from .extension import KodamaExtension
from .links import is_external_link, parse_embed_text
from .metadata import parse_metadata_line
from .parser import MarkdownParser, normalize_fenced_blocks
from .typst_actions import relativize, url_action

__all__ = [
    "Conversion",
    "KodamaExtension",
    "MarkdownParser",
    "is_external_link",
    "normalize_fenced_blocks",
    "parse_embed_text",
    "parse_metadata_line",
    "relativize",
    "url_action",
]
