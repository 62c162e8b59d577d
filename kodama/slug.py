"""Slug and path helpers.

A slug is the canonical identity of a section: the source path relative to
the trees directory, forward-slash separated, without ``./`` segments and
without the source suffix.

Examples
--------
>>> from kodama.slug import to_slug, to_hash_id
>>> to_slug("./notes/../notes/topology.md")
'notes/topology'
>>> to_hash_id("notes/topology")
'notes-topology'
"""

from __future__ import annotations

import enum
import posixpath
from pathlib import PurePath


class Extension(enum.Enum):
    """Source formats a section can be written in."""

    MARKDOWN = "md"
    TYPST = "typst"

    @property
    def suffix(self) -> str:
        """Return the file suffix, including the dot."""
        return f".{self.value}"

    @classmethod
    def from_suffix(cls, suffix: str) -> Extension | None:
        """Return the extension for ``suffix`` or ``None`` for other files."""
        for member in cls:
            if member.suffix == suffix:
                return member
        return None


SOURCE_SUFFIXES = tuple(member.suffix for member in Extension)


def pretty_path(path: str | PurePath) -> str:
    """Collapse ``.``/``..`` segments and separators into a forward-slash path.

    Leading roots are dropped and ``..`` pops the previous segment, so the
    result is always relative. Backslashes are treated as separators.
    """
    text = str(path).replace("\\", "/")
    segments: list[str] = []
    for part in text.split("/"):
        match part:
            case "" | ".":
                continue
            case "..":
                if segments:
                    segments.pop()
            case _:
                segments.append(part)
    return "/".join(segments)


def to_slug(path: str | PurePath) -> str:
    """Return the canonical slug for a source path or link target.

    Only known source suffixes are removed, which keeps the function
    idempotent for names that merely contain dots.
    """
    text = pretty_path(path)
    for suffix in SOURCE_SUFFIXES:
        if text.endswith(suffix):
            text = text[: -len(suffix)]
            break
    return text


def to_hash_id(slug: str) -> str:
    """Return the HTML id used for the section rendered from ``slug``."""
    return slug.replace("/", "-")


def to_slug_text(slug: str, *, short_slug: bool = False) -> str:
    """Return the slug as displayed next to section titles.

    Trailing ``/index`` segments are hidden, and ``short_slug`` keeps only the
    final segment.
    """
    text = slug
    if text.endswith("/index"):
        text = text[: -len("/index")]
    if short_slug:
        text = posixpath.basename(text) or text
    return text


def adjust_suffix(path: str, expect: str, target: str) -> str:
    """Swap a trailing ``expect`` suffix for ``target``, appending otherwise."""
    prefix = path[: -len(expect)] if path.endswith(expect) else path
    return f"{prefix}{target}"


__all__ = [
    "SOURCE_SUFFIXES",
    "Extension",
    "adjust_suffix",
    "pretty_path",
    "to_hash_id",
    "to_slug",
    "to_slug_text",
]
