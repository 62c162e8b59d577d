"""Front-matter block collection for kodama Markdown sources."""

from __future__ import annotations

import typing as typ

from markdown.preprocessors import Preprocessor

from kodama.errors import KodamaSyntaxError

if typ.TYPE_CHECKING:
    from markdown import Markdown

    from .conversion import Conversion

DELIMITER = "---"


def parse_metadata_line(slug: str, line: str) -> tuple[str, str]:
    """Split ``name: value`` on the first colon and trim both halves.

    Raises
    ------
    KodamaSyntaxError
        If ``line`` contains no colon.
    """
    key, sep, value = line.partition(":")
    if not sep:
        msg = f"expected metadata format `name: value`, found `{line.strip()}`"
        raise KodamaSyntaxError(slug, msg)
    return key.strip(), value.strip()


class MetadataPreprocessor(Preprocessor):
    """Remove a leading ``---`` block and record its ``key: value`` lines."""

    def __init__(self, md: Markdown, conversion: Conversion) -> None:
        super().__init__(md)
        self.conversion = conversion

    def run(self, lines: list[str]) -> list[str]:
        if not lines or lines[0].strip() != DELIMITER:
            return lines
        for end, line in enumerate(lines[1:], start=1):
            if line.strip() == DELIMITER:
                break
        else:
            return lines
        for line in lines[1:end]:
            if not line.strip():
                continue
            key, value = parse_metadata_line(self.conversion.slug, line)
            self.conversion.metadata[key] = value
        return lines[end + 1 :]


__all__ = ["MetadataPreprocessor", "parse_metadata_line"]
