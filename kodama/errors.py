"""Error taxonomy shared by the kodama compiler stages."""

from __future__ import annotations

from pathlib import Path


class KodamaError(Exception):
    """Base class for failures raised while compiling a forest."""


class KodamaIOError(KodamaError):
    """Raised when a file or the Typst subprocess fails for one section."""

    def __init__(self, message: str, *, path: Path | str | None = None) -> None:
        super().__init__(message)
        self.path = path


class KodamaSyntaxError(KodamaError):
    """Raised for malformed source input attributed to a slug."""

    def __init__(self, slug: str, description: str) -> None:
        super().__init__(f"{slug}: {description}")
        self.slug = slug
        self.description = description


class EntryCacheError(KodamaError):
    """Raised when a cached entry no longer matches the section schema.

    The build cannot continue because the cache and the sources disagree;
    removing the ``.cache`` directory resolves it.
    """

    def __init__(self, path: Path, reason: str) -> None:
        msg = (
            f"Corrupt entry cache '{path}': {reason}. "
            "Remove the '.cache' directory and rebuild."
        )
        super().__init__(msg)
        self.path = path


__all__ = ["EntryCacheError", "KodamaError", "KodamaIOError", "KodamaSyntaxError"]
