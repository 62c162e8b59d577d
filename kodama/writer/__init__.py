"""Page rendering: view models, the Jinja page writer, and the stylesheet."""

from __future__ import annotations

from .models import CatalogItem, FooterBlock, HeaderModel, PageModel, SectionBlock
from .page_writer import PageWriter
from .styles import main_stylesheet, write_stylesheet

__all__ = [
    "CatalogItem",
    "FooterBlock",
    "HeaderModel",
    "PageModel",
    "PageWriter",
    "SectionBlock",
    "main_stylesheet",
    "write_stylesheet",
]
