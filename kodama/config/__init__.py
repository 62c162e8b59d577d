"""Configuration models and loader for Kodama projects."""

from __future__ import annotations

from .helpers import config_to_toml, find_config
from .loader import config_from_mapping, load_config
from .models import (
    BuildConfig,
    FooterMode,
    KodamaConfig,
    KodamaConfigError,
    ProjectConfig,
    ServeConfig,
    TextConfig,
    TocConfig,
)

__all__ = [
    "BuildConfig",
    "FooterMode",
    "KodamaConfig",
    "KodamaConfigError",
    "ProjectConfig",
    "ServeConfig",
    "TextConfig",
    "TocConfig",
    "config_from_mapping",
    "config_to_toml",
    "find_config",
    "load_config",
]
