"""Load ``Kodama.toml`` into typed dataclasses."""

from __future__ import annotations

import tomllib
import typing as typ

from .helpers import _build_table, _table_names, _validate_choices
from .models import KodamaConfig, KodamaConfigError

if typ.TYPE_CHECKING:
    from pathlib import Path


def load_config(path: Path) -> KodamaConfig:
    """Load the project configuration from ``path``.

    Parameters
    ----------
    path : Path
        Filesystem path to the TOML configuration (usually ``Kodama.toml``).

    Returns
    -------
    KodamaConfig
        Parsed configuration with defaults applied for every missing table
        or key.

    Raises
    ------
    KodamaConfigError
        If the file is missing, is not valid TOML, contains unknown tables or
        keys, or holds values of the wrong type.

    Examples
    --------
    >>> from pathlib import Path
    >>> from kodama.config import load_config
    >>> load_config(Path("Kodama.toml")).kodama.trees  # doctest: +SKIP
    'trees'
    """
    if not path.is_file():
        msg = f"Configuration file '{path}' not found."
        raise KodamaConfigError(msg)
    try:
        raw = tomllib.loads(path.read_text(encoding="utf-8"))
    except tomllib.TOMLDecodeError as exc:
        msg = f"Configuration file '{path}' is not valid TOML: {exc}"
        raise KodamaConfigError(msg) from exc
    return config_from_mapping(raw)


def config_from_mapping(raw: typ.Mapping[str, typ.Any]) -> KodamaConfig:
    """Build a :class:`KodamaConfig` from an already parsed TOML mapping."""
    tables = dict(_table_names())
    unknown = sorted(set(raw) - set(tables))
    if unknown:
        msg = f"Unknown table(s) in configuration: {', '.join(unknown)}."
        raise KodamaConfigError(msg)
    config = KodamaConfig(
        **{
            name: _build_table(name, model, raw.get(name))
            for name, model in tables.items()
        }
    )
    _validate_choices(config)
    return config


__all__ = ["config_from_mapping", "load_config"]
