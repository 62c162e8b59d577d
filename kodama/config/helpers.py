"""Utility helpers shared by the Kodama configuration loader."""

from __future__ import annotations

import dataclasses as dc
import typing as typ
from pathlib import Path

import tomlkit

from .models import (
    FOOTER_MODES,
    TOC_PLACEMENTS,
    KodamaConfig,
    KodamaConfigError,
)


def _toml_key(field_name: str) -> str:
    """Return the kebab-case key used in ``Kodama.toml`` for a field name."""
    return field_name.replace("_", "-")


def _coerce_value(table: str, key: str, value: object, default: object) -> object:
    """Validate ``value`` against the type of the field default."""
    where = f"[{table}] {key}"
    match default:
        case bool():
            if not isinstance(value, bool):
                msg = f"{where} must be a boolean, found {value!r}."
                raise KodamaConfigError(msg)
        case list():
            if not isinstance(value, list) or not all(
                isinstance(item, str) for item in value
            ):
                msg = f"{where} must be a list of strings, found {value!r}."
                raise KodamaConfigError(msg)
            return list(value)
        case str() | None:
            if not isinstance(value, str):
                msg = f"{where} must be a string, found {value!r}."
                raise KodamaConfigError(msg)
        case _:  # pragma: no cover - every model field has one of the above types
            msg = f"{where} has an unsupported type."
            raise KodamaConfigError(msg)
    return value


def _build_table(table: str, model: type[typ.Any], raw: object) -> typ.Any:
    """Build one configuration table from its raw TOML mapping."""
    if raw is None:
        return model()
    if not isinstance(raw, dict):
        msg = f"[{table}] must be a table."
        raise KodamaConfigError(msg)
    defaults = model()
    known = {_toml_key(field.name): field.name for field in dc.fields(defaults)}
    unknown = sorted(set(raw) - set(known))
    if unknown:
        msg = f"Unknown key(s) in [{table}]: {', '.join(unknown)}."
        raise KodamaConfigError(msg)
    values: dict[str, object] = {}
    for key, value in raw.items():
        name = known[key]
        values[name] = _coerce_value(table, key, value, getattr(defaults, name))
    return model(**values)


def _validate_choices(config: KodamaConfig) -> None:
    """Reject enumerated settings outside their allowed values."""
    if config.toc.placement not in TOC_PLACEMENTS:
        msg = (
            f"[toc] placement must be one of {', '.join(TOC_PLACEMENTS)}, "
            f"found {config.toc.placement!r}."
        )
        raise KodamaConfigError(msg)
    if config.build.footer_mode not in FOOTER_MODES:
        msg = (
            f"[build] footer-mode must be one of {', '.join(FOOTER_MODES)}, "
            f"found {config.build.footer_mode!r}."
        )
        raise KodamaConfigError(msg)


def find_config(path: Path) -> Path:
    """Locate ``path``, falling back to the same file name one level up.

    Raises
    ------
    KodamaConfigError
        If neither location holds a configuration file.
    """
    if path.is_file():
        return path
    fallback = Path.cwd().parent / path.name
    if not path.is_absolute() and fallback.is_file():
        return fallback
    msg = f"Configuration file '{path}' not found."
    raise KodamaConfigError(msg)


def config_to_toml(config: KodamaConfig) -> str:
    """Serialise ``config`` as a ``Kodama.toml`` document.

    Unset optional values are omitted because TOML has no null.
    """
    document = tomlkit.document()
    for table_field in dc.fields(config):
        table = tomlkit.table()
        section = getattr(config, table_field.name)
        for field in dc.fields(section):
            value = getattr(section, field.name)
            if value is None:
                continue
            table.add(_toml_key(field.name), value)
        document.add(table_field.name, table)
    return tomlkit.dumps(document)


def _table_names() -> typ.Iterator[tuple[str, type]]:
    defaults = KodamaConfig()
    for table_field in dc.fields(defaults):
        yield table_field.name, type(getattr(defaults, table_field.name))


__all__ = ["config_to_toml", "find_config"]
