"""Resolve canonical fields from operator-controlled spreadsheet headers.

Clients rename columns freely ("Euros", "Importe", "EUROS", ...). Each
canonical field carries an ordered synonym list (see
:mod:`billing_analysis.settings`); resolution is a pure function of the row,
the field name, and that table.
"""

from __future__ import annotations

import math
from collections.abc import Mapping, Sequence
from typing import Any

from .models import RawRow
from .settings import CANONICAL_FIELDS, IngestSettings


def is_missing(value: Any) -> bool:
    """Return True for ``None``, blank text, and float NaN (empty spreadsheet cells)."""

    if value is None:
        return True
    if isinstance(value, str):
        return value.strip() == ""
    if isinstance(value, float):
        return math.isnan(value)
    return False


def resolve_value(row: RawRow, synonyms: Sequence[str]) -> Any | None:
    """Return the first non-missing value for any header in ``synonyms``.

    Order of attempts:
    1. exact header match, in synonym order;
    2. case-insensitive match of the same synonyms against every header
       actually present in the row (surrounding whitespace ignored).
    """

    for name in synonyms:
        if name in row and not is_missing(row[name]):
            return row[name]

    folded: dict[str, list[str]] = {}
    for header in row:
        folded.setdefault(str(header).strip().casefold(), []).append(header)
    for name in synonyms:
        for header in folded.get(name.strip().casefold(), ()):
            value = row[header]
            if not is_missing(value):
                return value
    return None


def resolve_field(row: RawRow, field: str, synonyms: Mapping[str, Sequence[str]]) -> Any | None:
    """Resolve canonical ``field`` in ``row`` using a synonym table.

    Returns ``None`` when no candidate header carries a value; callers apply
    their own defaults.
    """

    return resolve_value(row, synonyms.get(field, ()))


def resolve_fields(row: RawRow, settings: IngestSettings) -> dict[str, Any | None]:
    """Resolve every canonical field at once (``None`` for misses)."""

    return {f: resolve_field(row, f, settings.field_synonyms) for f in CANONICAL_FIELDS}


def as_text(value: Any | None, default: str = "Unknown") -> str:
    """Render a resolved name field as trimmed text, or ``default`` when missing."""

    if is_missing(value):
        return default
    if isinstance(value, float) and value.is_integer():
        value = int(value)
    return " ".join(str(value).split()) or default


__all__ = [
    "as_text",
    "is_missing",
    "resolve_field",
    "resolve_fields",
    "resolve_value",
]
