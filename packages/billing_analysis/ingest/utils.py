"""Ingest utilities shared by CLI commands and workflows.

Exposes a single helper that loads raw rows from an operator export,
choosing the adapter from the file suffix.
"""

from __future__ import annotations

from os import PathLike
from pathlib import Path

from ..models import RawRow

_EXCEL_SUFFIXES = {".xlsx", ".xlsm"}


def load_rows(path: str | PathLike[str], *, sheet: str | None = None) -> list[RawRow]:
    """Read ``path`` (``.xlsx``/``.xlsm`` or ``.csv``) into a list of raw rows.

    ``sheet`` selects a worksheet by name and only applies to workbooks.
    Raises ``ValueError`` for other file types.
    """

    from .adapters.csv_rows import iter_csv_rows
    from .adapters.excel_rows import iter_excel_rows

    p = Path(path)
    suffix = p.suffix.lower()
    if suffix in _EXCEL_SUFFIXES:
        return list(iter_excel_rows(p, sheet=sheet))
    if suffix == ".csv":
        with p.open(encoding="utf-8-sig", newline="") as f:
            return list(iter_csv_rows(f))
    raise ValueError(f"unsupported file type {p.suffix!r}; expected .xlsx or .csv")


__all__ = ["load_rows"]
