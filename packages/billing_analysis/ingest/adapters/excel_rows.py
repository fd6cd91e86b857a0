"""Adapter for operator spreadsheet exports (``.xlsx``).

Contract
--------
- The first row of the sheet holds the headers; columns with an empty header
  are ignored.
- Each following sheet row becomes one ``RawRow`` keyed by header. Empty cells
  are omitted, and a fully blank row is kept as ``{}`` so that list position
  ``i`` always corresponds to sheet row ``i + 2``.
- Cell values are passed through as openpyxl yields them (``data_only=True``,
  so formulas come back as their cached values). Date-formatted cells arrive
  as ``datetime`` and are handled by the date normalizer directly.
"""

from __future__ import annotations

from collections.abc import Iterator
from os import PathLike
from typing import Any

from openpyxl import load_workbook


def _header_names(cells: tuple[Any, ...]) -> list[str | None]:
    names: list[str | None] = []
    for cell in cells:
        text = str(cell).strip() if cell is not None else ""
        names.append(text or None)
    return names


def iter_excel_rows(
    path: str | PathLike[str], *, sheet: str | None = None
) -> Iterator[dict[str, Any]]:
    """Yield header-keyed rows from ``sheet`` (default: the first sheet)."""

    wb = load_workbook(path, read_only=True, data_only=True)
    try:
        if sheet is not None:
            if sheet not in wb.sheetnames:
                raise ValueError(
                    f"sheet {sheet!r} not found; available: {', '.join(wb.sheetnames)}"
                )
            ws = wb[sheet]
        else:
            ws = wb.worksheets[0]

        rows = ws.iter_rows(values_only=True)
        first = next(rows, None)
        if first is None:
            return
        headers = _header_names(first)
        for values in rows:
            yield {
                h: v
                for h, v in zip(headers, values, strict=False)
                if h is not None and v is not None
            }
    finally:
        wb.close()


__all__ = ["iter_excel_rows"]
