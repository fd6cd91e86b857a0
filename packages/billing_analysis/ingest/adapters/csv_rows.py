"""Adapter for CSV exports of the billing spreadsheet.

The delimiter is sniffed from the first few KB (``,``, ``;`` and tab are
accepted, Spanish-locale exports usually use ``;``). Values stay text; the
normalizer handles decimal commas and textual dates. Cells that are empty
strings are kept so the validator can treat them as missing.
"""

from __future__ import annotations

import csv
from collections.abc import Iterator
from typing import TextIO

_DELIMITERS = ",;\t"


def iter_csv_rows(f: TextIO) -> Iterator[dict[str, str]]:
    """Yield header-keyed rows from an open text stream."""

    head = f.read(8192)
    f.seek(0)
    try:
        dialect: type[csv.Dialect] | csv.Dialect = csv.Sniffer().sniff(head, delimiters=_DELIMITERS)
    except csv.Error:
        dialect = csv.excel

    reader = csv.DictReader(f, dialect=dialect)
    if not reader.fieldnames:
        raise csv.Error("CSV appears to have no header row")
    for row in reader:
        # Extra cells beyond the header land under the ``None`` key; drop them.
        yield {k.strip(): v for k, v in row.items() if k is not None}


__all__ = ["iter_csv_rows"]
