"""Row-level validation for uploaded billing rows.

Rules run in order and stop at the first failure:

1. entirely empty row -> skipped silently (``None``), not an error;
2-5. a required canonical field (date, amount, driver, client; the list is
     configurable) resolves to nothing -> ``ValidationIssue``;
6. the driver cell looks like a company name -> likely driver/client column
   swap, reported instead of accepted.

Accepted rows come back sanitized: blank cells become explicit ``None`` and
every canonical field is present in :attr:`AcceptedRow.fields`.
"""

from __future__ import annotations

from collections.abc import Sequence
from typing import Any

from .fields import is_missing, resolve_fields
from .models import AcceptedRow, RawRow, ValidationIssue
from .settings import IngestSettings

# Order in which required fields are checked (date first, as the operator
# fixes dates most often).
_REQUIRED_ORDER: tuple[str, ...] = ("date", "amount", "driver", "client")


def is_empty_row(row: RawRow) -> bool:
    return all(is_missing(v) for v in row.values())


def sanitize_row(row: RawRow) -> dict[str, Any]:
    """Copy ``row`` with blank cells normalized to ``None`` (keys preserved)."""

    return {str(k): (None if is_missing(v) else v) for k, v in row.items()}


def find_company_signal(name: Any, signals: Sequence[str]) -> str | None:
    """Return the first company signal contained in ``name`` (case-folded), if any."""

    if is_missing(name):
        return None
    folded = str(name).casefold()
    for signal in signals:
        if signal.casefold() in folded:
            return signal
    return None


def validate_row(
    row: RawRow, row_number: int, settings: IngestSettings
) -> AcceptedRow | ValidationIssue | None:
    """Validate one raw row at spreadsheet position ``row_number``."""

    if is_empty_row(row):
        return None

    fields = resolve_fields(row, settings)

    for field in _REQUIRED_ORDER:
        if field in settings.required_fields and fields[field] is None:
            header = settings.primary_header(field)
            return ValidationIssue(
                row_number=row_number,
                reason=f"missing {field} (column '{header}')",
                field=field,
            )

    signal = find_company_signal(fields["driver"], settings.company_signals)
    if signal is not None:
        return ValidationIssue(
            row_number=row_number,
            reason=(
                f"possible driver/client column swap: driver '{fields['driver']}' "
                f"looks like a company ({signal.strip()})"
            ),
            field="driver",
        )

    return AcceptedRow(row_number=row_number, row=sanitize_row(row), fields=fields)


__all__ = [
    "find_company_signal",
    "is_empty_row",
    "sanitize_row",
    "validate_row",
]
