"""Raw spreadsheet rows -> canonical billing records.

Pipeline per uploaded batch:

1. :func:`~billing_analysis.validation.validate_row` splits rows into accepted
   rows and validation issues (empty rows are skipped);
2. each accepted row is resolved into canonical fields, its date normalized
   under an explicit :class:`~billing_analysis.models.DatePolicy`, and a
   fingerprint derived;
3. fingerprints already seen (earlier in the batch or supplied by the caller)
   are handled per :class:`~billing_analysis.models.DedupPolicy`.

The batch never aborts on a bad row: partial success is the default posture.
"""

from __future__ import annotations

import re
from collections.abc import Callable, Iterable, Mapping
from datetime import date
from decimal import ROUND_HALF_UP, Decimal, DecimalException, InvalidOperation
from typing import Any

from .dates import month_index, month_label, normalize_date
from .fields import as_text, resolve_fields
from .fingerprint import compute_fingerprint
from .logging_setup import get_logger
from .models import (
    AcceptedRow,
    CanonicalRecord,
    DatePolicy,
    DedupPolicy,
    IngestionResult,
    RawRow,
    ValidationIssue,
)
from .settings import IngestSettings, default_settings
from .validation import validate_row
from .weeks import WEEK_LABEL_TEMPLATE, iso_week

_logger = get_logger("billing_analysis.normalizers")

_CURRENCY_RX = re.compile(r"[€$£\s]|EUR", re.IGNORECASE)

_CENT = Decimal("0.01")
# Largest magnitude the store's Numeric(18, 2) column holds is below 10**16.
_MAX_ADJUSTED_EXPONENT = 15

type Clock = Callable[[], date]


# ---------------------------------------------------------------------------
# Amount normalization
# ---------------------------------------------------------------------------


def _to_cents(d: Decimal) -> Decimal:
    if not d.is_finite() or (d and d.adjusted() > _MAX_ADJUSTED_EXPONENT):
        return Decimal("0")
    try:
        return d.quantize(_CENT, rounding=ROUND_HALF_UP)
    except DecimalException:
        return Decimal("0")


def parse_amount(raw: Any) -> Decimal:
    """Parse a raw amount cell into ``Decimal`` cents; unparsable input yields ``0``.

    Accepts numbers, currency-decorated text (``"150,50 €"``), thousands
    separators in either convention (``"1.234,56"``, ``"1,234.56"``), a
    leading sign and accounting parentheses for negatives. Results are
    rounded half up to two decimals, the precision the store keeps, and
    magnitudes of ``10**16`` or more count as unparsable.
    """

    if raw is None or isinstance(raw, bool):
        return Decimal("0")
    if isinstance(raw, Decimal):
        return _to_cents(raw)
    if isinstance(raw, int):
        return _to_cents(Decimal(raw))
    if isinstance(raw, float):
        return _to_cents(Decimal(str(raw)))

    s = _CURRENCY_RX.sub("", str(raw))
    if not s:
        return Decimal("0")

    negative = False
    if s.startswith("(") and s.endswith(")") and len(s) >= 2:
        negative = True
        s = s[1:-1]
    if s.startswith("+"):
        s = s[1:]
    elif s.startswith("-"):
        negative = not negative
        s = s[1:]

    # The right-most separator is the decimal mark when both appear; a lone
    # comma is a decimal comma (Spanish exports).
    if "," in s and "." in s:
        if s.rfind(",") > s.rfind("."):
            s = s.replace(".", "").replace(",", ".")
        else:
            s = s.replace(",", "")
    elif "," in s:
        s = s.replace(",", ".") if s.count(",") == 1 else s.replace(",", "")

    try:
        d = Decimal(s)
    except InvalidOperation:
        return Decimal("0")
    d = _to_cents(d)
    return -d if negative else d


# ---------------------------------------------------------------------------
# Record construction
# ---------------------------------------------------------------------------


def build_record(
    *,
    fields: Mapping[str, Any],
    record_date: date,
    raw: RawRow,
    settings: IngestSettings,
    department: str | None = None,
    row_number: int | None = None,
) -> CanonicalRecord:
    """Assemble a :class:`CanonicalRecord` from resolved fields and a normalized date."""

    driver = as_text(fields.get("driver"))
    client = as_text(fields.get("client"))
    amount = parse_amount(fields.get("amount"))
    wk = iso_week(record_date)
    return CanonicalRecord(
        driver=driver,
        client=client,
        date=record_date,
        amount=amount,
        month=month_label(record_date, settings.month_abbreviations),
        month_index=month_index(record_date),
        iso_week=wk.week,
        iso_year=wk.year,
        week_key=WEEK_LABEL_TEMPLATE.format(week=wk.week, year=wk.year),
        fingerprint=compute_fingerprint(
            date=record_date, driver=driver, client=client, amount=amount
        ),
        raw=dict(raw),
        department=department,
        row_number=row_number,
    )


def _resolve_date(
    value: Any, *, policy: DatePolicy, clock: Clock, row_number: int
) -> date | ValidationIssue:
    parsed = normalize_date(value)
    if parsed.date is not None:
        return parsed.date
    if policy is DatePolicy.FALLBACK_TO_NOW:
        today = clock()
        _logger.warning(
            "row %d: unrecognized date %r; using %s (policy=%s)",
            row_number,
            value,
            today.isoformat(),
            policy.value,
        )
        return today
    return ValidationIssue(
        row_number=row_number,
        reason=f"invalid date {value!r}",
        field="date",
    )


def normalize_accepted(
    accepted: AcceptedRow,
    *,
    settings: IngestSettings,
    date_policy: DatePolicy = DatePolicy.REJECT,
    clock: Clock = date.today,
    department: str | None = None,
) -> CanonicalRecord | ValidationIssue:
    """Turn one validated row into a record, or an issue when its date is rejected."""

    resolved = _resolve_date(
        accepted.fields.get("date"),
        policy=date_policy,
        clock=clock,
        row_number=accepted.row_number,
    )
    if isinstance(resolved, ValidationIssue):
        return resolved
    return build_record(
        fields=accepted.fields,
        record_date=resolved,
        raw=accepted.row,
        settings=settings,
        department=department,
        row_number=accepted.row_number,
    )


def normalize_row(
    row: RawRow,
    *,
    date_policy: DatePolicy,
    settings: IngestSettings | None = None,
    clock: Clock = date.today,
    department: str | None = None,
    row_number: int | None = None,
) -> CanonicalRecord | None:
    """Normalize a row without validation (stored/legacy rows).

    Missing names default to ``"Unknown"`` and missing amounts to ``0``.
    ``date_policy`` is required. Returns ``None``
    only when the date is unusable under ``REJECT``.
    """

    settings = settings or default_settings()
    fields = resolve_fields(row, settings)
    resolved = _resolve_date(
        fields.get("date"), policy=date_policy, clock=clock, row_number=row_number or 0
    )
    if isinstance(resolved, ValidationIssue):
        return None
    return build_record(
        fields=fields,
        record_date=resolved,
        raw=row,
        settings=settings,
        department=department,
        row_number=row_number,
    )


# ---------------------------------------------------------------------------
# Batch pipeline
# ---------------------------------------------------------------------------


def normalize_rows(
    rows: Iterable[RawRow],
    *,
    settings: IngestSettings | None = None,
    date_policy: DatePolicy = DatePolicy.REJECT,
    dedup_policy: DedupPolicy = DedupPolicy.ALLOW,
    known_fingerprints: Iterable[str] = (),
    department: str | None = None,
    clock: Clock = date.today,
) -> IngestionResult:
    """Validate and normalize one uploaded batch.

    Row numbers follow the spreadsheet: the first data row is
    ``settings.first_data_row`` (2 by default, row 1 holding the headers).
    ``known_fingerprints`` are treated as seen before the batch starts (e.g.
    fingerprints already in the store) for ``REJECT``/``MERGE`` dedup.
    """

    settings = settings or default_settings()
    accepted: list[CanonicalRecord] = []
    errors: list[ValidationIssue] = []
    merged = 0

    # fingerprint -> row number of first occurrence (None when pre-existing)
    seen: dict[str, int | None] = dict.fromkeys(known_fingerprints)
    skipped = 0

    for index, row in enumerate(rows):
        row_number = index + settings.first_data_row
        outcome = validate_row(row, row_number, settings)
        if outcome is None:
            skipped += 1
            continue
        if isinstance(outcome, ValidationIssue):
            errors.append(outcome)
            continue

        record = normalize_accepted(
            outcome,
            settings=settings,
            date_policy=date_policy,
            clock=clock,
            department=department,
        )
        if isinstance(record, ValidationIssue):
            errors.append(record)
            continue

        if dedup_policy is not DedupPolicy.ALLOW and record.fingerprint in seen:
            first = seen[record.fingerprint]
            if dedup_policy is DedupPolicy.REJECT:
                where = f"row {first}" if first is not None else "an existing record"
                errors.append(
                    ValidationIssue(
                        row_number=row_number,
                        reason=f"duplicate of {where} ({record.fingerprint})",
                        field=None,
                    )
                )
            else:
                merged += 1
            continue
        seen.setdefault(record.fingerprint, row_number)
        accepted.append(record)

    _logger.info(
        "normalized batch: accepted=%d errors=%d merged=%d empty=%d (date_policy=%s, dedup=%s)",
        len(accepted),
        len(errors),
        merged,
        skipped,
        date_policy.value,
        dedup_policy.value,
    )
    return IngestionResult(accepted=tuple(accepted), errors=tuple(errors), duplicates=merged)


__all__ = [
    "build_record",
    "normalize_accepted",
    "normalize_row",
    "normalize_rows",
    "parse_amount",
]
