# ruff: noqa: I001
"""Persistence integration for billing_analysis.

Functions here write canonical records to the shared database owned by
``libs/db`` and read them back for aggregation. They rely on the SQLAlchemy
ORM model ``db.models.billing.BillingRecordRow`` and sessions provided by
``db.client``.

Scope:
- Write accepted records in fixed-size chunks, each chunk in its own
  transaction; a failing chunk is reported and later chunks still run.
- Load stored records back into :class:`CanonicalRecord` values.
- Delete by stored month/week display key, or everything.
"""

from __future__ import annotations

import math
from collections.abc import Iterable, Mapping, Sequence
from dataclasses import dataclass
from datetime import date, datetime
from decimal import Decimal
from typing import Any

from sqlalchemy import delete, insert, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from db.client import session_scope
from db.models.billing import BillingRecordRow
from .logging_setup import get_logger
from .models import CanonicalRecord

_logger = get_logger("billing_analysis.persistence")

DEFAULT_BATCH_SIZE = 450


@dataclass(frozen=True, slots=True)
class ChunkFailure:
    """One chunk that could not be committed."""

    index: int
    size: int
    error: str


@dataclass(frozen=True, slots=True)
class WriteReport:
    written: int
    failures: tuple[ChunkFailure, ...] = ()

    @property
    def failed(self) -> int:
        return sum(f.size for f in self.failures)


def _json_safe(value: Any) -> Any:
    """Coerce a raw cell into something the JSON column accepts."""

    if isinstance(value, datetime | date):
        return value.isoformat()
    if isinstance(value, Decimal):
        return str(value)
    if isinstance(value, float) and not math.isfinite(value):
        return None
    if isinstance(value, Mapping):
        return {str(k): _json_safe(v) for k, v in value.items()}
    if isinstance(value, list | tuple):
        return [_json_safe(v) for v in value]
    return value


def _to_row_values(record: CanonicalRecord) -> dict[str, Any]:
    return {
        "driver": record.driver,
        "client": record.client,
        "date": record.date,
        "amount": record.amount,
        "month": record.month,
        "month_index": record.month_index,
        "iso_week": record.iso_week,
        "iso_year": record.iso_year,
        "week_key": record.week_key,
        "fingerprint": record.fingerprint,
        "department": record.department,
        "row_number": record.row_number,
        "raw_record": _json_safe(record.raw),
    }


def _from_row(row: BillingRecordRow) -> CanonicalRecord:
    return CanonicalRecord(
        driver=row.driver,
        client=row.client,
        date=row.date,
        amount=Decimal(row.amount),
        month=row.month,
        month_index=row.month_index,
        iso_week=row.iso_week,
        iso_year=row.iso_year,
        week_key=row.week_key,
        fingerprint=row.fingerprint,
        raw=dict(row.raw_record or {}),
        department=row.department,
        row_number=row.row_number,
    )


def _chunks(items: Sequence[CanonicalRecord], size: int) -> Iterable[Sequence[CanonicalRecord]]:
    for start in range(0, len(items), size):
        yield items[start : start + size]


def write_records(
    records: Iterable[CanonicalRecord],
    *,
    database_url: str | None = None,
    batch_size: int = DEFAULT_BATCH_SIZE,
) -> WriteReport:
    """Insert ``records`` in chunks of ``batch_size``.

    Each chunk commits independently: a chunk that raises a SQLAlchemy error
    is rolled back, logged and reported in :attr:`WriteReport.failures`
    while earlier chunks stay committed.
    """

    if batch_size < 1:
        raise ValueError("batch_size must be >= 1")

    items = list(records)
    written = 0
    failures: list[ChunkFailure] = []
    for index, chunk in enumerate(_chunks(items, batch_size)):
        try:
            with session_scope(database_url=database_url) as session:
                session.execute(insert(BillingRecordRow), [_to_row_values(r) for r in chunk])
        except SQLAlchemyError as exc:
            _logger.error("chunk %d (%d records) failed: %s", index, len(chunk), exc)
            failures.append(ChunkFailure(index=index, size=len(chunk), error=str(exc)))
            continue
        written += len(chunk)

    _logger.info(
        "wrote %d/%d records (%d chunk(s) failed)", written, len(items), len(failures)
    )
    return WriteReport(written=written, failures=tuple(failures))


def load_records(session: Session, *, department: str | None = None) -> list[CanonicalRecord]:
    """Return stored records ordered by date then insertion order."""

    stmt = select(BillingRecordRow).order_by(BillingRecordRow.date, BillingRecordRow.id)
    if department is not None:
        stmt = stmt.where(BillingRecordRow.department == department)
    return [_from_row(row) for row in session.scalars(stmt)]


def existing_fingerprints(session: Session, fingerprints: Iterable[str]) -> set[str]:
    """Subset of ``fingerprints`` already present in the store."""

    wanted = list(dict.fromkeys(fingerprints))
    found: set[str] = set()
    # Keep IN lists bounded for SQLite's parameter limit.
    for start in range(0, len(wanted), 500):
        part = wanted[start : start + 500]
        stmt = select(BillingRecordRow.fingerprint).where(BillingRecordRow.fingerprint.in_(part))
        found.update(session.scalars(stmt))
    return found


def delete_records(
    session: Session, *, month: str | None = None, week: str | None = None
) -> int:
    """Delete records whose stored month and/or week key match exactly.

    At least one of ``month`` or ``week`` is required; use :func:`delete_all`
    to clear the table.
    """

    if month is None and week is None:
        raise ValueError("delete_records requires month and/or week")
    stmt = delete(BillingRecordRow)
    if month is not None:
        stmt = stmt.where(BillingRecordRow.month == month)
    if week is not None:
        stmt = stmt.where(BillingRecordRow.week_key == week)
    deleted = session.execute(stmt).rowcount or 0
    _logger.info("deleted %d record(s) (month=%s, week=%s)", deleted, month, week)
    return deleted


def delete_all(session: Session) -> int:
    deleted = session.execute(delete(BillingRecordRow)).rowcount or 0
    _logger.warning("deleted all %d stored record(s)", deleted)
    return deleted


__all__ = [
    "DEFAULT_BATCH_SIZE",
    "ChunkFailure",
    "WriteReport",
    "delete_all",
    "delete_records",
    "existing_fingerprints",
    "load_records",
    "write_records",
]
