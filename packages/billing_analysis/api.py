"""Public API and orchestration for the ``billing_analysis`` package.

The pure pipeline (validation, normalization, aggregation) lives in the
sibling modules; functions here wire it to the reader adapters and to the
shared database. DB imports stay local to the functions that need them so
that purely in-memory consumers never touch SQLAlchemy configuration.
"""

from __future__ import annotations

from collections.abc import Callable, Iterable, Sequence
from dataclasses import dataclass
from datetime import date
from enum import Enum
from os import PathLike
from typing import TYPE_CHECKING

from .aggregation import filter_records, summarize
from .logging_setup import get_logger
from .models import (
    CanonicalRecord,
    DatePolicy,
    DedupPolicy,
    IngestionResult,
    RawRow,
    Summary,
    ValidationIssue,
)
from .normalizers import normalize_rows
from .settings import IngestSettings, default_settings

if TYPE_CHECKING:
    from .persistence import ChunkFailure

_logger = get_logger("billing_analysis.api")


class IngestStatus(str, Enum):
    SUCCESS = "success"
    PARTIAL = "partial"
    FAILED = "failed"
    EMPTY = "empty"


@dataclass(frozen=True, slots=True)
class IngestReport:
    """Outcome of one upload: validation plus (optionally) the store write."""

    result: IngestionResult
    persisted: bool = False
    written: int = 0
    write_failures: tuple[ChunkFailure, ...] = ()

    @property
    def accepted(self) -> tuple[CanonicalRecord, ...]:
        return self.result.accepted

    @property
    def errors(self) -> tuple[ValidationIssue, ...]:
        return self.result.errors

    @property
    def status(self) -> IngestStatus:
        """``success`` when everything landed, ``partial`` when some rows or
        chunks did not, ``failed`` when nothing did, ``empty`` for no input."""

        accepted = len(self.result.accepted)
        if accepted == 0 and not self.result.errors:
            return IngestStatus.EMPTY if self.result.duplicates == 0 else IngestStatus.SUCCESS
        landed = self.written if self.persisted else accepted
        if landed == 0:
            return IngestStatus.FAILED
        if self.result.errors or self.write_failures:
            return IngestStatus.PARTIAL
        return IngestStatus.SUCCESS


def _store_fingerprints(
    rows: Sequence[RawRow],
    *,
    settings: IngestSettings,
    date_policy: DatePolicy,
    clock: Callable[[], date],
    database_url: str | None,
) -> set[str]:
    from db.client import session_scope

    from .persistence import existing_fingerprints

    preview = normalize_rows(rows, settings=settings, date_policy=date_policy, clock=clock)
    with session_scope(database_url=database_url) as session:
        return existing_fingerprints(session, (r.fingerprint for r in preview.accepted))


def ingest_rows(
    rows: Iterable[RawRow],
    *,
    settings: IngestSettings | None = None,
    date_policy: DatePolicy = DatePolicy.REJECT,
    dedup_policy: DedupPolicy = DedupPolicy.ALLOW,
    department: str | None = None,
    persist: bool = False,
    database_url: str | None = None,
    clock: Callable[[], date] = date.today,
) -> IngestReport:
    """Validate and normalize ``rows``; with ``persist=True`` also write them.

    When persisting under ``REJECT``/``MERGE`` dedup, fingerprints already in
    the store count as seen before the batch starts.
    """

    settings = settings or default_settings()
    batch = list(rows)

    known: set[str] = set()
    if persist and dedup_policy is not DedupPolicy.ALLOW:
        known = _store_fingerprints(
            batch,
            settings=settings,
            date_policy=date_policy,
            clock=clock,
            database_url=database_url,
        )

    result = normalize_rows(
        batch,
        settings=settings,
        date_policy=date_policy,
        dedup_policy=dedup_policy,
        known_fingerprints=known,
        department=department,
        clock=clock,
    )
    if not persist:
        return IngestReport(result=result)

    from .persistence import write_records

    write = write_records(
        result.accepted, database_url=database_url, batch_size=settings.write_batch_size
    )
    report = IngestReport(
        result=result, persisted=True, written=write.written, write_failures=write.failures
    )
    _logger.info(
        "ingest %s: written=%d validation_errors=%d failed_chunks=%d",
        report.status.value,
        report.written,
        len(result.errors),
        len(write.failures),
    )
    return report


def ingest_file(
    path: str | PathLike[str],
    *,
    sheet: str | None = None,
    **kwargs,
) -> IngestReport:
    """Read an ``.xlsx``/``.csv`` export and pass its rows to :func:`ingest_rows`."""

    from .ingest.utils import load_rows

    return ingest_rows(load_rows(path, sheet=sheet), **kwargs)


def load_stored_records(
    *, database_url: str | None = None, department: str | None = None
) -> list[CanonicalRecord]:
    from db.client import session_scope

    from .persistence import load_records

    with session_scope(database_url=database_url) as session:
        return load_records(session, department=department)


def summarize_records(
    records: Iterable[CanonicalRecord],
    *,
    month: str | None = None,
    week: str | None = None,
    department: str | None = None,
    settings: IngestSettings | None = None,
) -> Summary:
    """Summary of the records matching the given month/week/department keys."""

    return summarize(
        filter_records(records, month=month, week=week, department=department), settings
    )


def delete_period(
    *, month: str | None = None, week: str | None = None, database_url: str | None = None
) -> int:
    """Delete stored records for a month and/or week key; returns the count."""

    from db.client import session_scope

    from .persistence import delete_records

    with session_scope(database_url=database_url) as session:
        return delete_records(session, month=month, week=week)


def reset_store(*, database_url: str | None = None) -> int:
    from db.client import session_scope

    from .persistence import delete_all

    with session_scope(database_url=database_url) as session:
        return delete_all(session)


__all__ = [
    "IngestReport",
    "IngestStatus",
    "delete_period",
    "ingest_file",
    "ingest_rows",
    "load_stored_records",
    "reset_store",
    "summarize_records",
]
