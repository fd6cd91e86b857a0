"""Data models and type aliases for ``billing_analysis``.

Records and summaries are frozen dataclasses: canonical records are derived
once from raw rows and never mutated, and summaries are immutable snapshots
recomputed whenever the working record set changes.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal
from enum import Enum
from types import MappingProxyType
from typing import Any

# ---------------------------------------------------------------------------
# Raw input
# ---------------------------------------------------------------------------

# Header (as exported by the operator's spreadsheet) -> raw cell value. Values
# are untyped: numbers, text, empty, or native dates depending on the reader.
type RawRow = Mapping[str, Any]

type RawRows = Iterable[RawRow]


# ---------------------------------------------------------------------------
# Policies
# ---------------------------------------------------------------------------


class DatePolicy(str, Enum):
    """What the pipeline does with a date that fails normalization."""

    REJECT = "reject"
    FALLBACK_TO_NOW = "now"


class DedupPolicy(str, Enum):
    """What the pipeline does with rows whose fingerprint was already seen."""

    ALLOW = "allow"
    REJECT = "reject"
    MERGE = "merge"


# ---------------------------------------------------------------------------
# Canonical record
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class CanonicalRecord:
    """A fully normalized billing row, safe for aggregation and storage.

    ``month``/``month_index``/``iso_week``/``iso_year``/``week_key`` are
    derived from ``date``; ``fingerprint`` is derived from ``date``,
    ``driver``, ``client`` and ``amount``. ``raw`` keeps the source row for
    traceability.
    """

    driver: str
    client: str
    date: date
    amount: Decimal
    month: str
    month_index: str
    iso_week: int
    iso_year: int
    week_key: str
    fingerprint: str
    raw: Mapping[str, Any] = field(default_factory=dict, compare=False)
    department: str | None = None
    row_number: int | None = field(default=None, compare=False)


# ---------------------------------------------------------------------------
# Validation
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class ValidationIssue:
    """A row-level problem reported back to the operator."""

    row_number: int
    reason: str
    field: str | None = None


@dataclass(frozen=True, slots=True)
class AcceptedRow:
    """A row that passed validation.

    ``row`` is the sanitized copy of the input (blank cells become ``None``);
    ``fields`` always holds every canonical field, with ``None`` when absent.
    """

    row_number: int
    row: Mapping[str, Any]
    fields: Mapping[str, Any]


@dataclass(frozen=True, slots=True)
class IngestionResult:
    """Outcome of normalizing one uploaded batch."""

    accepted: tuple[CanonicalRecord, ...]
    errors: tuple[ValidationIssue, ...]
    # Rows collapsed into an earlier occurrence under ``DedupPolicy.MERGE``.
    duplicates: int = 0


# ---------------------------------------------------------------------------
# Aggregation
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class GroupTotals:
    total: Decimal
    count: int

    def __add__(self, other: GroupTotals) -> GroupTotals:
        return GroupTotals(total=self.total + other.total, count=self.count + other.count)


def _frozen(mapping: Mapping[str, Any] | None) -> Mapping[str, Any]:
    return MappingProxyType(dict(mapping or {}))


@dataclass(frozen=True, slots=True)
class Summary:
    """Aggregated view over a set of canonical records."""

    total: Decimal = Decimal("0")
    by_driver: Mapping[str, GroupTotals] = field(default_factory=dict)
    by_client: Mapping[str, GroupTotals] = field(default_factory=dict)
    by_month: Mapping[str, Decimal] = field(default_factory=dict)
    by_week: Mapping[str, Decimal] = field(default_factory=dict)

    def __post_init__(self) -> None:
        # Expose read-only views so a published snapshot cannot be altered.
        object.__setattr__(self, "by_driver", _frozen(self.by_driver))
        object.__setattr__(self, "by_client", _frozen(self.by_client))
        object.__setattr__(self, "by_month", _frozen(self.by_month))
        object.__setattr__(self, "by_week", _frozen(self.by_week))

    @property
    def count(self) -> int:
        return sum(g.count for g in self.by_driver.values())


@dataclass(frozen=True, slots=True)
class DriverComparison:
    name: str
    total: Decimal
    count: int


@dataclass(frozen=True, slots=True)
class PeriodCounts:
    """Record counts per month key and per week key."""

    months: tuple[tuple[str, int], ...]
    weeks: tuple[tuple[str, int], ...]


__all__ = [
    "AcceptedRow",
    "CanonicalRecord",
    "DatePolicy",
    "DedupPolicy",
    "DriverComparison",
    "GroupTotals",
    "IngestionResult",
    "PeriodCounts",
    "RawRow",
    "RawRows",
    "Summary",
    "ValidationIssue",
]
