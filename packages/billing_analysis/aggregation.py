"""Fold canonical records into summaries, and filter before re-folding.

Aggregation is a commutative sum over partitions: every record maps to a
singleton :class:`~billing_analysis.models.Summary` and summaries combine
with :func:`merge_summaries`. Any split of the record set, summarized
separately and merged, equals summarizing the union directly. Amounts are
``Decimal`` so the result does not depend on input order.

Filtering works on already-canonical records (display keys and department
tags); nothing here re-derives dates or fingerprints.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping, Sequence
from decimal import Decimal
from typing import TypeVar

from .dates import month_label_sort_key
from .models import CanonicalRecord, DriverComparison, GroupTotals, PeriodCounts, Summary
from .settings import IngestSettings, default_settings
from .weeks import week_key_sort_key

V = TypeVar("V", Decimal, GroupTotals)

EMPTY_SUMMARY = Summary()


def _merge_maps(a: Mapping[str, V], b: Mapping[str, V]) -> dict[str, V]:
    out = dict(a)
    for key, value in b.items():
        out[key] = out[key] + value if key in out else value
    return out


def record_summary(record: CanonicalRecord) -> Summary:
    """Summary of a single record."""

    one = GroupTotals(total=record.amount, count=1)
    return Summary(
        total=record.amount,
        by_driver={record.driver: one},
        by_client={record.client: one},
        by_month={record.month: record.amount},
        by_week={record.week_key: record.amount},
    )


def merge_summaries(a: Summary, b: Summary) -> Summary:
    """Combine two summaries (associative and commutative)."""

    return Summary(
        total=a.total + b.total,
        by_driver=_merge_maps(a.by_driver, b.by_driver),
        by_client=_merge_maps(a.by_client, b.by_client),
        by_month=_merge_maps(a.by_month, b.by_month),
        by_week=_merge_maps(a.by_week, b.by_week),
    )


def fold_record(acc: Summary, record: CanonicalRecord) -> Summary:
    return merge_summaries(acc, record_summary(record))


def order_summary(summary: Summary, settings: IngestSettings | None = None) -> Summary:
    """Return ``summary`` with deterministic key order for presentation.

    Drivers and clients by name, months chronologically, weeks by
    (ISO year, week).
    """

    abbreviations = (settings or default_settings()).month_abbreviations
    return Summary(
        total=summary.total,
        by_driver=dict(sorted(summary.by_driver.items())),
        by_client=dict(sorted(summary.by_client.items())),
        by_month=dict(
            sorted(summary.by_month.items(), key=lambda kv: month_label_sort_key(kv[0], abbreviations))
        ),
        by_week=dict(sorted(summary.by_week.items(), key=lambda kv: week_key_sort_key(kv[0]))),
    )


def summarize(
    records: Iterable[CanonicalRecord], settings: IngestSettings | None = None
) -> Summary:
    """Fold ``records`` into an ordered :class:`Summary` in one pass.

    Equivalent to reducing with :func:`fold_record`, but accumulates into
    plain dicts and freezes the result once.
    """

    total = Decimal("0")
    by_driver: dict[str, GroupTotals] = {}
    by_client: dict[str, GroupTotals] = {}
    by_month: dict[str, Decimal] = {}
    by_week: dict[str, Decimal] = {}
    for r in records:
        one = GroupTotals(total=r.amount, count=1)
        total += r.amount
        by_driver[r.driver] = by_driver[r.driver] + one if r.driver in by_driver else one
        by_client[r.client] = by_client[r.client] + one if r.client in by_client else one
        by_month[r.month] = by_month.get(r.month, Decimal("0")) + r.amount
        by_week[r.week_key] = by_week.get(r.week_key, Decimal("0")) + r.amount
    return order_summary(
        Summary(
            total=total,
            by_driver=by_driver,
            by_client=by_client,
            by_month=by_month,
            by_week=by_week,
        ),
        settings,
    )


# ---------------------------------------------------------------------------
# Filtering
# ---------------------------------------------------------------------------


def filter_records(
    records: Iterable[CanonicalRecord],
    *,
    month: str | None = None,
    week: str | None = None,
    department: str | None = None,
) -> list[CanonicalRecord]:
    """Keep records matching every given key exactly; ``None`` disables a filter."""

    return [
        r
        for r in records
        if (month is None or r.month == month)
        and (week is None or r.week_key == week)
        and (department is None or r.department == department)
    ]


# ---------------------------------------------------------------------------
# Period catalog and driver comparison
# ---------------------------------------------------------------------------


def available_months(
    records: Iterable[CanonicalRecord], settings: IngestSettings | None = None
) -> list[str]:
    """Distinct month keys, oldest first."""

    abbreviations = (settings or default_settings()).month_abbreviations
    return sorted({r.month for r in records}, key=lambda m: month_label_sort_key(m, abbreviations))


def available_weeks(records: Iterable[CanonicalRecord], *, month: str | None = None) -> list[str]:
    """Distinct week keys (optionally within one month), ordered by year then week."""

    return sorted(
        {r.week_key for r in records if month is None or r.month == month},
        key=week_key_sort_key,
    )


def period_counts(
    records: Sequence[CanonicalRecord], settings: IngestSettings | None = None
) -> PeriodCounts:
    """Number of records per month key and per week key (chronological)."""

    months: dict[str, int] = {}
    weeks: dict[str, int] = {}
    for r in records:
        months[r.month] = months.get(r.month, 0) + 1
        weeks[r.week_key] = weeks.get(r.week_key, 0) + 1
    abbreviations = (settings or default_settings()).month_abbreviations
    return PeriodCounts(
        months=tuple(sorted(months.items(), key=lambda kv: month_label_sort_key(kv[0], abbreviations))),
        weeks=tuple(sorted(weeks.items(), key=lambda kv: week_key_sort_key(kv[0]))),
    )


def compare_drivers(
    records: Iterable[CanonicalRecord], drivers: Iterable[str]
) -> list[DriverComparison]:
    """Totals for the selected drivers, highest total first.

    Drivers without records in ``records`` are listed with zero totals.
    """

    selected = list(dict.fromkeys(drivers))
    if not selected:
        return []
    wanted = set(selected)
    summary = summarize(r for r in records if r.driver in wanted)
    rows = [
        DriverComparison(
            name=name,
            total=summary.by_driver[name].total if name in summary.by_driver else Decimal("0"),
            count=summary.by_driver[name].count if name in summary.by_driver else 0,
        )
        for name in selected
    ]
    return sorted(rows, key=lambda c: (-c.total, c.name))


__all__ = [
    "EMPTY_SUMMARY",
    "available_months",
    "available_weeks",
    "compare_drivers",
    "filter_records",
    "fold_record",
    "merge_summaries",
    "order_summary",
    "period_counts",
    "record_summary",
    "summarize",
]
