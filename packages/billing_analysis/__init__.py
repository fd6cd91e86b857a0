"""Public interface for the ``billing_analysis`` package.

This module exposes the package's API functions and public models/types as the
stable import surface. There is no runtime logic here, only symbol re-exports.
"""

from .aggregation import (
    available_months,
    available_weeks,
    compare_drivers,
    filter_records,
    merge_summaries,
    period_counts,
    record_summary,
    summarize,
)
from .api import (
    IngestReport,
    IngestStatus,
    delete_period,
    ingest_file,
    ingest_rows,
    load_stored_records,
    reset_store,
    summarize_records,
)
from .dates import DATE_RULES, DateParse, DateRule, normalize_date
from .fields import resolve_field
from .fingerprint import compute_fingerprint
from .models import (
    AcceptedRow,
    CanonicalRecord,
    DatePolicy,
    DedupPolicy,
    DriverComparison,
    GroupTotals,
    IngestionResult,
    PeriodCounts,
    RawRow,
    RawRows,
    Summary,
    ValidationIssue,
)
from .normalizers import normalize_row, normalize_rows
from .settings import IngestSettings, load_settings
from .validation import validate_row
from .weeks import IsoWeek, iso_week, week_key

__all__ = [
    # API
    "delete_period",
    "ingest_file",
    "ingest_rows",
    "load_stored_records",
    "reset_store",
    "summarize_records",
    # Pipeline
    "DATE_RULES",
    "compute_fingerprint",
    "iso_week",
    "normalize_date",
    "normalize_row",
    "normalize_rows",
    "resolve_field",
    "validate_row",
    "week_key",
    # Aggregation
    "available_months",
    "available_weeks",
    "compare_drivers",
    "filter_records",
    "merge_summaries",
    "period_counts",
    "record_summary",
    "summarize",
    # Models
    "AcceptedRow",
    "CanonicalRecord",
    "DateParse",
    "DatePolicy",
    "DateRule",
    "DedupPolicy",
    "DriverComparison",
    "GroupTotals",
    "IngestReport",
    "IngestSettings",
    "IngestStatus",
    "IngestionResult",
    "IsoWeek",
    "PeriodCounts",
    "RawRow",
    "RawRows",
    "Summary",
    "ValidationIssue",
    "load_settings",
]
