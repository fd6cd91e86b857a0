"""Normalize raw spreadsheet date cells into calendar dates.

A single billing column may hold three incompatible encodings depending on
how the sheet was exported: spreadsheet serial numbers, the same serials
stored as text, and textual dates (ISO, Spanish ``dd/mm/yyyy`` or
year-first ``yyyy/mm/dd``). The rules are an ordered list
(:data:`DATE_RULES`); the first rule that yields a date wins, and each rule
can be exercised on its own.

The normalizer never invents a date. A failure is reported as
``DateParse(rule=DateRule.UNRECOGNIZED, date=None)`` and the caller applies
its :class:`~billing_analysis.models.DatePolicy`.
"""

from __future__ import annotations

import math
import re
from collections.abc import Callable, Sequence
from dataclasses import dataclass
from datetime import date, datetime, timedelta
from decimal import Decimal
from enum import Enum
from typing import Any

# Day 0 of the spreadsheet serial calendar. Serial 25569 is 1970-01-01; the
# 1899-12-30 origin absorbs the 1900 leap-year bug of spreadsheet tools.
SERIAL_EPOCH: date = date(1899, 12, 30)
UNIX_EPOCH_SERIAL: int = 25569

_DIGITS_RX = re.compile(r"^\d+$")
_ABBREV_DOT_RX = re.compile(r"(?<=[^\W\d_])\.")

_TEXT_FORMATS: tuple[str, ...] = (
    "%d %b %Y",
    "%d %B %Y",
    "%b %d %Y",
    "%B %d %Y",
    "%b %d, %Y",
    "%B %d, %Y",
    "%d-%b-%Y",
    "%d-%B-%Y",
)

# Spanish month names accepted in textual dates ("13 febrero 2026", "13 feb 2026").
_SPANISH_MONTHS: dict[str, int] = {
    "enero": 1,
    "febrero": 2,
    "marzo": 3,
    "abril": 4,
    "mayo": 5,
    "junio": 6,
    "julio": 7,
    "agosto": 8,
    "septiembre": 9,
    "setiembre": 9,
    "octubre": 10,
    "noviembre": 11,
    "diciembre": 12,
    "ene": 1,
    "feb": 2,
    "mar": 3,
    "abr": 4,
    "may": 5,
    "jun": 6,
    "jul": 7,
    "ago": 8,
    "sep": 9,
    "sept": 9,
    "set": 9,
    "oct": 10,
    "nov": 11,
    "dic": 12,
}
_SPANISH_TEXT_RX = re.compile(r"^(\d{1,2})(?:\s+de)?[\s\-]+([a-záéíóú]+)\.?(?:\s+de)?[\s\-]+(\d{4})$")


class DateRule(str, Enum):
    CALENDAR_VALUE = "calendar_value"
    NUMERIC_SERIAL = "numeric_serial"
    NUMERIC_TEXT = "numeric_text"
    ISO_TEXT = "iso_text"
    SLASH_DELIMITED = "slash_delimited"
    UNRECOGNIZED = "unrecognized"


@dataclass(frozen=True, slots=True)
class DateParse:
    """Result of normalizing one raw cell: the rule that applied and the date."""

    rule: DateRule
    date: date | None

    @property
    def ok(self) -> bool:
        return self.date is not None


# ---------------------------------------------------------------------------
# Individual rules: each returns a date or None when it does not apply
# ---------------------------------------------------------------------------


def serial_to_date(serial: int | float | Decimal) -> date:
    """Convert a spreadsheet serial day count to a calendar date.

    Fractional serials (time of day) round half up to the nearest day.
    Raises ``OverflowError``/``ValueError`` for serials outside the
    representable calendar.
    """

    days = math.floor(Decimal(str(serial)) + Decimal("0.5"))
    return SERIAL_EPOCH + timedelta(days=days)


def _from_calendar_value(value: Any) -> date | None:
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    return None


def _from_numeric_serial(value: Any) -> date | None:
    if isinstance(value, bool) or not isinstance(value, (int, float, Decimal)):
        return None
    if isinstance(value, float) and not math.isfinite(value):
        return None
    try:
        return serial_to_date(value)
    except (OverflowError, ValueError, ArithmeticError):
        return None


def _from_numeric_text(value: Any) -> date | None:
    if not isinstance(value, str):
        return None
    s = value.strip()
    if not _DIGITS_RX.fullmatch(s):
        return None
    try:
        return serial_to_date(int(s))
    except (OverflowError, ValueError):
        return None


def _from_iso_text(value: Any) -> date | None:
    if not isinstance(value, str):
        return None
    s = value.strip()
    if not s:
        return None
    # ISO-8601 date or datetime ("2026-02-13", "2026-02-13T08:30:00Z").
    try:
        return datetime.fromisoformat(s).date()
    except ValueError:
        pass
    # Unambiguous textual month formats.
    cleaned = " ".join(_ABBREV_DOT_RX.sub("", s).split())
    for fmt in _TEXT_FORMATS:
        try:
            return datetime.strptime(cleaned, fmt).date()
        except ValueError:
            continue
    m = _SPANISH_TEXT_RX.fullmatch(s.lower())
    if m:
        month = _SPANISH_MONTHS.get(m.group(2))
        if month is not None:
            try:
                return date(int(m.group(3)), month, int(m.group(1)))
            except ValueError:
                return None
    return None


def _from_slash_delimited(value: Any) -> date | None:
    if not isinstance(value, str) or "/" not in value:
        return None
    parts = [p.strip() for p in value.strip().split("/")]
    if len(parts) == 3 and parts[2]:
        # Drop a trailing time of day ("13/02/2026 08:30").
        parts[2] = parts[2].split()[0]
    if len(parts) != 3 or not all(_DIGITS_RX.fullmatch(p) for p in parts):
        return None
    if len(parts[0]) == 4:
        # Year-first ("2026/02/13") is unambiguous.
        year, month, day = (int(p) for p in parts)
    else:
        day, month, year = (int(p) for p in parts)
        if len(parts[2]) <= 2:
            year += 2000
    try:
        return date(year, month, day)
    except ValueError:
        return None


# Precedence is data: earlier rules win.
DATE_RULES: Sequence[tuple[DateRule, Callable[[Any], date | None]]] = (
    (DateRule.CALENDAR_VALUE, _from_calendar_value),
    (DateRule.NUMERIC_SERIAL, _from_numeric_serial),
    (DateRule.NUMERIC_TEXT, _from_numeric_text),
    (DateRule.ISO_TEXT, _from_iso_text),
    (DateRule.SLASH_DELIMITED, _from_slash_delimited),
)


def normalize_date(value: Any) -> DateParse:
    """Normalize one raw cell value; see the module docstring for the rules."""

    for rule, fn in DATE_RULES:
        d = fn(value)
        if d is not None:
            return DateParse(rule=rule, date=d)
    return DateParse(rule=DateRule.UNRECOGNIZED, date=None)


def parse_date(value: Any) -> date | None:
    """Shorthand for ``normalize_date(value).date``."""

    return normalize_date(value).date


# ---------------------------------------------------------------------------
# Month keys
# ---------------------------------------------------------------------------


def month_index(d: date) -> str:
    """Sortable month key: ``YYYY-MM``."""

    return f"{d.year:04d}-{d.month:02d}"


def month_label(d: date, abbreviations: Sequence[str]) -> str:
    """Display month key: short month name + year (``"feb 2026"``)."""

    return f"{abbreviations[d.month - 1]} {d.year}"


def month_label_sort_key(label: str, abbreviations: Sequence[str]) -> tuple[int, int, str]:
    """Chronological sort key for a month label; unknown labels sort last."""

    name, _, year = label.rpartition(" ")
    try:
        return (int(year), abbreviations.index(name.lower()) + 1, label)
    except ValueError:
        return (10**6, 0, label)


__all__ = [
    "DATE_RULES",
    "SERIAL_EPOCH",
    "UNIX_EPOCH_SERIAL",
    "DateParse",
    "DateRule",
    "month_index",
    "month_label",
    "month_label_sort_key",
    "normalize_date",
    "parse_date",
    "serial_to_date",
]
