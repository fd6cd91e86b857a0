"""ISO-8601 week numbering ("the week containing the first Thursday").

Week labels use the ISO week-year, not the calendar year of the date: the
last days of December can belong to week 1 of the next year and the first
days of January to week 52/53 of the previous one.
"""

from __future__ import annotations

import math
import re
from datetime import date, timedelta
from typing import NamedTuple

WEEK_LABEL_TEMPLATE: str = "Semana {week} - {year}"
_WEEK_LABEL_RX = re.compile(r"^Semana\s+(\d{1,2})\s*-\s*(\d{4})$")


class IsoWeek(NamedTuple):
    week: int
    year: int


def iso_week(d: date) -> IsoWeek:
    """Return the ISO week number and ISO week-year of ``d``."""

    # Thursday of d's week (Monday-based): its year is the ISO week-year.
    day_nr = d.weekday()
    thursday = d + timedelta(days=3 - day_nr)

    first = date(thursday.year, 1, 1)
    if first.weekday() != 3:
        first += timedelta(days=(3 - first.weekday()) % 7)

    week = 1 + math.ceil((thursday - first).days / 7)
    return IsoWeek(week=week, year=thursday.year)


def week_key(d: date) -> str:
    """Display week key, e.g. ``"Semana 7 - 2026"``."""

    wk = iso_week(d)
    return WEEK_LABEL_TEMPLATE.format(week=wk.week, year=wk.year)


def parse_week_key(label: str) -> IsoWeek | None:
    """Inverse of :func:`week_key`; ``None`` for labels that do not match."""

    m = _WEEK_LABEL_RX.fullmatch(label.strip())
    if not m:
        return None
    return IsoWeek(week=int(m.group(1)), year=int(m.group(2)))


def week_key_sort_key(label: str) -> tuple[int, int, str]:
    """Sort key ordering week labels by (year, week); unknown labels sort last."""

    wk = parse_week_key(label)
    if wk is None:
        return (10**6, 0, label)
    return (wk.year, wk.week, label)


__all__ = [
    "WEEK_LABEL_TEMPLATE",
    "IsoWeek",
    "iso_week",
    "parse_week_key",
    "week_key",
    "week_key_sort_key",
]
