from __future__ import annotations

from datetime import date, datetime
from decimal import Decimal

import pytest

from billing_analysis.dates import (
    DATE_RULES,
    UNIX_EPOCH_SERIAL,
    DateRule,
    month_index,
    month_label,
    month_label_sort_key,
    normalize_date,
    parse_date,
    serial_to_date,
)
from billing_analysis.settings import default_settings

ABBR = default_settings().month_abbreviations


def test_unix_epoch_serial():
    assert serial_to_date(UNIX_EPOCH_SERIAL) == date(1970, 1, 1)


@pytest.mark.parametrize(
    "serial, expected",
    [
        (45658, date(2025, 1, 1)),
        (45659, date(2025, 1, 2)),
        (46066, date(2026, 2, 13)),
    ],
)
def test_numeric_serial(serial, expected):
    parsed = normalize_date(serial)
    assert parsed.rule is DateRule.NUMERIC_SERIAL
    assert parsed.date == expected


@pytest.mark.parametrize("serial", [1, 60, 25569, 36526, 45659, 46066, 60000])
def test_numeric_and_numeric_text_agree(serial):
    assert normalize_date(serial).date == normalize_date(str(serial)).date
    assert normalize_date(str(serial)).rule is DateRule.NUMERIC_TEXT


def test_fractional_serial_rounds_half_up():
    assert parse_date(45658.25) == date(2025, 1, 1)
    assert parse_date(45658.5) == date(2025, 1, 2)
    assert parse_date(Decimal("45658.49")) == date(2025, 1, 1)


def test_slash_delimited_is_day_month_year():
    parsed = normalize_date("13/02/2026")
    assert parsed.rule is DateRule.SLASH_DELIMITED
    assert parsed.date == date(2026, 2, 13)
    assert parse_date("01/02/2026") == date(2026, 2, 1)


def test_slash_delimited_variants():
    assert parse_date(" 3/2/2026 ") == date(2026, 2, 3)
    assert parse_date("13/02/26") == date(2026, 2, 13)
    assert parse_date("13/02/2026 08:30") == date(2026, 2, 13)


def test_year_first_slash_dates():
    parsed = normalize_date("2026/02/13")
    assert parsed.rule is DateRule.SLASH_DELIMITED
    assert parsed.date == date(2026, 2, 13)
    assert parse_date("2026/2/3 08:30") == date(2026, 2, 3)
    assert parse_date("2026/13/02") is None


@pytest.mark.parametrize("bad", ["31/02/2026", "13/13/2026", "13/02", "a/b/c", "1/2/3/4"])
def test_slash_delimited_rejects_invalid(bad):
    parsed = normalize_date(bad)
    assert parsed.rule is DateRule.UNRECOGNIZED
    assert parsed.date is None
    assert not parsed.ok


@pytest.mark.parametrize(
    "text",
    [
        "2026-02-13",
        "2026-02-13T08:30:00",
        "2026-02-13 08:30:00+01:00",
        "13 Feb 2026",
        "February 13, 2026",
        "13 febrero 2026",
        "13 de febrero de 2026",
        "13-feb-2026",
    ],
)
def test_iso_and_textual_dates(text):
    parsed = normalize_date(text)
    assert parsed.rule is DateRule.ISO_TEXT
    assert parsed.date == date(2026, 2, 13)


def test_native_calendar_values():
    assert normalize_date(datetime(2026, 2, 13, 17, 45)).date == date(2026, 2, 13)
    parsed = normalize_date(date(2026, 2, 13))
    assert parsed.rule is DateRule.CALENDAR_VALUE
    assert parsed.date == date(2026, 2, 13)


@pytest.mark.parametrize("bad", [None, "", "   ", "not a date", True, float("nan"), [], "2026-13-01"])
def test_unrecognized_never_invents_a_date(bad):
    parsed = normalize_date(bad)
    assert parsed.rule is DateRule.UNRECOGNIZED
    assert parsed.date is None


def test_rule_precedence_is_data():
    assert [rule for rule, _ in DATE_RULES] == [
        DateRule.CALENDAR_VALUE,
        DateRule.NUMERIC_SERIAL,
        DateRule.NUMERIC_TEXT,
        DateRule.ISO_TEXT,
        DateRule.SLASH_DELIMITED,
    ]
    # Each rule is callable on its own and declines foreign encodings.
    rules = dict(DATE_RULES)
    assert rules[DateRule.SLASH_DELIMITED]("2026-02-13") is None
    assert rules[DateRule.ISO_TEXT]("13/02/2026") is None
    assert rules[DateRule.NUMERIC_TEXT]("46066") == date(2026, 2, 13)


def test_month_keys():
    d = date(2026, 2, 13)
    assert month_index(d) == "2026-02"
    assert month_label(d, ABBR) == "feb 2026"
    assert month_label(date(2025, 12, 1), ABBR) == "dic 2025"


def test_month_label_sort_key_is_chronological():
    labels = ["feb 2026", "dic 2025", "ene 2026", "zzz"]
    ordered = sorted(labels, key=lambda m: month_label_sort_key(m, ABBR))
    assert ordered == ["dic 2025", "ene 2026", "feb 2026", "zzz"]
