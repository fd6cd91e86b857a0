from __future__ import annotations

from datetime import date, timedelta

import pytest

from billing_analysis.weeks import IsoWeek, iso_week, parse_week_key, week_key, week_key_sort_key


def test_known_week():
    assert iso_week(date(2026, 2, 13)) == IsoWeek(week=7, year=2026)
    assert week_key(date(2026, 2, 13)) == "Semana 7 - 2026"


@pytest.mark.parametrize(
    "d, label",
    [
        # Late December belonging to week 1 of the next ISO year.
        (date(2025, 12, 29), "Semana 1 - 2026"),
        (date(2024, 12, 30), "Semana 1 - 2025"),
        # Early January belonging to the last week of the previous ISO year.
        (date(2021, 1, 1), "Semana 53 - 2020"),
        (date(2023, 1, 1), "Semana 52 - 2022"),
        (date(2026, 1, 1), "Semana 1 - 2026"),
    ],
)
def test_year_boundaries_use_iso_week_year(d, label):
    assert week_key(d) == label


def test_matches_isocalendar_over_several_years():
    d = date(2019, 12, 1)
    while d < date(2027, 2, 1):
        cal = d.isocalendar()
        assert iso_week(d) == IsoWeek(week=cal.week, year=cal.year), d
        d += timedelta(days=1)


def test_parse_week_key_round_trip_and_rejects_noise():
    assert parse_week_key("Semana 7 - 2026") == IsoWeek(7, 2026)
    assert parse_week_key("Week 7") is None


def test_week_key_sort_key_orders_by_year_then_week():
    labels = ["Semana 10 - 2026", "Semana 2 - 2026", "Semana 52 - 2025", "other"]
    assert sorted(labels, key=week_key_sort_key) == [
        "Semana 52 - 2025",
        "Semana 2 - 2026",
        "Semana 10 - 2026",
        "other",
    ]
