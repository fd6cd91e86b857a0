from __future__ import annotations

import logging
from datetime import date
from decimal import Decimal

import pytest

from billing_analysis.aggregation import summarize
from billing_analysis.models import DatePolicy, DedupPolicy, GroupTotals
from billing_analysis.normalizers import normalize_row, normalize_rows, parse_amount


def _row(fecha, conductor="A", cliente="X", euros=100):
    return {"F.Carga": fecha, "Conductor": conductor, "Nomb.Cliente": cliente, "Euros": euros}


def _fixed_clock() -> date:
    return date(2026, 3, 1)


@pytest.mark.parametrize(
    "raw, expected",
    [
        (150.5, Decimal("150.5")),
        (100, Decimal("100")),
        ("150,50", Decimal("150.50")),
        ("150,50 €", Decimal("150.50")),
        ("1.234,56", Decimal("1234.56")),
        ("1,234.56", Decimal("1234.56")),
        ("(12,00)", Decimal("-12.00")),
        ("-7.5", Decimal("-7.5")),
        ("EUR 3", Decimal("3")),
        ("abc", Decimal("0")),
        (None, Decimal("0")),
        ("", Decimal("0")),
        (float("nan"), Decimal("0")),
        ("33,333", Decimal("33.33")),
        ("0,005", Decimal("0.01")),
        (Decimal("-2.675"), Decimal("-2.68")),
        ("1E1000000", Decimal("0")),
        (10**20, Decimal("0")),
    ],
)
def test_parse_amount(raw, expected):
    assert parse_amount(raw) == expected


def test_end_to_end_summary():
    rows = [
        {"F.Carga": "01/01/2026", "Conductor": "A", "Nomb.Cliente": "X", "Euros": 100},
        {"F.Carga": 45659, "Conductor": "B", "Nomb.Cliente": "Y", "Euros": 50},
    ]
    result = normalize_rows(rows)
    assert result.errors == ()
    summary = summarize(result.accepted)
    assert summary.total == Decimal("150")
    assert dict(summary.by_driver) == {
        "A": GroupTotals(total=Decimal("100"), count=1),
        "B": GroupTotals(total=Decimal("50"), count=1),
    }
    assert list(summary.by_month) == ["ene 2025", "ene 2026"]


def test_record_fields_are_derived_from_the_date():
    result = normalize_rows([_row("13/02/2026", "Juan Pérez", "Cliente A", 150.5)])
    (record,) = result.accepted
    assert record.date == date(2026, 2, 13)
    assert record.month == "feb 2026"
    assert record.month_index == "2026-02"
    assert (record.iso_week, record.iso_year) == (7, 2026)
    assert record.week_key == "Semana 7 - 2026"
    assert record.fingerprint == "2026-02-13_juan_pérez_cliente_a_150.5"
    assert record.row_number == 2
    assert record.raw["Conductor"] == "Juan Pérez"


def test_row_numbers_follow_the_spreadsheet_and_batch_continues():
    rows = [
        _row("13/02/2026"),
        {},
        {"Conductor": "B", "Nomb.Cliente": "Y", "Euros": 5},
        _row("14/02/2026", conductor="C"),
    ]
    result = normalize_rows(rows)
    assert [r.row_number for r in result.accepted] == [2, 5]
    assert [(e.row_number, e.field) for e in result.errors] == [(4, "date")]


def test_out_of_range_amount_does_not_abort_the_batch():
    result = normalize_rows([_row("13/02/2026", euros=10), _row("14/02/2026", euros="1E1000000")])
    assert [r.amount for r in result.accepted] == [Decimal("10.00"), Decimal("0")]
    assert result.accepted[1].fingerprint == "2026-02-14_a_x_0"
    assert result.errors == ()


def test_reject_policy_turns_bad_dates_into_issues():
    result = normalize_rows([_row("mañana")], date_policy=DatePolicy.REJECT)
    assert result.accepted == ()
    (issue,) = result.errors
    assert issue.row_number == 2
    assert issue.field == "date"
    assert "invalid date" in issue.reason


def test_fallback_policy_uses_the_injected_clock(
    caplog: pytest.LogCaptureFixture, monkeypatch: pytest.MonkeyPatch
):
    # The CLI may have configured the package logger with propagate=False.
    monkeypatch.setattr(logging.getLogger("billing_analysis"), "propagate", True)
    caplog.set_level(logging.WARNING, logger="billing_analysis")
    result = normalize_rows(
        [_row("mañana")], date_policy=DatePolicy.FALLBACK_TO_NOW, clock=_fixed_clock
    )
    (record,) = result.accepted
    assert record.date == date(2026, 3, 1)
    assert result.errors == ()
    assert any("unrecognized date" in r.getMessage() for r in caplog.records)


def test_dedup_allow_keeps_duplicates():
    rows = [_row("13/02/2026"), _row("13/02/2026")]
    result = normalize_rows(rows, dedup_policy=DedupPolicy.ALLOW)
    assert len(result.accepted) == 2
    assert result.accepted[0].fingerprint == result.accepted[1].fingerprint


def test_dedup_reject_reports_the_first_occurrence():
    rows = [_row("13/02/2026"), _row("14/02/2026"), _row("13/02/2026")]
    result = normalize_rows(rows, dedup_policy=DedupPolicy.REJECT)
    assert [r.row_number for r in result.accepted] == [2, 3]
    (issue,) = result.errors
    assert issue.row_number == 4
    assert issue.reason.startswith("duplicate of row 2")


def test_dedup_merge_counts_collapsed_rows_and_honors_known_fingerprints():
    first = normalize_rows([_row("13/02/2026")]).accepted[0]
    rows = [_row("13/02/2026"), _row("14/02/2026"), _row("14/02/2026")]
    result = normalize_rows(
        rows, dedup_policy=DedupPolicy.MERGE, known_fingerprints=[first.fingerprint]
    )
    assert [r.date for r in result.accepted] == [date(2026, 2, 14)]
    assert result.duplicates == 2
    assert result.errors == ()


def test_dedup_reject_against_existing_records():
    first = normalize_rows([_row("13/02/2026")]).accepted[0]
    result = normalize_rows(
        [_row("13/02/2026")], dedup_policy=DedupPolicy.REJECT, known_fingerprints={first.fingerprint}
    )
    (issue,) = result.errors
    assert "an existing record" in issue.reason


def test_department_tag_is_stamped_on_every_record():
    result = normalize_rows([_row("13/02/2026"), _row(46067)], department="norte")
    assert {r.department for r in result.accepted} == {"norte"}


def test_normalize_row_defaults_missing_names_and_amounts():
    record = normalize_row({"Fecha": "2026-02-13"}, date_policy=DatePolicy.REJECT)
    assert record is not None
    assert record.driver == "Unknown"
    assert record.client == "Unknown"
    assert record.amount == Decimal("0")


def test_normalize_row_policy_is_explicit():
    assert normalize_row({"Fecha": "??"}, date_policy=DatePolicy.REJECT) is None
    record = normalize_row({"Fecha": "??"}, date_policy=DatePolicy.FALLBACK_TO_NOW, clock=_fixed_clock)
    assert record is not None and record.date == date(2026, 3, 1)
