from __future__ import annotations

from decimal import Decimal
from pathlib import Path

import pytest

from billing_analysis import (
    DedupPolicy,
    IngestStatus,
    delete_period,
    ingest_file,
    ingest_rows,
    load_stored_records,
    reset_store,
    summarize_records,
)
from tests.helpers.db import bootstrap_sqlite_db, count_rows

ROWS = [
    {"F.Carga": "13/02/2026", "Conductor": "Juan Pérez", "Nomb.Cliente": "Cliente A", "Euros": 150.5},
    {"F.Carga": "16/02/2026", "Conductor": "Ana", "Nomb.Cliente": "Cliente B", "Euros": "20,00"},
    {"F.Carga": "16/02/2026", "Conductor": "Ana", "Nomb.Cliente": "Cliente B"},
]


@pytest.fixture()
def db_url(tmp_path: Path) -> str:
    return bootstrap_sqlite_db(tmp_path / "billing.db")


def test_in_memory_ingest_reports_partial_success():
    report = ingest_rows(ROWS)
    assert report.status is IngestStatus.PARTIAL
    assert len(report.accepted) == 2
    assert [(e.row_number, e.field) for e in report.errors] == [(4, "amount")]
    assert report.persisted is False


def test_status_values():
    assert ingest_rows([]).status is IngestStatus.EMPTY
    assert ingest_rows(ROWS[:2]).status is IngestStatus.SUCCESS
    assert ingest_rows(ROWS[2:]).status is IngestStatus.FAILED


def test_persisted_ingest_and_summary(db_url: str):
    report = ingest_rows(ROWS, persist=True, database_url=db_url, department="norte")
    assert report.written == 2
    assert report.status is IngestStatus.PARTIAL

    stored = load_stored_records(database_url=db_url)
    summary = summarize_records(stored, week="Semana 7 - 2026")
    assert summary.total == Decimal("150.5")
    assert list(summary.by_driver) == ["Juan Pérez"]
    assert summarize_records(stored, department="sur").total == Decimal("0")


def test_reupload_with_merge_skips_stored_fingerprints(db_url: str):
    ingest_rows(ROWS[:2], persist=True, database_url=db_url)
    again = ingest_rows(
        ROWS[:2], persist=True, database_url=db_url, dedup_policy=DedupPolicy.MERGE
    )
    assert again.result.duplicates == 2
    assert again.written == 0
    assert again.status is IngestStatus.SUCCESS
    assert count_rows(db_url) == 2


def test_reupload_with_reject_reports_duplicates(db_url: str):
    ingest_rows(ROWS[:2], persist=True, database_url=db_url)
    again = ingest_rows(
        ROWS[:2], persist=True, database_url=db_url, dedup_policy=DedupPolicy.REJECT
    )
    assert again.status is IngestStatus.FAILED
    assert all("existing record" in e.reason for e in again.errors)


def test_delete_period_and_reset(db_url: str):
    ingest_rows(ROWS, persist=True, database_url=db_url)
    assert delete_period(week="Semana 8 - 2026", database_url=db_url) == 1
    assert delete_period(month="feb 2026", database_url=db_url) == 1
    ingest_rows(ROWS, persist=True, database_url=db_url)
    assert reset_store(database_url=db_url) == 2
    assert load_stored_records(database_url=db_url) == []


def test_ingest_file_csv(tmp_path: Path):
    path = tmp_path / "export.csv"
    path.write_text(
        "F.Carga,Conductor,Nomb.Cliente,Euros\n13/02/2026,Juan,Cliente A,150.5\n",
        encoding="utf-8",
    )
    report = ingest_file(path)
    (record,) = report.accepted
    assert record.amount == Decimal("150.5")
    assert record.week_key == "Semana 7 - 2026"
