from __future__ import annotations

from billing_analysis.models import AcceptedRow, ValidationIssue
from billing_analysis.settings import default_settings
from billing_analysis.validation import find_company_signal, validate_row

SETTINGS = default_settings()

GOOD = {"F.Carga": "13/02/2026", "Conductor": "Juan Pérez", "Nomb.Cliente": "Cliente A", "Euros": 150.5}


def test_empty_row_is_skipped_not_an_error():
    assert validate_row({}, 2, SETTINGS) is None
    assert validate_row({"F.Carga": "", "Euros": None, "Conductor": "  "}, 3, SETTINGS) is None


def test_accepted_row_is_sanitized():
    outcome = validate_row({**GOOD, "Observaciones": "  "}, 5, SETTINGS)
    assert isinstance(outcome, AcceptedRow)
    assert outcome.row_number == 5
    assert outcome.row["Observaciones"] is None
    assert set(outcome.fields) == {"date", "driver", "client", "amount"}


def test_missing_amount_names_the_amount_column():
    row = {k: v for k, v in GOOD.items() if k != "Euros"}
    outcome = validate_row(row, 7, SETTINGS)
    assert isinstance(outcome, ValidationIssue)
    assert outcome.row_number == 7
    assert outcome.field == "amount"
    assert "Euros" in outcome.reason


def test_rules_short_circuit_in_order():
    # Date is checked before amount.
    outcome = validate_row({"Conductor": "A", "Nomb.Cliente": "X"}, 2, SETTINGS)
    assert isinstance(outcome, ValidationIssue)
    assert outcome.field == "date"
    assert outcome.reason == "missing date (column 'F.Carga')"

    outcome = validate_row({"F.Carga": 46066, "Euros": 1, "Nomb.Cliente": "X"}, 2, SETTINGS)
    assert outcome.field == "driver"

    outcome = validate_row({"F.Carga": 46066, "Euros": 1, "Conductor": "A"}, 2, SETTINGS)
    assert outcome.field == "client"


def test_zero_amount_is_present():
    assert isinstance(validate_row({**GOOD, "Euros": 0}, 2, SETTINGS), AcceptedRow)


def test_company_name_in_driver_column_flags_a_swap():
    row = {**GOOD, "Conductor": "Transportes García S.L.", "Nomb.Cliente": "Juan Pérez"}
    outcome = validate_row(row, 9, SETTINGS)
    assert isinstance(outcome, ValidationIssue)
    assert outcome.field == "driver"
    assert "swap" in outcome.reason


def test_find_company_signal_is_case_insensitive():
    assert find_company_signal("logistica del norte", SETTINGS.company_signals) == "LOGISTICA"
    assert find_company_signal("Juan Sanchez", SETTINGS.company_signals) is None
    assert find_company_signal(None, SETTINGS.company_signals) is None


def test_required_fields_are_configurable():
    relaxed = SETTINGS.model_copy(update={"required_fields": ["date", "amount"]})
    outcome = validate_row({"F.Carga": 46066, "Euros": 10}, 2, relaxed)
    assert isinstance(outcome, AcceptedRow)
    assert outcome.fields["driver"] is None
