from __future__ import annotations

from datetime import date
from decimal import Decimal

from billing_analysis.fingerprint import compute_fingerprint, format_amount

BASE = dict(date=date(2026, 2, 13), driver="Juan Pérez", client="Cliente A", amount=Decimal("150.5"))


def test_readable_key():
    assert compute_fingerprint(**BASE) == "2026-02-13_juan_pérez_cliente_a_150.5"


def test_stable_across_calls_and_sensitive_to_amount():
    assert compute_fingerprint(**BASE) == compute_fingerprint(**BASE)
    changed = {**BASE, "amount": Decimal("150.6")}
    assert compute_fingerprint(**changed) != compute_fingerprint(**BASE)


def test_equal_amounts_render_identically():
    a = compute_fingerprint(**{**BASE, "amount": Decimal("150.50")})
    b = compute_fingerprint(**{**BASE, "amount": Decimal("150.5")})
    assert a == b


def test_whitespace_runs_collapse():
    fp = compute_fingerprint(
        date=date(2026, 2, 13), driver="Juan \t Pérez", client="Cliente  A", amount=Decimal(1)
    )
    assert fp == "2026-02-13_juan_pérez_cliente_a_1"


def test_format_amount():
    assert format_amount(Decimal("100.00")) == "100"
    assert format_amount(Decimal("0.00")) == "0"
    assert format_amount(Decimal("-12.30")) == "-12.3"
    assert format_amount(Decimal("1E+3")) == "1000"


def test_format_amount_never_raises_on_extreme_exponents():
    assert format_amount(Decimal("1E+1000000")) == "1E+1000000"
