"""Deduplication keys for canonical billing records.

The fingerprint is a readable text key rather than a hash so operators can
eyeball why two rows collided: ``{iso_date}_{driver}_{client}_{amount}``,
lowercased, with every whitespace run replaced by a single underscore.
Identical (date, driver, client, amount) rows collide on purpose; what to do
with a collision is the caller's decision.
"""

from __future__ import annotations

import re
from datetime import date
from decimal import Decimal, DecimalException

_WS_RX = re.compile(r"\s+")


def format_amount(amount: Decimal) -> str:
    """Shortest plain decimal rendering (``150.50`` -> ``"150.5"``, ``100.00`` -> ``"100"``)."""

    if amount == 0:
        return "0"
    try:
        return format(amount.normalize(), "f")
    except DecimalException:
        return str(amount)


def compute_fingerprint(*, date: date, driver: str, client: str, amount: Decimal) -> str:
    """Return the deterministic dedup key for one record's defining fields."""

    key = f"{date.isoformat()}_{driver}_{client}_{format_amount(amount)}"
    return _WS_RX.sub("_", key.strip().lower())


__all__ = ["compute_fingerprint", "format_amount"]
