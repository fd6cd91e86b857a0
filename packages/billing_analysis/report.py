"""Plain-text rendering of summaries, period catalogs and comparisons."""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from decimal import ROUND_HALF_UP, Decimal

from .models import DriverComparison, PeriodCounts, Summary, ValidationIssue

_CENT = Decimal("0.01")


def format_money(amount: Decimal) -> str:
    """``1234.5`` -> ``"1,234.50"``."""

    return f"{amount.quantize(_CENT, rounding=ROUND_HALF_UP):,}"


def _table(title: str, header: Sequence[str], rows: Iterable[Sequence[str]]) -> list[str]:
    body = [list(r) for r in rows]
    widths = [len(h) for h in header]
    for r in body:
        widths = [max(w, len(c)) for w, c in zip(widths, r, strict=True)]

    def fmt(cells: Sequence[str]) -> str:
        # First column left-aligned (labels), the rest right-aligned (numbers).
        parts = [cells[0].ljust(widths[0])]
        parts += [c.rjust(w) for c, w in zip(cells[1:], widths[1:], strict=True)]
        return "  ".join(parts).rstrip()

    lines = [title, fmt(header), "  ".join("-" * w for w in widths)]
    lines += [fmt(r) for r in body] or ["(none)"]
    return lines


def render_summary(summary: Summary) -> str:
    """Render totals plus driver, client, month and week tables."""

    lines = [f"Total: {format_money(summary.total)}  Records: {summary.count}", ""]
    lines += _table(
        "By driver",
        ("Driver", "Total", "Count"),
        ((k, format_money(g.total), str(g.count)) for k, g in summary.by_driver.items()),
    )
    lines.append("")
    lines += _table(
        "By client",
        ("Client", "Total", "Count"),
        ((k, format_money(g.total), str(g.count)) for k, g in summary.by_client.items()),
    )
    lines.append("")
    lines += _table(
        "By month",
        ("Month", "Total"),
        ((k, format_money(v)) for k, v in summary.by_month.items()),
    )
    lines.append("")
    lines += _table(
        "By week",
        ("Week", "Total"),
        ((k, format_money(v)) for k, v in summary.by_week.items()),
    )
    return "\n".join(lines)


def render_period_counts(counts: PeriodCounts) -> str:
    lines = _table("Months", ("Month", "Records"), ((k, str(n)) for k, n in counts.months))
    lines.append("")
    lines += _table("Weeks", ("Week", "Records"), ((k, str(n)) for k, n in counts.weeks))
    return "\n".join(lines)


def render_comparison(rows: Sequence[DriverComparison]) -> str:
    return "\n".join(
        _table(
            "Driver comparison",
            ("Driver", "Total", "Count"),
            ((c.name, format_money(c.total), str(c.count)) for c in rows),
        )
    )


def render_issues(issues: Sequence[ValidationIssue]) -> str:
    """One line per issue, ``Row N: reason``."""

    return "\n".join(f"Row {i.row_number}: {i.reason}" for i in issues)


__all__ = [
    "format_money",
    "render_comparison",
    "render_issues",
    "render_period_counts",
    "render_summary",
]
