# ruff: noqa: I001
"""CLI for the ``billing_analysis`` package.

This module exposes callable command handlers (``cmd_ingest``,
``cmd_summary``, ...) and a Typer-based console interface over them.
Environment variables (notably ``DATABASE_URL``) are loaded from a local
``.env`` using ``python-dotenv`` before any command runs. Business logic lives
in ``billing_analysis.api`` and related modules.

Handlers print ``Error: ...`` to stderr and return a non-zero exit code
instead of raising, so they can be called directly from scripts and tests.
"""

from __future__ import annotations

import sys
from pathlib import Path
from typing import Annotated

import typer
from dotenv import load_dotenv
from typer.models import OptionInfo

from .logging_setup import configure_logging
from .models import DatePolicy, DedupPolicy, PeriodCounts
from .settings import IngestSettings, load_settings


# ---- Small module-level helpers used by CLI commands -------------------------


def _settings_or_error(settings_path: Path | None) -> IngestSettings | None:
    from pydantic import ValidationError

    try:
        return load_settings(settings_path)
    except FileNotFoundError:
        print(f"Error: settings file not found: {settings_path}", file=sys.stderr)
    except (ValidationError, ValueError) as e:
        print(f"Error: invalid settings: {e}", file=sys.stderr)
    return None


def _read_errors() -> tuple[type[Exception], ...]:
    """Exceptions that mean an export could not be parsed (not a missing file)."""

    import csv
    import zipfile

    from openpyxl.utils.exceptions import InvalidFileException

    return (csv.Error, zipfile.BadZipFile, InvalidFileException, ValueError)


def _stored_records(database_url: str | None, department: str | None) -> list | None:
    from sqlalchemy.exc import SQLAlchemyError

    from .api import load_stored_records

    try:
        return load_stored_records(database_url=database_url, department=department)
    except (RuntimeError, SQLAlchemyError) as e:
        print(f"Error: failed to load records from DB: {e}", file=sys.stderr)
        return None


# ---- Command handlers ----------------------------------------------------------


def cmd_ingest(
    path: Path,
    *,
    sheet: str | None = None,
    department: str | None = None,
    date_policy: DatePolicy = DatePolicy.REJECT,
    dedup_policy: DedupPolicy = DedupPolicy.ALLOW,
    persist: bool = True,
    database_url: str | None = None,
    settings_path: Path | None = None,
) -> int:
    """Validate, normalize and (unless ``persist`` is false) store one export."""

    from sqlalchemy.exc import SQLAlchemyError

    from .api import IngestStatus, ingest_file
    from .report import render_issues

    settings = _settings_or_error(settings_path)
    if settings is None:
        return 1

    try:
        report = ingest_file(
            path,
            sheet=sheet,
            settings=settings,
            date_policy=date_policy,
            dedup_policy=dedup_policy,
            department=department,
            persist=persist,
            database_url=database_url,
        )
    except FileNotFoundError:
        print(f"Error: File not found: {path}", file=sys.stderr)
        return 1
    except PermissionError:
        print(f"Error: Permission denied: {path}", file=sys.stderr)
        return 1
    except _read_errors() as e:
        print(f"Error: Failed to read '{path}': {e}", file=sys.stderr)
        return 1
    except (RuntimeError, SQLAlchemyError) as e:
        print(f"Error: persistence failed: {e}", file=sys.stderr)
        return 1

    result = report.result
    print(f"Status: {report.status.value}")
    print(f"Accepted: {len(result.accepted)}")
    if persist:
        print(f"Written: {report.written}")
    if result.duplicates:
        print(f"Merged duplicates: {result.duplicates}")
    if result.errors:
        print(f"Rows with errors: {len(result.errors)}")
        print(render_issues(result.errors))
    for failure in report.write_failures:
        print(
            f"Error: chunk {failure.index} ({failure.size} records) failed: {failure.error}",
            file=sys.stderr,
        )
    return 1 if report.status is IngestStatus.FAILED else 0


def cmd_summary(
    *,
    path: Path | None = None,
    sheet: str | None = None,
    month: str | None = None,
    week: str | None = None,
    department: str | None = None,
    date_policy: DatePolicy = DatePolicy.REJECT,
    database_url: str | None = None,
    settings_path: Path | None = None,
) -> int:
    """Print a summary of stored records, or of ``path`` when given (no DB)."""

    from .api import ingest_file, summarize_records
    from .report import render_summary

    settings = _settings_or_error(settings_path)
    if settings is None:
        return 1

    if path is not None:
        try:
            records = list(
                ingest_file(
                    path,
                    sheet=sheet,
                    settings=settings,
                    date_policy=date_policy,
                    department=department,
                ).accepted
            )
        except (OSError, *_read_errors()) as e:
            print(f"Error: Failed to read '{path}': {e}", file=sys.stderr)
            return 1
    else:
        stored = _stored_records(database_url, department)
        if stored is None:
            return 1
        records = stored

    summary = summarize_records(
        records, month=month, week=week, department=department, settings=settings
    )
    print(render_summary(summary))
    return 0


def cmd_periods(
    *,
    month: str | None = None,
    database_url: str | None = None,
    settings_path: Path | None = None,
) -> int:
    """Print record counts per month and week; ``month`` narrows the weeks."""

    from .aggregation import filter_records, period_counts
    from .report import render_period_counts

    settings = _settings_or_error(settings_path)
    if settings is None:
        return 1
    records = _stored_records(database_url, None)
    if records is None:
        return 1
    counts = period_counts(records, settings)
    if month is not None:
        weeks = period_counts(filter_records(records, month=month), settings).weeks
        counts = PeriodCounts(months=counts.months, weeks=weeks)
    print(render_period_counts(counts))
    return 0


def cmd_compare(
    drivers: list[str],
    *,
    month: str | None = None,
    week: str | None = None,
    database_url: str | None = None,
) -> int:
    from .aggregation import compare_drivers, filter_records
    from .report import render_comparison

    if not drivers:
        print("Error: at least one driver is required", file=sys.stderr)
        return 1
    records = _stored_records(database_url, None)
    if records is None:
        return 1
    rows = compare_drivers(filter_records(records, month=month, week=week), drivers)
    print(render_comparison(rows))
    return 0


def cmd_delete(
    *, month: str | None = None, week: str | None = None, database_url: str | None = None
) -> int:
    from sqlalchemy.exc import SQLAlchemyError

    from .api import delete_period

    try:
        deleted = delete_period(month=month, week=week, database_url=database_url)
    except (RuntimeError, SQLAlchemyError, ValueError) as e:
        print(f"Error: delete failed: {e}", file=sys.stderr)
        return 1
    print(f"Deleted {deleted} record(s)")
    return 0


def cmd_reset(*, database_url: str | None = None) -> int:
    from sqlalchemy.exc import SQLAlchemyError

    from .api import reset_store

    try:
        deleted = reset_store(database_url=database_url)
    except (RuntimeError, SQLAlchemyError) as e:
        print(f"Error: reset failed: {e}", file=sys.stderr)
        return 1
    print(f"Deleted {deleted} record(s)")
    return 0


# ---- Typer-based console interface -------------------------------------------


app = typer.Typer(
    no_args_is_help=True,
    add_completion=False,
    help=(
        "Normalize billing spreadsheet exports and report totals per driver, "
        "client, month and ISO week. Loads DATABASE_URL from a local .env."
    ),
)


# Module-level option objects to satisfy ruff B008 (no calls in parameter
# defaults). Used through ``Annotated``, so they carry flag names but no default.
DATABASE_URL_OPTION: OptionInfo = typer.Option(
    "--database-url", help="Override DATABASE_URL (falls back to env var)."
)
SETTINGS_OPTION: OptionInfo = typer.Option(
    "--settings",
    help="Settings JSON (header synonyms, company signals); falls back to "
    "BILLING_SETTINGS_PATH, then the bundled defaults.",
    dir_okay=False,
)
MONTH_OPTION: OptionInfo = typer.Option("--month", help="Month key, e.g. 'feb 2026'.")
WEEK_OPTION: OptionInfo = typer.Option("--week", help="Week key, e.g. 'Semana 7 - 2026'.")


def _exit(code: int) -> None:
    if code:
        raise typer.Exit(code)


@app.command("ingest")
def ingest_cmd(
    path: Annotated[Path, typer.Argument(help="Path to an .xlsx or .csv export.", dir_okay=False)],
    *,
    sheet: str | None = typer.Option(None, help="Worksheet name (defaults to the first)."),
    department: str | None = typer.Option(None, help="Tag every record with a department."),
    date_policy: DatePolicy = typer.Option(
        DatePolicy.REJECT, help="Unparseable dates: reject the row or use today's date."
    ),
    dedup: DedupPolicy = typer.Option(
        DedupPolicy.ALLOW, help="Repeated fingerprints: allow, reject, or merge."
    ),
    dry_run: bool = typer.Option(False, help="Validate and normalize without writing."),
    database_url: Annotated[str | None, DATABASE_URL_OPTION] = None,
    settings_path: Annotated[Path | None, SETTINGS_OPTION] = None,
) -> None:
    """Validate an export and store its accepted rows."""

    _exit(
        cmd_ingest(
            path,
            sheet=sheet,
            department=department,
            date_policy=date_policy,
            dedup_policy=dedup,
            persist=not dry_run,
            database_url=database_url,
            settings_path=settings_path,
        )
    )


@app.command("summary")
def summary_cmd(
    *,
    path: Path | None = typer.Option(
        None, "--file", help="Summarize this export instead of the stored records.", dir_okay=False
    ),
    sheet: str | None = typer.Option(None, help="Worksheet name for --file."),
    month: Annotated[str | None, MONTH_OPTION] = None,
    week: Annotated[str | None, WEEK_OPTION] = None,
    department: str | None = typer.Option(None, help="Only records with this department tag."),
    date_policy: DatePolicy = typer.Option(DatePolicy.REJECT, help="Date policy for --file."),
    database_url: Annotated[str | None, DATABASE_URL_OPTION] = None,
    settings_path: Annotated[Path | None, SETTINGS_OPTION] = None,
) -> None:
    """Totals per driver, client, month and week."""

    _exit(
        cmd_summary(
            path=path,
            sheet=sheet,
            month=month,
            week=week,
            department=department,
            date_policy=date_policy,
            database_url=database_url,
            settings_path=settings_path,
        )
    )


@app.command("periods")
def periods_cmd(
    *,
    month: Annotated[str | None, MONTH_OPTION] = None,
    database_url: Annotated[str | None, DATABASE_URL_OPTION] = None,
    settings_path: Annotated[Path | None, SETTINGS_OPTION] = None,
) -> None:
    """List stored months and weeks with their record counts."""

    _exit(cmd_periods(month=month, database_url=database_url, settings_path=settings_path))


@app.command("compare")
def compare_cmd(
    drivers: Annotated[list[str], typer.Argument(help="Driver names to compare.")],
    *,
    month: Annotated[str | None, MONTH_OPTION] = None,
    week: Annotated[str | None, WEEK_OPTION] = None,
    database_url: Annotated[str | None, DATABASE_URL_OPTION] = None,
) -> None:
    """Compare totals for selected drivers, highest first."""

    _exit(cmd_compare(drivers, month=month, week=week, database_url=database_url))


@app.command("delete-month")
def delete_month_cmd(
    month: Annotated[str, typer.Argument(help="Month key, e.g. 'feb 2026'.")],
    *,
    database_url: Annotated[str | None, DATABASE_URL_OPTION] = None,
) -> None:
    """Delete every stored record of one month."""

    _exit(cmd_delete(month=month, database_url=database_url))


@app.command("delete-week")
def delete_week_cmd(
    week: Annotated[str, typer.Argument(help="Week key, e.g. 'Semana 7 - 2026'.")],
    *,
    database_url: Annotated[str | None, DATABASE_URL_OPTION] = None,
) -> None:
    """Delete every stored record of one ISO week."""

    _exit(cmd_delete(week=week, database_url=database_url))


@app.command("reset")
def reset_cmd(
    *,
    yes: bool = typer.Option(False, "--yes", help="Skip the confirmation prompt."),
    database_url: Annotated[str | None, DATABASE_URL_OPTION] = None,
) -> None:
    """Delete all stored records."""

    if not yes and not typer.confirm("Delete ALL stored billing records?"):
        typer.echo("Aborted.")
        raise typer.Exit(1)
    _exit(cmd_reset(database_url=database_url))


@app.callback()
def _root(
    *,
    log_level: str | None = typer.Option(
        None, help="Logging level (falls back to BILLING_ANALYSIS_LOG_LEVEL, then INFO)."
    ),
) -> None:
    """Root command.

    Loads ``.env`` from the current working directory (without overriding any
    already-set environment variables) and configures package logging.
    """

    load_dotenv(dotenv_path=Path.cwd() / ".env", override=False)

    # Central logging setup so child loggers inherit configuration
    configure_logging(log_level)


if __name__ == "__main__":  # pragma: no cover
    # Running as a module: `python -m billing_analysis.cli`
    app()
