"""DB helpers for tests: bootstrap a temporary SQLite DB with the billing schema."""

from __future__ import annotations

import os
from pathlib import Path

from db import Base
from db.client import get_engine, session_scope
from db.models.billing import BillingRecordRow
from sqlalchemy import text as sql_text


def bootstrap_sqlite_db(db_file: Path, *, set_default_env: bool = False) -> str:
    """Create a SQLite database file, initialize schema, and return the URL.

    Using a file-backed SQLite DB ensures multiple SQLAlchemy connections share
    the same state (in-memory DBs are per-connection by default).
    """

    url = f"sqlite+pysqlite:///{db_file}"
    db_file.parent.mkdir(parents=True, exist_ok=True)
    engine = get_engine(database_url=url)
    Base.metadata.create_all(bind=engine)
    _assert_records_schema_in_sync(url)

    if set_default_env:
        os.environ.setdefault("DATABASE_URL", url)
    return url


def count_rows(database_url: str) -> int:
    with session_scope(database_url=database_url) as session:
        return session.query(BillingRecordRow).count()


def _assert_records_schema_in_sync(database_url: str) -> None:
    """Quick sanity check: ORM column set matches the SQLite table column set."""

    expected = {c.name for c in BillingRecordRow.__table__.columns}
    with session_scope(database_url=database_url) as session:
        rows = session.execute(sql_text("PRAGMA table_info('billing_records')")).fetchall()
        got = {row[1] for row in rows}  # (cid, name, type, notnull, dflt_value, pk)
    missing = expected - got
    extra = got - expected
    assert not missing and not extra, (
        f"billing_records schema drift: missing={missing or '∅'}, extra={extra or '∅'}"
    )
