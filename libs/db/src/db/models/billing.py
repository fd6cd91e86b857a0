from __future__ import annotations

from datetime import date, datetime
from decimal import Decimal
from typing import Any

from sqlalchemy import (
    JSON,
    Date,
    DateTime,
    Index,
    Integer,
    Numeric,
    String,
    Text,
    func,
)
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column


class Base(DeclarativeBase):
    pass


# ---------------------------
# Core: billing_records
# ---------------------------


class BillingRecordRow(Base):
    __tablename__ = "billing_records"

    # Integer (not BigInteger) so SQLite treats it as a rowid alias.
    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    driver: Mapped[str] = mapped_column(Text, nullable=False)
    client: Mapped[str] = mapped_column(Text, nullable=False)
    date: Mapped[date] = mapped_column(Date, nullable=False)
    amount: Mapped[Decimal] = mapped_column(Numeric(18, 2), nullable=False)
    # Display keys are stored as derived at ingest time ("feb 2026",
    # "Semana 7 - 2026") so period filters and deletes match exactly.
    month: Mapped[str] = mapped_column(String, nullable=False)
    month_index: Mapped[str] = mapped_column(String(7), nullable=False)
    iso_week: Mapped[int] = mapped_column(Integer, nullable=False)
    iso_year: Mapped[int] = mapped_column(Integer, nullable=False)
    week_key: Mapped[str] = mapped_column(String, nullable=False)
    # Not unique: duplicate handling is a policy decision made before writing.
    fingerprint: Mapped[str] = mapped_column(Text, nullable=False)
    department: Mapped[str | None] = mapped_column(String, nullable=True)
    row_number: Mapped[int | None] = mapped_column(Integer, nullable=True)
    raw_record: Mapped[dict[str, Any]] = mapped_column(JSON, nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, server_default=func.now()
    )

    __table_args__ = (
        Index("ix_billing_records_fingerprint", "fingerprint"),
        Index("ix_billing_records_month", "month"),
        Index("ix_billing_records_week_key", "week_key"),
    )


__all__ = [
    "Base",
    "BillingRecordRow",
]
