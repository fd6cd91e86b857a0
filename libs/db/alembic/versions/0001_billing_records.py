# ruff: noqa: I001
"""Billing records table.

Revision ID: 0001_billing_records
Revises: None
Create Date: 2026-10-18
"""

from __future__ import annotations  # ruff: noqa: I001

from collections.abc import Sequence

import sqlalchemy as sa
from alembic import op


# revision identifiers, used by Alembic.
revision: str = "0001_billing_records"
down_revision: str | None = None
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None


def upgrade() -> None:
    op.create_table(
        "billing_records",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("driver", sa.Text(), nullable=False),
        sa.Column("client", sa.Text(), nullable=False),
        sa.Column("date", sa.Date(), nullable=False),
        sa.Column("amount", sa.Numeric(18, 2), nullable=False),
        sa.Column("month", sa.String(), nullable=False),
        sa.Column("month_index", sa.String(7), nullable=False),
        sa.Column("iso_week", sa.Integer(), nullable=False),
        sa.Column("iso_year", sa.Integer(), nullable=False),
        sa.Column("week_key", sa.String(), nullable=False),
        sa.Column("fingerprint", sa.Text(), nullable=False),
        sa.Column("department", sa.String(), nullable=True),
        sa.Column("row_number", sa.Integer(), nullable=True),
        sa.Column("raw_record", sa.JSON(), nullable=False),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.func.now(),
        ),
    )
    op.create_index("ix_billing_records_fingerprint", "billing_records", ["fingerprint"])
    op.create_index("ix_billing_records_month", "billing_records", ["month"])
    op.create_index("ix_billing_records_week_key", "billing_records", ["week_key"])


def downgrade() -> None:
    op.drop_index("ix_billing_records_week_key", table_name="billing_records")
    op.drop_index("ix_billing_records_month", table_name="billing_records")
    op.drop_index("ix_billing_records_fingerprint", table_name="billing_records")
    op.drop_table("billing_records")
