"""Shared SQLAlchemy models registry for the workspace database.

Currently includes the billing record table used by ``billing_analysis``.
"""

from .billing import Base, BillingRecordRow

__all__ = [
    "Base",
    "BillingRecordRow",
]
