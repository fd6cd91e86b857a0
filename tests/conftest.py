"""Pytest configuration for test isolation.

Settings and the database URL are read from the environment
(``BILLING_SETTINGS_PATH``, ``DATABASE_URL``) and the db client keeps a
process-wide engine. To keep tests hermetic, an autouse fixture clears both
variables and disposes the shared engine around every test.
"""

from __future__ import annotations

from collections.abc import Iterator

import pytest
from db.client import reset_engine


@pytest.fixture(autouse=True)
def _isolate_env(monkeypatch: pytest.MonkeyPatch) -> Iterator[None]:
    monkeypatch.delenv("BILLING_SETTINGS_PATH", raising=False)
    monkeypatch.delenv("DATABASE_URL", raising=False)
    monkeypatch.delenv("BILLING_ANALYSIS_LOG_LEVEL", raising=False)
    reset_engine()
    yield
    reset_engine()
