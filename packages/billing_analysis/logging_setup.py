"""Logging for ``billing_analysis``.

Every module logs through ``get_logger("billing_analysis.<module>")``: batch
outcomes from the normalizer, chunk failures from persistence, date fallbacks
as warnings. Nothing is printed until :func:`configure_logging` runs, which the
CLI does once per process (``--log-level`` or ``BILLING_ANALYSIS_LOG_LEVEL``).
"""

from __future__ import annotations

import logging
import os
import sys
from typing import IO

_PKG_LOGGER_NAME = "billing_analysis"
_CONFIGURED = False


def _level_from_name(name: str) -> int | None:
    # Accept numeric strings or standard level names (INFO/DEBUG/etc.).
    name = name.strip().upper()
    if name.isdigit():
        return int(name)
    numeric = getattr(logging, name, None)
    return numeric if isinstance(numeric, int) else None


def _parse_level(level: int | str | None) -> int:
    if isinstance(level, int):
        return level
    if isinstance(level, str):
        parsed = _level_from_name(level)
        if parsed is not None:
            return parsed
    # Env override when explicit ``level`` is missing or unparseable
    env_val = os.getenv("BILLING_ANALYSIS_LOG_LEVEL")
    if env_val:
        parsed = _level_from_name(env_val)
        if parsed is not None:
            return parsed
    return logging.INFO


def configure_logging(
    level: int | str | None = None,
    *,
    fmt: str | None = None,
    stream: IO[str] = sys.stderr,
) -> None:
    """Attach one stderr handler to the ``billing_analysis`` logger; later calls are no-ops.

    ``level`` wins over ``BILLING_ANALYSIS_LOG_LEVEL``; an unknown name in either
    falls back to INFO.
    """

    global _CONFIGURED
    if _CONFIGURED:
        return

    logger = logging.getLogger(_PKG_LOGGER_NAME)

    # Drop NullHandlers added by get_logger() before configuration.
    for h in list(logger.handlers):
        if isinstance(h, logging.NullHandler):
            logger.removeHandler(h)

    resolved = _parse_level(level)
    handler = logging.StreamHandler(stream)
    handler.setLevel(resolved)
    handler.setFormatter(
        logging.Formatter(fmt or "%(asctime)s %(name)s %(levelname)s %(message)s")
    )

    logger.setLevel(resolved)
    logger.addHandler(handler)
    logger.propagate = False

    _CONFIGURED = True


def get_logger(name: str) -> logging.Logger:
    """Return a logger by name, silent until an application configures output."""

    pkg_logger = logging.getLogger(_PKG_LOGGER_NAME)
    if not _CONFIGURED and not pkg_logger.handlers:
        pkg_logger.addHandler(logging.NullHandler())
    return logging.getLogger(name)
