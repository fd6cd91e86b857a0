"""Ingestion settings: header synonyms, swap-detection signals, required fields.

Settings are configuration data, not code. Defaults ship as a JSON seed next
to the ingest adapters (``ingest/seeds/billing_settings.v1.json``); operators
point ``BILLING_SETTINGS_PATH`` (or the CLI ``--settings`` option) at their own
copy when a client renames spreadsheet columns.
"""

from __future__ import annotations

import json
import os
from functools import lru_cache
from os import PathLike
from pathlib import Path

from pydantic import BaseModel, ConfigDict, field_validator, model_validator

CANONICAL_FIELDS: tuple[str, ...] = ("date", "driver", "client", "amount")

DEFAULT_SETTINGS_PATH: Path = Path(__file__).parent / "ingest" / "seeds" / "billing_settings.v1.json"


class IngestSettings(BaseModel):
    """Validated ingestion configuration."""

    model_config = ConfigDict(strict=True, extra="forbid", frozen=True)

    field_synonyms: dict[str, list[str]]
    company_signals: list[str] = []
    required_fields: list[str] = ["date", "amount"]
    month_abbreviations: list[str]
    # Spreadsheet row of the first data row (row 1 holds the headers).
    first_data_row: int = 2
    write_batch_size: int = 450

    @field_validator("field_synonyms")
    @classmethod
    def _synonyms_cover_canonical_fields(cls, v: dict[str, list[str]]) -> dict[str, list[str]]:
        missing = [f for f in CANONICAL_FIELDS if not v.get(f)]
        if missing:
            raise ValueError(f"field_synonyms missing entries for: {', '.join(missing)}")
        return {k: [s for s in names if s.strip()] for k, names in v.items()}

    @field_validator("company_signals")
    @classmethod
    def _non_empty_signals(cls, v: list[str]) -> list[str]:
        return [s for s in v if s.strip()]

    @field_validator("month_abbreviations")
    @classmethod
    def _twelve_months(cls, v: list[str]) -> list[str]:
        if len(v) != 12:
            raise ValueError("month_abbreviations must contain exactly 12 entries")
        return [m.strip().lower() for m in v]

    @field_validator("first_data_row", "write_batch_size")
    @classmethod
    def _positive(cls, v: int) -> int:
        if v <= 0:
            raise ValueError("must be a positive integer")
        return v

    @model_validator(mode="after")
    def _required_fields_known(self) -> IngestSettings:
        unknown = [f for f in self.required_fields if f not in CANONICAL_FIELDS]
        if unknown:
            raise ValueError(f"unknown required_fields: {', '.join(unknown)}")
        return self

    def synonyms_for(self, field: str) -> list[str]:
        return list(self.field_synonyms.get(field, []))

    def primary_header(self, field: str) -> str:
        """Return the first configured header for ``field`` (used in messages)."""

        names = self.field_synonyms.get(field) or [field]
        return names[0]


def load_settings(path: str | PathLike[str] | None = None) -> IngestSettings:
    """Load settings from ``path``, ``BILLING_SETTINGS_PATH``, or the bundled seed.

    Raises ``FileNotFoundError`` for a missing explicit file and
    ``pydantic.ValidationError`` when the JSON does not match the schema.
    """

    if path is None:
        env_path = os.getenv("BILLING_SETTINGS_PATH")
        path = env_path if env_path and env_path.strip() else DEFAULT_SETTINGS_PATH
    p = Path(path)
    with p.open("r", encoding="utf-8") as f:
        data = json.load(f)
    return IngestSettings.model_validate(data)


@lru_cache(maxsize=1)
def default_settings() -> IngestSettings:
    """Return the bundled seed settings (cached; ignores the environment)."""

    return load_settings(DEFAULT_SETTINGS_PATH)


__all__ = [
    "CANONICAL_FIELDS",
    "DEFAULT_SETTINGS_PATH",
    "IngestSettings",
    "default_settings",
    "load_settings",
]
