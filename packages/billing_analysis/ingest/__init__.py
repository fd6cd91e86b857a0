"""Ingestion edge: reader adapters and the settings seed."""

from .utils import load_rows

__all__ = ["load_rows"]
