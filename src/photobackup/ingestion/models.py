"""Ingestion result models."""

from __future__ import annotations

from pathlib import Path
from typing import List

from pydantic import BaseModel, Field


class IngestionResult(BaseModel):
    """Aggregated outcome of scanning one or more roots.

    Attributes:
        roots: Roots that were scanned.
        discovered: Entries that passed the scanner filters.
        recorded: Entries successfully recorded in the index.
        errors: ``"<path>: <reason>"`` messages for skipped entries.
    """

    roots: List[Path] = Field(default_factory=list)
    discovered: int = 0
    recorded: int = 0
    errors: List[str] = Field(default_factory=list)


__all__ = ["IngestionResult"]
