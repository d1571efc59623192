"""Content index data models."""

from __future__ import annotations

from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field


class FileMetadata(BaseModel):
    """Metadata for one distinct piece of content.

    Field aliases match the keys of the persisted index document.

    Attributes:
        hash: SHA-256 hex digest of the content.
        size: Content length in bytes, recorded on first observation.
        paths: Absolute paths known to hold this content, in discovery order.
        captured_at: Capture timestamp extracted from embedded metadata.
        canonical_link_path: Hash tree location once it has been materialized.
    """

    model_config = ConfigDict(populate_by_name=True)

    hash: str
    size: int
    paths: List[str] = Field(default_factory=list, alias="files")
    captured_at: Optional[str] = Field(default=None, alias="date")
    canonical_link_path: Optional[str] = Field(default=None, alias="hashfile")

    @property
    def first_path(self) -> str:
        """Return the earliest known path for this content."""
        return self.paths[0]


__all__ = ["FileMetadata"]
