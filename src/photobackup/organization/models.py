"""Link tree build models."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import List

from photobackup.index import ContentIndex

DEFAULT_EXTENSION = "jpg"


def file_extension(path: str) -> str:
    """Return the extension of ``path``'s file name without the dot.

    Files without an extension are assumed to be JPEG photos.
    """
    name = Path(path).name
    _, dot, extension = name.rpartition(".")
    if not dot or not extension:
        return DEFAULT_EXTENSION
    return extension


@dataclass(slots=True)
class BuildResult:
    """Counts describing one tree build.

    Attributes:
        root: Destination root of the tree.
        created: Links created during this build.
        skipped: Entries whose destination already existed.
        failed: ``"<destination>: <reason>"`` messages for entries that failed.
    """

    root: Path
    created: int = 0
    skipped: int = 0
    failed: List[str] = field(default_factory=list)

    @property
    def total(self) -> int:
        return self.created + self.skipped + len(self.failed)


@dataclass(slots=True)
class HashTree:
    """A materialized hash tree together with the index it annotated.

    Only ``HashTreeBuilder.build`` produces instances, so holding one proves
    that every linkable record has its ``canonical_link_path`` set.
    """

    root: Path
    index: ContentIndex
    result: BuildResult


__all__ = ["DEFAULT_EXTENSION", "BuildResult", "HashTree", "file_extension"]
