"""Hardlink tree keyed by content hash."""

from __future__ import annotations

import logging
from enum import Enum
from pathlib import Path
from typing import Optional, Tuple

from photobackup.index import ContentIndex, FileMetadata
from photobackup.workers import ProgressCallback, ProgressCounter, run_pool

from .models import BuildResult, HashTree, file_extension

LOGGER = logging.getLogger(__name__)

BUCKET_WIDTH = 3


class LinkOutcome(Enum):
    CREATED = "created"
    SKIPPED = "skipped"
    FAILED = "failed"


def hash_destination(root: Path, record: FileMetadata) -> Path:
    """Return ``root/<hash[:3]>/<hash>.<ext>`` for a record."""
    extension = file_extension(record.first_path)
    return root / record.hash[:BUCKET_WIDTH] / f"{record.hash}.{extension}"


class HashTreeBuilder:
    """Hard-link one copy of every distinct content into a hash-bucketed tree."""

    def __init__(
        self,
        index: ContentIndex,
        *,
        threads: int = 1,
        progress: Optional[ProgressCallback] = None,
    ) -> None:
        self.index = index
        self.threads = max(1, threads)
        self.progress = progress

    def build(self, root: Path) -> HashTree:
        """Materialize the tree under ``root`` and annotate each record.

        Existing destinations are left untouched, so a re-run only links what
        a previous run missed. Link failures are logged and counted.

        Args:
            root: Destination root of the hash tree.

        Returns:
            HashTree: The tree root, annotated index, and build counts.
        """
        root = root.expanduser().absolute()
        root.mkdir(parents=True, exist_ok=True)
        records = self.index.records()
        result = BuildResult(root=root)
        LOGGER.info("Building hash tree of %d entries in %s", len(records), root)

        counter = ProgressCounter(len(records), self.progress)
        outcomes = run_pool(
            records,
            lambda record: self._link(root, record),
            threads=self.threads,
            progress=counter,
        )
        for outcome, message in outcomes:
            if outcome is LinkOutcome.CREATED:
                result.created += 1
            elif outcome is LinkOutcome.SKIPPED:
                result.skipped += 1
            else:
                result.failed.append(message)

        return HashTree(root=root, index=self.index, result=result)

    def _link(self, root: Path, record: FileMetadata) -> Tuple[LinkOutcome, str]:
        destination = hash_destination(root, record)
        source = Path(record.first_path)
        outcome = LinkOutcome.SKIPPED
        try:
            destination.parent.mkdir(parents=True, exist_ok=True)
            if not destination.exists():
                destination.hardlink_to(source)
                outcome = LinkOutcome.CREATED
        except FileExistsError:
            outcome = LinkOutcome.SKIPPED
        except OSError as exc:
            LOGGER.warning("Unable to make link for %s to %s: %s", destination, source, exc)
            return LinkOutcome.FAILED, f"{destination}: {exc}"

        self.index.annotate_link(record.hash, destination)
        LOGGER.debug("%s %s", outcome.value.capitalize(), destination)
        return outcome, ""
