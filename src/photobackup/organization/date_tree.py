"""Symlink tree keyed by capture date."""

from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Optional, Tuple

from photobackup.index import FileMetadata
from photobackup.ingestion.extractors import parse_capture_date
from photobackup.workers import ProgressCallback, ProgressCounter, run_pool

from .hash_tree import LinkOutcome
from .models import BuildResult, HashTree, file_extension

LOGGER = logging.getLogger(__name__)

UNKNOWN_DIRNAME = "Unknown"


def date_destination(root: Path, record: FileMetadata) -> Path:
    """Return the date tree location for a record.

    Records with a parsable capture date land in ``root/YYYY/MM`` as
    ``YYYY-MM-DD-HH-MM-SS-<hash>.<ext>``; all others land in
    ``root/Unknown/<hash>.<ext>``.
    """
    extension = file_extension(record.first_path)
    captured = parse_capture_date(record.captured_at) if record.captured_at else None
    if record.captured_at and captured is None:
        LOGGER.warning(
            "Invalid capture date %r for file %s", record.captured_at, record.first_path
        )

    if captured is None:
        return root / UNKNOWN_DIRNAME / f"{record.hash}.{extension}"

    directory = root / f"{captured.year:04d}" / f"{captured.month:02d}"
    stamp = captured.strftime("%Y-%m-%d-%H-%M-%S")
    return directory / f"{stamp}-{record.hash}.{extension}"


class DateTreeBuilder:
    """Symlink hash tree entries into a chronological year/month tree."""

    def __init__(
        self,
        *,
        threads: int = 1,
        progress: Optional[ProgressCallback] = None,
    ) -> None:
        self.threads = max(1, threads)
        self.progress = progress

    def build(self, hash_tree: HashTree, root: Path) -> BuildResult:
        """Create the date tree under ``root`` from a built hash tree.

        Args:
            hash_tree: Result of ``HashTreeBuilder.build``; its index supplies
                each record's link target.
            root: Destination root of the date tree.

        Returns:
            BuildResult: Counts of created, skipped, and failed links.
        """
        root = root.expanduser().absolute()
        records = hash_tree.index.records()
        result = BuildResult(root=root)
        LOGGER.info("Building date tree of %d entries in %s", len(records), root)

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
        return result

    def _link(self, root: Path, record: FileMetadata) -> Tuple[LinkOutcome, str]:
        destination = date_destination(root, record)
        target = record.canonical_link_path
        if target is None:
            LOGGER.warning(
                "Unable to create link for file %s, no hash tree entry for %s",
                destination,
                record.hash,
            )
            return LinkOutcome.FAILED, f"{destination}: missing hash tree entry"

        try:
            destination.parent.mkdir(parents=True, exist_ok=True)
            if os.path.lexists(destination):
                return LinkOutcome.SKIPPED, ""
            destination.symlink_to(target)
        except FileExistsError:
            return LinkOutcome.SKIPPED, ""
        except OSError as exc:
            LOGGER.warning("Unable to create link for file %s: %s", destination, exc)
            return LinkOutcome.FAILED, f"{destination}: {exc}"

        LOGGER.debug("Linked %s -> %s", destination, target)
        return LinkOutcome.CREATED, ""
