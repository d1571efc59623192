"""High-level ingestion pipeline orchestration."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Iterable, Optional

from photobackup.index import ContentIndex
from photobackup.workers import ProgressCallback, ProgressCounter, run_pool

from .discovery import DirectoryScanner
from .models import IngestionResult

LOGGER = logging.getLogger(__name__)


class IngestionPipeline:
    """Scan roots and record every discovered file in a content index."""

    def __init__(
        self,
        scanner: DirectoryScanner,
        index: ContentIndex,
        *,
        threads: int = 1,
        progress: Optional[ProgressCallback] = None,
    ) -> None:
        self.scanner = scanner
        self.index = index
        self.threads = max(1, threads)
        self.progress = progress

    def run(self, roots: Iterable[Path]) -> IngestionResult:
        """Process one or more roots and return aggregated results.

        Files that cannot be read are logged and reported in
        ``IngestionResult.errors``; the remaining files are still recorded.
        """
        result = IngestionResult()

        for root in roots:
            LOGGER.info("Adding directory %s", root)
            files = self.scanner.scan(root)
            result.roots.append(root)
            result.discovered += len(files)

            counter = ProgressCounter(len(files), self.progress)
            outcomes = run_pool(files, self._record, threads=self.threads, progress=counter)
            for outcome in outcomes:
                if outcome is None:
                    result.recorded += 1
                else:
                    result.errors.append(outcome)

        return result

    def _record(self, path: Path) -> Optional[str]:
        try:
            self.index.record_file(path)
        except OSError as exc:
            LOGGER.warning("Skipping unreadable file %s: %s", path, exc)
            return f"{path}: {exc}"
        return None
