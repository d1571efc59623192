"""High-level photo library tying the index, trees, and remote sync together."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, Optional

from photobackup.config import PhotoBackupConfig
from photobackup.index import ContentIndex, FileMetadata
from photobackup.ingestion import (
    CaptureDateExtractor,
    DirectoryScanner,
    HashComputer,
    IngestionPipeline,
    IngestionResult,
    TypeDetector,
)
from photobackup.organization import BuildResult, DateTreeBuilder, HashTree, HashTreeBuilder
from photobackup.sync import RemoteSync, SyncResult, build_s3_client
from photobackup.workers import ProgressCallback

LOGGER = logging.getLogger(__name__)


class PhotoLibrary:
    """Content-addressed index of photos plus the trees derived from it.

    On construction the persisted index at ``scan.index_file`` is loaded
    unless ``scan.rescan`` is set or the file does not exist yet.
    """

    def __init__(
        self,
        config: PhotoBackupConfig,
        *,
        index: Optional[ContentIndex] = None,
        detector: Optional[TypeDetector] = None,
    ) -> None:
        self.config = config
        self.index_file = Path(config.scan.index_file).expanduser()
        self.threads = config.scan.threads
        if index is None:
            index = ContentIndex(HashComputer(), CaptureDateExtractor())
        self.index = index
        self._detector = detector

        if config.scan.rescan:
            LOGGER.info("Rescan requested; ignoring persisted index %s", self.index_file)
        elif self.index_file.is_file():
            self.index.load(self.index_file)

    def add_directory(
        self, directory: Path, progress: Optional[ProgressCallback] = None
    ) -> IngestionResult:
        """Recursively add every file under ``directory`` to the index."""
        scanner = DirectoryScanner(
            only_images=self.config.scan.only_images,
            detector=self._detector,
        )
        pipeline = IngestionPipeline(
            scanner, self.index, threads=self.threads, progress=progress
        )
        return pipeline.run([directory])

    def persist(self) -> None:
        """Write the index to ``scan.index_file``."""
        self.index.persist(self.index_file)

    def lookup(
        self, *, hash: Optional[str] = None, path: Optional[str | Path] = None
    ) -> Optional[FileMetadata]:
        return self.index.lookup(hash=hash, path=path)

    def total_size(self) -> int:
        return self.index.total_size()

    def deduped_size(self) -> int:
        return self.index.deduped_size()

    def build_hash_tree(
        self, root: Path, progress: Optional[ProgressCallback] = None
    ) -> HashTree:
        """Hard-link one copy of each distinct file under ``root``."""
        builder = HashTreeBuilder(self.index, threads=self.threads, progress=progress)
        return builder.build(root)

    def build_date_tree(
        self,
        hash_tree: HashTree,
        root: Path,
        progress: Optional[ProgressCallback] = None,
    ) -> BuildResult:
        """Symlink the entries of ``hash_tree`` into a year/month tree under ``root``."""
        builder = DateTreeBuilder(threads=self.threads, progress=progress)
        return builder.build(hash_tree, root)

    def sync(
        self,
        source: Path,
        destination: str,
        *,
        client: Any = None,
        progress: Optional[ProgressCallback] = None,
    ) -> SyncResult:
        """Upload files under ``source`` that are missing from ``destination``."""
        if client is None:
            client = build_s3_client(self.config.remote)
        remote = RemoteSync(client, threads=self.threads, progress=progress)
        return remote.sync(source, destination)


__all__ = ["PhotoLibrary"]
