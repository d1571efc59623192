"""Thread-safe content-addressed index of scanned files."""

from __future__ import annotations

import json
import logging
import os
import threading
from pathlib import Path
from typing import Dict, List, Optional, Protocol, Set

from pydantic import ValidationError

from .errors import IndexContractError, IndexLoadError
from .models import FileMetadata

LOGGER = logging.getLogger(__name__)


class Hasher(Protocol):
    def compute(self, path: Path) -> str: ...


class TimestampSource(Protocol):
    def extract(self, path: Path) -> Optional[str]: ...


def normalize_path(path: str | Path) -> str:
    """Return the absolute, normalized string form used as a ``by_path`` key."""
    return os.path.abspath(os.path.expanduser(str(path)))


class ContentIndex:
    """Map content hashes and file paths to shared ``FileMetadata`` records.

    ``by_hash`` is the authoritative store; ``by_path`` aliases every known
    path to the record of its content. Both views are mutated together under
    a single lock so they never disagree.
    """

    def __init__(self, hasher: Hasher, extractor: Optional[TimestampSource] = None) -> None:
        """Create an empty index.

        Args:
            hasher: Computes the content digest of a file.
            extractor: Optional source of capture timestamps.
        """
        self._hasher = hasher
        self._extractor = extractor
        self._by_hash: Dict[str, FileMetadata] = {}
        self._by_path: Dict[str, FileMetadata] = {}
        self._annotated: Set[str] = set()
        self._lock = threading.Lock()

    def __len__(self) -> int:
        return len(self._by_hash)

    def lookup(
        self, *, hash: Optional[str] = None, path: Optional[str | Path] = None
    ) -> Optional[FileMetadata]:
        """Return the record for a hash or a path (exactly one must be given).

        Raises:
            IndexContractError: If both or neither keys are supplied.
        """
        if hash is not None and path is not None:
            raise IndexContractError("Specified both hash and path to lookup")
        if hash is None and path is None:
            raise IndexContractError("Specified neither hash nor path to lookup")

        if hash is not None:
            return self._by_hash.get(hash)
        return self._by_path.get(normalize_path(path))

    def record_file(self, path: str | Path) -> FileMetadata:
        """Add a file to the index, returning the record for its content.

        Already-known paths return immediately without reading the file.
        Hashing and timestamp extraction happen outside the lock; the
        locate-or-create, append and alias registration happen as one unit.

        Raises:
            OSError: If the file cannot be read.
        """
        key = normalize_path(path)
        known = self._by_path.get(key)
        if known is not None:
            return known

        file_path = Path(key)
        digest = self._hasher.compute(file_path)
        size = file_path.stat().st_size
        captured_at = self._extractor.extract(file_path) if self._extractor else None

        with self._lock:
            known = self._by_path.get(key)
            if known is not None:
                return known
            record = self._by_hash.get(digest)
            if record is None:
                record = FileMetadata(hash=digest, size=size, captured_at=captured_at)
                self._by_hash[digest] = record
            elif record.captured_at is None and captured_at is not None:
                record.captured_at = captured_at
            record.paths.append(key)
            self._by_path[key] = record
        LOGGER.debug("Recorded %s as %s", key, digest)
        return record

    def annotate_link(self, hash: str, path: str | Path) -> None:
        """Record where the hash tree materialized the content for ``hash``.

        Re-annotating with the same location is a no-op. A location loaded
        from a persisted index may be replaced once, when the hash tree is
        rebuilt somewhere else.

        Raises:
            IndexContractError: If the hash is unknown or was already
                annotated with a different location by this instance.
        """
        location = str(path)
        with self._lock:
            record = self._by_hash.get(hash)
            if record is None:
                raise IndexContractError(f"Cannot annotate unknown hash {hash}")
            current = record.canonical_link_path
            if hash in self._annotated and current != location:
                raise IndexContractError(
                    f"Hash {hash} is already linked at {current}, refusing {location}"
                )
            record.canonical_link_path = location
            self._annotated.add(hash)

    def records(self) -> List[FileMetadata]:
        """Return a snapshot of every record."""
        with self._lock:
            return list(self._by_hash.values())

    def total_size(self) -> int:
        """Return bytes used counting every known path as a separate copy.

        Hard links that already exist between input files are not detected.
        """
        with self._lock:
            return sum(record.size * len(record.paths) for record in self._by_hash.values())

    def deduped_size(self) -> int:
        """Return bytes used if each distinct content were stored once."""
        with self._lock:
            return sum(record.size for record in self._by_hash.values())

    def load(self, source: Path) -> None:
        """Replace the index contents with a persisted document.

        Args:
            source: JSON file written by ``persist``.

        Raises:
            IndexLoadError: If the file cannot be read or parsed.
        """
        try:
            data = json.loads(source.read_text(encoding="utf-8"))
        except (OSError, json.JSONDecodeError) as exc:
            raise IndexLoadError(f"Unable to read index {source}: {exc}") from exc
        if not isinstance(data, dict):
            raise IndexLoadError(f"Index {source} must contain an object at the top level.")

        by_hash: Dict[str, FileMetadata] = {}
        by_path: Dict[str, FileMetadata] = {}
        for digest, entry in data.items():
            if not isinstance(entry, dict):
                raise IndexLoadError(f"Index entry {digest} in {source} is not an object.")
            try:
                record = FileMetadata.model_validate({"hash": digest, **entry})
            except ValidationError as exc:
                raise IndexLoadError(f"Invalid index entry {digest} in {source}: {exc}") from exc
            record.paths = list(dict.fromkeys(record.paths))
            if not record.paths:
                raise IndexLoadError(f"Index entry {digest} in {source} lists no files.")
            by_hash[record.hash] = record
            for file_path in record.paths:
                by_path[file_path] = record

        with self._lock:
            self._by_hash = by_hash
            self._by_path = by_path
            self._annotated = set()
        LOGGER.debug("Loaded %d records from %s", len(by_hash), source)

    def persist(self, sink: Path) -> None:
        """Write the full index to ``sink`` as a JSON document keyed by hash."""
        with self._lock:
            payload = {
                digest: record.model_dump(mode="json", by_alias=True)
                for digest, record in self._by_hash.items()
            }
        sink.parent.mkdir(parents=True, exist_ok=True)
        sink.write_text(json.dumps(payload), encoding="utf-8")
        LOGGER.debug("Wrote %d records to %s", len(payload), sink)


__all__ = ["ContentIndex", "Hasher", "TimestampSource", "normalize_path"]
