"""File type detection and hashing utilities."""

from __future__ import annotations

import hashlib
import logging
from pathlib import Path

LOGGER = logging.getLogger(__name__)

CHUNK_SIZE = 8 * 1024 * 1024
FALLBACK_MIME = "application/octet-stream"


class TypeDetector:
    """Identify MIME types by sniffing file content with python-magic."""

    def detect(self, path: Path) -> str:
        """Return the MIME type of ``path``, or ``application/octet-stream``."""
        import magic

        try:
            return str(magic.from_file(str(path), mime=True))
        except magic.MagicException as exc:
            LOGGER.warning("Unable to sniff type of %s: %s", path, exc)
            return FALLBACK_MIME

    def is_image(self, path: Path) -> bool:
        """Return True when the sniffed MIME type is ``image/*``."""
        return self.detect(path).startswith("image/")


class HashComputer:
    """Compute SHA-256 content hashes for deduplication."""

    def compute(self, path: Path) -> str:
        """Return a hex digest representing the file contents."""
        sha = hashlib.sha256()
        with path.open("rb") as fh:
            for chunk in iter(lambda: fh.read(CHUNK_SIZE), b""):
                sha.update(chunk)
        return sha.hexdigest()
