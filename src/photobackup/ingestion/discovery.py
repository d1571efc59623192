"""File discovery utilities."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import List, Optional

from .detectors import TypeDetector

LOGGER = logging.getLogger(__name__)


def list_files(root: Path) -> List[Path]:
    """Return every non-directory entry under ``root``, recursively."""
    return sorted(path for path in root.rglob("*") if not path.is_dir())


class DirectoryScanner:
    """Discover files within a directory tree subject to an image filter."""

    def __init__(
        self, *, only_images: bool = False, detector: Optional[TypeDetector] = None
    ) -> None:
        self.only_images = only_images
        self.detector = detector or TypeDetector()

    def scan(self, root: Path) -> List[Path]:
        """Return absolute paths of files under ``root`` that pass the filter.

        Raises:
            FileNotFoundError: If ``root`` is not an existing directory.
        """
        root = root.expanduser().absolute()
        if not root.is_dir():
            raise FileNotFoundError(f"Directory to scan does not exist: {root}")

        files = list_files(root)
        if not self.only_images:
            return files
        return [path for path in files if self._is_image(path)]

    def _is_image(self, path: Path) -> bool:
        try:
            return self.detector.is_image(path)
        except OSError as exc:
            LOGGER.warning("Skipping %s: unable to read file type: %s", path, exc)
            return False
