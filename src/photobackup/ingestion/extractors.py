"""Capture timestamp extraction from embedded image metadata."""

from __future__ import annotations

import logging
from datetime import datetime
from pathlib import Path
from typing import Optional

from PIL import ExifTags, Image

LOGGER = logging.getLogger(__name__)

EXIF_DATE_FORMAT = "%Y:%m:%d %H:%M:%S"


def parse_capture_date(value: str) -> Optional[datetime]:
    """Parse an ISO-8601 or EXIF-style timestamp, returning None on failure."""
    text = value.strip()
    try:
        return datetime.fromisoformat(text)
    except ValueError:
        pass
    try:
        return datetime.strptime(text, EXIF_DATE_FORMAT)
    except ValueError:
        return None


class CaptureDateExtractor:
    """Read the capture timestamp of a photo from its EXIF tags.

    Tags are tried in order of preference: ``DateTimeOriginal``, ``DateTime``,
    then ``DateTimeDigitized``. Files without readable EXIF data (including
    non-images) yield None; errors are never raised.
    """

    def extract(self, path: Path) -> Optional[str]:
        """Return the capture timestamp of ``path`` as an ISO-8601 string."""
        try:
            with Image.open(path) as img:
                exif = img.getexif()
                exif_ifd = exif.get_ifd(ExifTags.IFD.Exif)
                candidates = (
                    exif_ifd.get(ExifTags.Base.DateTimeOriginal),
                    exif.get(ExifTags.Base.DateTime),
                    exif_ifd.get(ExifTags.Base.DateTimeDigitized),
                )
        except Exception as exc:  # non-images and corrupt files
            LOGGER.debug("No EXIF data for %s: %s", path, exc)
            return None

        for raw in candidates:
            if not raw:
                continue
            parsed = parse_capture_date(str(raw))
            if parsed is not None:
                return parsed.isoformat()
            LOGGER.debug("Ignoring unparsable EXIF date %r in %s", raw, path)
        return None
