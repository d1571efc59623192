"""Ingestion pipeline package."""

from .detectors import HashComputer, TypeDetector
from .discovery import DirectoryScanner, list_files
from .extractors import CaptureDateExtractor, parse_capture_date
from .models import IngestionResult
from .pipeline import IngestionPipeline

__all__ = [
    "CaptureDateExtractor",
    "DirectoryScanner",
    "HashComputer",
    "IngestionPipeline",
    "IngestionResult",
    "TypeDetector",
    "list_files",
    "parse_capture_date",
]
