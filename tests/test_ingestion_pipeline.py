"""Tests covering discovery, extraction, and the ingestion pipeline."""

from datetime import datetime
from pathlib import Path

import pytest
from PIL import ExifTags, Image

from photobackup.index import ContentIndex
from photobackup.ingestion import (
    CaptureDateExtractor,
    DirectoryScanner,
    HashComputer,
    IngestionPipeline,
    TypeDetector,
    parse_capture_date,
)


class SuffixDetector(TypeDetector):
    """Treat files as images based on their suffix."""

    def detect(self, path: Path) -> str:
        return "image/jpeg" if path.suffix == ".jpg" else "text/plain"


def _tree(root: Path) -> list[Path]:
    files = [root / "a.jpg", root / "sub" / "b.jpg", root / "sub" / "deeper" / "notes.txt"]
    for number, path in enumerate(files):
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_bytes(f"payload-{number}".encode())
    (root / "empty-dir").mkdir()
    return files


def test_directory_scanner_lists_nested_files(tmp_path: Path) -> None:
    files = _tree(tmp_path)

    found = DirectoryScanner().scan(tmp_path)

    assert sorted(found) == sorted(files)


def test_directory_scanner_filters_non_images(tmp_path: Path) -> None:
    _tree(tmp_path)
    scanner = DirectoryScanner(only_images=True, detector=SuffixDetector())

    names = sorted(path.name for path in scanner.scan(tmp_path))

    assert names == ["a.jpg", "b.jpg"]


def test_directory_scanner_missing_root_raises(tmp_path: Path) -> None:
    with pytest.raises(FileNotFoundError):
        DirectoryScanner().scan(tmp_path / "missing")


def test_type_detector_sniffs_images(tmp_path: Path) -> None:
    pytest.importorskip("magic")
    image_path = tmp_path / "no-extension"
    Image.new("RGB", (8, 8), color="red").save(image_path, format="PNG")
    text_path = tmp_path / "note.txt"
    text_path.write_text("hello", encoding="utf-8")

    detector = TypeDetector()

    assert detector.is_image(image_path)
    assert not detector.is_image(text_path)


def test_pipeline_records_every_file_and_reports_progress(tmp_path: Path) -> None:
    files = _tree(tmp_path / "photos")
    (tmp_path / "photos" / "copy.jpg").write_bytes(b"payload-0")
    seen: list[tuple[int, int]] = []
    index = ContentIndex(HashComputer())
    pipeline = IngestionPipeline(
        DirectoryScanner(),
        index,
        threads=4,
        progress=lambda completed, total: seen.append((completed, total)),
    )

    result = pipeline.run([tmp_path / "photos"])

    assert result.discovered == result.recorded == len(files) + 1
    assert not result.errors
    assert len(index) == len(files)
    assert [completed for completed, _ in seen] == list(range(1, len(files) + 2))
    assert all(total == len(files) + 1 for _, total in seen)
    record = index.lookup(path=tmp_path / "photos" / "copy.jpg")
    assert record is not None and len(record.paths) == 2


def test_pipeline_second_scan_changes_nothing(tmp_path: Path) -> None:
    """Scanning the same directory twice leaves the index untouched.

    Args:
        tmp_path: Temporary directory provided by pytest.
    """
    _tree(tmp_path)
    index = ContentIndex(HashComputer())
    pipeline = IngestionPipeline(DirectoryScanner(), index, threads=2)

    pipeline.run([tmp_path])
    before = {record.hash: list(record.paths) for record in index.records()}
    pipeline.run([tmp_path])
    after = {record.hash: list(record.paths) for record in index.records()}

    assert before == after


def test_pipeline_skips_unreadable_files(tmp_path: Path) -> None:
    class FailingHasher(HashComputer):
        def compute(self, path: Path) -> str:
            if path.name == "notes.txt":
                raise PermissionError(13, "Permission denied", str(path))
            return super().compute(path)

    _tree(tmp_path)
    index = ContentIndex(FailingHasher())

    result = IngestionPipeline(DirectoryScanner(), index).run([tmp_path])

    assert result.discovered == 3
    assert result.recorded == 2
    assert len(result.errors) == 1 and "notes.txt" in result.errors[0]
    assert index.lookup(path=tmp_path / "sub" / "deeper" / "notes.txt") is None


def test_capture_date_extractor_reads_exif(tmp_path: Path) -> None:
    photo = tmp_path / "photo.jpg"
    exif = Image.Exif()
    exif[ExifTags.Base.DateTime] = "2023:05:04 10:20:30"
    Image.new("RGB", (8, 8), color="blue").save(photo, format="JPEG", exif=exif)
    plain = tmp_path / "notes.txt"
    plain.write_text("no exif here", encoding="utf-8")
    bare = tmp_path / "bare.jpg"
    Image.new("RGB", (8, 8)).save(bare, format="JPEG")

    extractor = CaptureDateExtractor()

    assert extractor.extract(photo) == "2023-05-04T10:20:30"
    assert extractor.extract(plain) is None
    assert extractor.extract(bare) is None


def test_index_stores_capture_dates(tmp_path: Path) -> None:
    photo = tmp_path / "photo.jpg"
    exif = Image.Exif()
    exif[ExifTags.Base.DateTime] = "2021:12:31 23:59:58"
    Image.new("RGB", (8, 8)).save(photo, format="JPEG", exif=exif)
    index = ContentIndex(HashComputer(), CaptureDateExtractor())

    record = index.record_file(photo)

    assert record.captured_at == "2021-12-31T23:59:58"


@pytest.mark.parametrize(
    ("raw", "expected"),
    [
        ("2023-05-04T10:20:30", datetime(2023, 5, 4, 10, 20, 30)),
        ("2023:05:04 10:20:30", datetime(2023, 5, 4, 10, 20, 30)),
        ("not a date", None),
        ("", None),
    ],
)
def test_parse_capture_date(raw: str, expected: datetime | None) -> None:
    assert parse_capture_date(raw) == expected
