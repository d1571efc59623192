"""Remote sync tests against an in-memory S3 stand-in."""

from __future__ import annotations

from pathlib import Path

import pytest
from fakes import FakeS3Client

from photobackup.sync import RemoteSync, RemoteTarget, UnsupportedRemoteError


def _source(tmp_path: Path) -> Path:
    source = tmp_path / "uniq"
    for relative, data in (
        ("abc/abc1.jpg", b"one"),
        ("abc/abc2.jpg", b"two"),
        ("def/def3.png", b"three"),
    ):
        path = source / relative
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_bytes(data)
    return source


def test_remote_target_parse() -> None:
    target = RemoteTarget.parse("s3://photos/backups/2023/")

    assert target.bucket == "photos"
    assert target.prefix == "backups/2023"
    assert target.key_for("abc/file.jpg") == "backups/2023/abc/file.jpg"
    assert RemoteTarget.parse("s3://photos").key_for("a.jpg") == "a.jpg"
    assert str(target) == "s3://photos/backups/2023"


@pytest.mark.parametrize("uri", ["photos/backups", "gs://photos/backups", "s3:///backups"])
def test_remote_target_rejects_unsupported_uris(uri: str) -> None:
    with pytest.raises(UnsupportedRemoteError):
        RemoteTarget.parse(uri)


def test_sync_uploads_only_missing_keys(tmp_path: Path) -> None:
    """Existing keys are skipped and a rerun uploads nothing.

    Args:
        tmp_path: Temporary directory provided by pytest.
    """
    source = _source(tmp_path)
    client = FakeS3Client({"backup/abc/abc1.jpg": b"one", "backup/def/def3.png": b"three"})
    sync = RemoteSync(client, threads=3)

    first = sync.sync(source, "s3://bucket/backup")

    assert client.uploads == ["backup/abc/abc2.jpg"]
    assert first.uploaded == ["backup/abc/abc2.jpg"]
    assert first.skipped == 2
    assert client.objects["backup/abc/abc2.jpg"] == b"two"

    second = sync.sync(source, "s3://bucket/backup")

    assert client.uploads == ["backup/abc/abc2.jpg"]
    assert second.uploaded == []
    assert second.skipped == 3


def test_sync_requires_exact_key_match(tmp_path: Path) -> None:
    source = _source(tmp_path)
    client = FakeS3Client({"abc/abc1.jpg.bak": b"old"})

    result = RemoteSync(client).sync(source, RemoteTarget(bucket="bucket"))

    assert sorted(result.uploaded) == ["abc/abc1.jpg", "abc/abc2.jpg", "def/def3.png"]


def test_sync_continues_after_failures(tmp_path: Path) -> None:
    source = _source(tmp_path)
    client = FakeS3Client()
    client.fail_keys.add("p/abc/abc2.jpg")
    progress: list[int] = []

    result = RemoteSync(client, threads=2, progress=lambda done, _: progress.append(done)).sync(
        source, "s3://bucket/p"
    )

    assert result.failed == ["p/abc/abc2.jpg"]
    assert sorted(result.uploaded) == ["p/abc/abc1.jpg", "p/def/def3.png"]
    assert progress == [1, 2, 3]


def test_sync_skips_key_that_prefixes_a_sibling(tmp_path: Path) -> None:
    source = tmp_path / "uniq"
    source.mkdir()
    (source / "a.jpg").write_bytes(b"photo")
    (source / "a.jpg.xmp").write_bytes(b"sidecar")
    client = FakeS3Client()
    sync = RemoteSync(client)

    first = sync.sync(source, "s3://bucket/p")
    second = sync.sync(source, "s3://bucket/p")

    assert sorted(first.uploaded) == ["p/a.jpg", "p/a.jpg.xmp"]
    assert second.uploaded == []
    assert second.skipped == 2
    assert sorted(client.uploads) == ["p/a.jpg", "p/a.jpg.xmp"]


def test_sync_missing_source_raises(tmp_path: Path) -> None:
    client = FakeS3Client()

    with pytest.raises(FileNotFoundError):
        RemoteSync(client).sync(tmp_path / "missing", "s3://bucket/p")

    assert client.uploads == []
