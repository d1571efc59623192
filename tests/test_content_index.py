"""Content index tests."""

from __future__ import annotations

import hashlib
import json
from pathlib import Path

import pytest

from photobackup.index import ContentIndex, IndexContractError, IndexLoadError
from photobackup.ingestion import HashComputer
from photobackup.workers import run_pool


def _digest(data: bytes) -> str:
    return hashlib.sha256(data).hexdigest()


def _index() -> ContentIndex:
    return ContentIndex(HashComputer())


def test_identical_content_shares_one_record(tmp_path: Path) -> None:
    """Two paths with the same bytes resolve to one record counted once.

    Args:
        tmp_path: Temporary directory provided by pytest.
    """
    first = tmp_path / "a.jpg"
    second = tmp_path / "nested" / "b.jpg"
    second.parent.mkdir()
    first.write_bytes(b"same bytes")
    second.write_bytes(b"same bytes")
    index = _index()

    index.record_file(first)
    index.record_file(second)

    by_first = index.lookup(path=first)
    by_second = index.lookup(path=str(second))
    assert by_first is not None and by_first is by_second
    assert by_first.hash == _digest(b"same bytes")
    assert by_first.paths == [str(first), str(second)]
    assert index.lookup(hash=by_first.hash) is by_first
    assert index.deduped_size() == len(b"same bytes")
    assert index.total_size() == 2 * len(b"same bytes")


def test_known_path_is_not_reread(tmp_path: Path) -> None:
    class CountingHasher(HashComputer):
        calls = 0

        def compute(self, path: Path) -> str:
            CountingHasher.calls += 1
            return super().compute(path)

    photo = tmp_path / "photo.jpg"
    photo.write_bytes(b"pixels")
    index = ContentIndex(CountingHasher())

    index.record_file(photo)
    record = index.record_file(photo)

    assert CountingHasher.calls == 1
    assert record.paths == [str(photo)]


def test_concurrent_recording_keeps_views_consistent(tmp_path: Path) -> None:
    """Parallel workers colliding on hashes never lose or duplicate a path.

    Args:
        tmp_path: Temporary directory provided by pytest.
    """
    paths = []
    for number in range(40):
        path = tmp_path / f"file-{number}.jpg"
        path.write_bytes(f"content-{number % 4}".encode())
        paths.append(path)
    index = _index()

    run_pool(paths + paths, index.record_file, threads=8)

    assert len(index) == 4
    records = index.records()
    assert sorted(p for record in records for p in record.paths) == sorted(str(p) for p in paths)
    for record in records:
        assert len(record.paths) == len(set(record.paths)) == 10
        for known in record.paths:
            assert index.lookup(path=known) is record


def test_lookup_requires_exactly_one_key() -> None:
    index = _index()

    with pytest.raises(IndexContractError):
        index.lookup()
    with pytest.raises(IndexContractError):
        index.lookup(hash="abc", path="/tmp/abc.jpg")
    assert index.lookup(hash="abc") is None


def test_annotate_link_is_set_once(tmp_path: Path) -> None:
    photo = tmp_path / "photo.jpg"
    photo.write_bytes(b"pixels")
    index = _index()
    record = index.record_file(photo)

    index.annotate_link(record.hash, tmp_path / "tree" / "one.jpg")
    index.annotate_link(record.hash, tmp_path / "tree" / "one.jpg")

    assert record.canonical_link_path == str(tmp_path / "tree" / "one.jpg")
    with pytest.raises(IndexContractError):
        index.annotate_link(record.hash, tmp_path / "tree" / "two.jpg")
    with pytest.raises(IndexContractError):
        index.annotate_link("0" * 64, tmp_path / "tree" / "three.jpg")


def test_persist_and_load_round_trip(tmp_path: Path) -> None:
    """Persisting then loading reproduces every record and alias.

    Args:
        tmp_path: Temporary directory provided by pytest.
    """
    for name, data in (("a.jpg", b"one"), ("b.jpg", b"one"), ("c.png", b"two")):
        (tmp_path / name).write_bytes(data)
    index = _index()
    for name in ("a.jpg", "b.jpg", "c.png"):
        index.record_file(tmp_path / name)
    linked = index.lookup(path=tmp_path / "a.jpg")
    assert linked is not None
    linked.captured_at = "2023-05-04T10:20:30"
    index.annotate_link(linked.hash, tmp_path / "tree" / "linked.jpg")
    sink = tmp_path / "state" / "index.json"

    index.persist(sink)
    loaded = _index()
    loaded.load(sink)

    assert {r.hash for r in loaded.records()} == {r.hash for r in index.records()}
    for original in index.records():
        restored = loaded.lookup(hash=original.hash)
        assert restored is not None
        assert restored.size == original.size
        assert restored.captured_at == original.captured_at
        assert restored.canonical_link_path == original.canonical_link_path
        assert set(restored.paths) == set(original.paths)
        for known in restored.paths:
            assert loaded.lookup(path=known) is restored

    document = json.loads(sink.read_text(encoding="utf-8"))
    assert set(document[linked.hash]) == {"hash", "size", "files", "date", "hashfile"}


def test_load_defaults_missing_optional_fields(tmp_path: Path) -> None:
    source = tmp_path / "index.json"
    source.write_text(
        json.dumps({"abc": {"size": 3, "files": ["/photos/a.jpg", "/photos/a.jpg"], "extra": 1}}),
        encoding="utf-8",
    )
    index = _index()

    index.load(source)

    record = index.lookup(path="/photos/a.jpg")
    assert record is not None
    assert record.hash == "abc"
    assert record.paths == ["/photos/a.jpg"]
    assert record.captured_at is None
    assert record.canonical_link_path is None


@pytest.mark.parametrize(
    "payload",
    ["not json", "[]", json.dumps({"abc": {"files": []}}), json.dumps({"abc": {"size": 1}})],
)
def test_load_rejects_malformed_documents(tmp_path: Path, payload: str) -> None:
    source = tmp_path / "index.json"
    source.write_text(payload, encoding="utf-8")

    with pytest.raises(IndexLoadError):
        _index().load(source)
