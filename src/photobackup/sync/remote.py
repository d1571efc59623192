"""Mirror a local directory to S3, skipping objects that already exist."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Any, List, Optional, Tuple

from boto3.exceptions import S3UploadFailedError
from botocore.exceptions import BotoCoreError, ClientError

from photobackup.ingestion.discovery import list_files
from photobackup.workers import ProgressCallback, ProgressCounter, run_pool

from .errors import UnsupportedRemoteError

LOGGER = logging.getLogger(__name__)

SUPPORTED_SCHEME = "s3"


@dataclass(frozen=True, slots=True)
class RemoteTarget:
    """Bucket and key prefix parsed from an ``s3://bucket/prefix`` URI."""

    bucket: str
    prefix: str = ""

    @classmethod
    def parse(cls, uri: str) -> "RemoteTarget":
        """Parse ``s3://bucket/path/prefix``.

        Raises:
            UnsupportedRemoteError: If the URI is not an ``s3://`` URI with a bucket.
        """
        scheme, sep, remainder = uri.partition("://")
        if not sep or scheme != SUPPORTED_SCHEME:
            raise UnsupportedRemoteError(
                f"Unable to parse {uri!r}; only {SUPPORTED_SCHEME}:// paths are supported"
            )
        bucket, _, prefix = remainder.partition("/")
        if not bucket:
            raise UnsupportedRemoteError(f"No bucket given in {uri!r}")
        return cls(bucket=bucket, prefix=prefix.strip("/"))

    def key_for(self, relative: str) -> str:
        """Return the object key for a path relative to the sync source."""
        return f"{self.prefix}/{relative}" if self.prefix else relative

    def __str__(self) -> str:
        return f"{SUPPORTED_SCHEME}://{self.bucket}/{self.prefix}".rstrip("/")


class UploadOutcome(Enum):
    UPLOADED = "uploaded"
    EXISTS = "exists"
    FAILED = "failed"


@dataclass(slots=True)
class SyncResult:
    """Counts describing one sync run.

    Attributes:
        target: Remote destination.
        uploaded: Keys uploaded during this run.
        skipped: Number of files already present remotely.
        failed: Keys whose existence check or upload failed.
    """

    target: RemoteTarget
    uploaded: List[str] = field(default_factory=list)
    skipped: int = 0
    failed: List[str] = field(default_factory=list)


class RemoteSync:
    """Upload every local file whose key is missing from the bucket.

    There is no persisted cursor: an interrupted sync resumes by listing the
    source again and re-checking each key. Concurrent external writers to the
    same keys are not accounted for.
    """

    def __init__(
        self,
        client: Any,
        *,
        threads: int = 1,
        progress: Optional[ProgressCallback] = None,
    ) -> None:
        """Initialize the sync.

        Args:
            client: boto3 S3 client (or any object with ``list_objects_v2``
                and ``upload_file``).
            threads: Maximum number of concurrent uploads.
            progress: Optional observer of ``(completed, total)`` counts.
        """
        self.client = client
        self.threads = max(1, threads)
        self.progress = progress

    def sync(self, source: Path, target: RemoteTarget | str) -> SyncResult:
        """Mirror ``source`` into ``target``.

        Failures for individual keys are logged and collected in
        ``SyncResult.failed``; the rest of the batch still runs.

        Raises:
            FileNotFoundError: If ``source`` is not an existing directory.
        """
        if isinstance(target, str):
            target = RemoteTarget.parse(target)
        source = source.expanduser().absolute()
        if not source.is_dir():
            raise FileNotFoundError(f"Sync source {source} does not exist or is not a directory")
        files = list_files(source)
        result = SyncResult(target=target)
        LOGGER.info("Uploading %d files from %s to %s", len(files), source, target)

        counter = ProgressCounter(len(files), self.progress)
        outcomes = run_pool(
            files,
            lambda path: self._sync_file(source, path, target),
            threads=self.threads,
            progress=counter,
        )
        for outcome, key in outcomes:
            if outcome is UploadOutcome.UPLOADED:
                result.uploaded.append(key)
            elif outcome is UploadOutcome.EXISTS:
                result.skipped += 1
            else:
                result.failed.append(key)
        return result

    def exists(self, target: RemoteTarget, key: str) -> bool:
        """Return True when an object named exactly ``key`` is in the bucket.

        Listings are lexicographic, so when ``key`` exists it is the first
        entry under its own prefix, ahead of siblings such as ``a.jpg.xmp``.
        """
        response = self.client.list_objects_v2(Bucket=target.bucket, Prefix=key, MaxKeys=1)
        contents = response.get("Contents") or []
        return bool(contents) and contents[0].get("Key") == key

    def _sync_file(
        self, source: Path, path: Path, target: RemoteTarget
    ) -> Tuple[UploadOutcome, str]:
        key = target.key_for(path.relative_to(source).as_posix())
        try:
            if self.exists(target, key):
                return UploadOutcome.EXISTS, key
            LOGGER.debug("Uploading file %s as %s", path, key)
            self.client.upload_file(str(path), target.bucket, key)
        except (BotoCoreError, ClientError, S3UploadFailedError, OSError) as exc:
            LOGGER.warning("Unable to sync %s to %s: %s", path, key, exc)
            return UploadOutcome.FAILED, key
        return UploadOutcome.UPLOADED, key


__all__ = ["RemoteSync", "RemoteTarget", "SyncResult"]
