"""Configuration models describing photobackup settings."""

from __future__ import annotations

from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field

DEFAULT_INDEX_FILE = "/var/tmp/picture-data-cache.json"


class PhotoBackupBaseModel(BaseModel):
    """Shared configuration for photobackup Pydantic models."""

    model_config = ConfigDict(extra="forbid")


class ScanOptions(PhotoBackupBaseModel):
    """Options governing directory scanning and the persisted index.

    Attributes:
        rescan: Discard the persisted index before scanning.
        only_images: Skip files whose sniffed MIME type is not an image.
        threads: Worker pool size shared by every parallel stage.
        index_file: Location of the persisted JSON index.
    """

    rescan: bool = False
    only_images: bool = False
    threads: int = Field(default=1, ge=1)
    index_file: str = DEFAULT_INDEX_FILE


class TreeOptions(PhotoBackupBaseModel):
    """Destinations for the derived link trees.

    Attributes:
        uniq_dir: Root of the hardlink tree keyed by content hash.
        by_date_dir: Root of the symlink tree keyed by capture date.
    """

    uniq_dir: Optional[str] = None
    by_date_dir: Optional[str] = None


class RemoteSettings(PhotoBackupBaseModel):
    """S3 credentials and destination.

    Attributes:
        s3_path: Destination URI in the form ``s3://bucket/path/prefix``.
        access_key_id: Optional access key; the boto3 credential chain is used otherwise.
        secret_access_key: Optional secret key paired with ``access_key_id``.
        region: Optional AWS region for the bucket.
    """

    s3_path: Optional[str] = None
    access_key_id: Optional[str] = None
    secret_access_key: Optional[str] = None
    region: Optional[str] = None


class LoggingSettings(PhotoBackupBaseModel):
    """Runtime logging configuration.

    Attributes:
        level: Logging verbosity level.
    """

    level: str = "INFO"


class PhotoBackupConfig(PhotoBackupBaseModel):
    """Top-level configuration struct for photobackup.

    Attributes:
        directories: Roots to scan on every run.
        scan: Scanning and index settings.
        trees: Link tree destinations.
        remote: Remote sync settings.
        logging: Logging configuration.
    """

    directories: List[str] = Field(default_factory=list)
    scan: ScanOptions = Field(default_factory=ScanOptions)
    trees: TreeOptions = Field(default_factory=TreeOptions)
    remote: RemoteSettings = Field(default_factory=RemoteSettings)
    logging: LoggingSettings = Field(default_factory=LoggingSettings)


__all__ = [
    "DEFAULT_INDEX_FILE",
    "PhotoBackupBaseModel",
    "ScanOptions",
    "TreeOptions",
    "RemoteSettings",
    "LoggingSettings",
    "PhotoBackupConfig",
]
