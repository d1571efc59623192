"""S3 client construction."""

from __future__ import annotations

from typing import Any, Dict

import boto3
from botocore.config import Config as BotoConfig

from photobackup.config.models import RemoteSettings

CONNECT_TIMEOUT = 5
READ_TIMEOUT = 60
MAX_ATTEMPTS = 5


def build_s3_client(settings: RemoteSettings) -> Any:
    """Create an S3 client with bounded timeouts and standard-mode retries.

    Explicit keys are used when both are configured; otherwise boto3 falls
    back to its default credential chain.
    """
    config = BotoConfig(
        connect_timeout=CONNECT_TIMEOUT,
        read_timeout=READ_TIMEOUT,
        retries={"max_attempts": MAX_ATTEMPTS, "mode": "standard"},
    )
    kwargs: Dict[str, Any] = {"config": config}
    if settings.region:
        kwargs["region_name"] = settings.region
    if settings.access_key_id and settings.secret_access_key:
        kwargs["aws_access_key_id"] = settings.access_key_id
        kwargs["aws_secret_access_key"] = settings.secret_access_key
    return boto3.client("s3", **kwargs)
