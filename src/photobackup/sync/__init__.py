"""Remote object storage sync."""

from .client import build_s3_client
from .errors import RemoteSyncError, UnsupportedRemoteError
from .remote import RemoteSync, RemoteTarget, SyncResult

__all__ = [
    "RemoteSync",
    "RemoteSyncError",
    "RemoteTarget",
    "SyncResult",
    "UnsupportedRemoteError",
    "build_s3_client",
]
