"""Remote sync errors."""


class RemoteSyncError(Exception):
    """Base exception for remote sync operations."""


class UnsupportedRemoteError(RemoteSyncError):
    """Raised when a destination URI uses a scheme other than ``s3://``."""
