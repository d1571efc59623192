"""Content index errors."""


class ContentIndexError(Exception):
    """Base exception for content index operations."""


class IndexContractError(ContentIndexError):
    """Raised when a caller violates the index API contract.

    This signals a programming error (for example, looking up by both hash and
    path) and is never recovered from.
    """


class IndexLoadError(ContentIndexError):
    """Raised when a persisted index cannot be read or parsed."""
