"""Content-addressed file index."""

from .errors import ContentIndexError, IndexContractError, IndexLoadError
from .models import FileMetadata
from .store import ContentIndex, normalize_path

__all__ = [
    "ContentIndex",
    "FileMetadata",
    "ContentIndexError",
    "IndexContractError",
    "IndexLoadError",
    "normalize_path",
]
