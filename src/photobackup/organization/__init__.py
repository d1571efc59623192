"""Derived link trees built from the content index."""

from .date_tree import DateTreeBuilder, date_destination
from .hash_tree import HashTreeBuilder, hash_destination
from .models import BuildResult, HashTree, file_extension

__all__ = [
    "BuildResult",
    "DateTreeBuilder",
    "HashTree",
    "HashTreeBuilder",
    "date_destination",
    "file_extension",
    "hash_destination",
]
