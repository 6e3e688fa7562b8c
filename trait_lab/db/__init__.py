"""Collection persistence."""

from .interfaces import (
    CollectionNotFoundError,
    CollectionRecord,
    CollectionStoreProtocol,
    CollectionSummary,
)
from .sqlite import SQLiteCollectionStore

__all__ = [
    "CollectionNotFoundError",
    "CollectionRecord",
    "CollectionStoreProtocol",
    "CollectionSummary",
    "SQLiteCollectionStore",
]
