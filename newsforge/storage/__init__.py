"""Storage layer for sources, runs and headlines."""

from newsforge.storage.database import Database, StorageError
from newsforge.storage.memory import InMemoryStore
from newsforge.storage.repository import RawItemRepository

__all__ = [
    "Database",
    "InMemoryStore",
    "RawItemRepository",
    "StorageError",
]
