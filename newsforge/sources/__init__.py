"""Sources: per-user ingestion source management."""

from newsforge.sources.repository import SourcesRepository
from newsforge.sources.schemas import Source
from newsforge.sources.service import DuplicateSourceError, SourcesService

__all__ = [
    "DuplicateSourceError",
    "Source",
    "SourcesRepository",
    "SourcesService",
]
