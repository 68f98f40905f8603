"""Data models for the sources module."""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any

from newsforge.ingestion.schemas import SourceKind


@dataclass
class Source:
    """A configured ingestion source owned by one user.

    ``config`` is the stored JSON blob for ``kind``; adapters validate it
    against their own variant when they fetch.
    """

    user_id: int
    name: str
    kind: SourceKind
    config: dict[str, Any] = field(default_factory=dict)
    is_active: bool = True
    id: int | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None
