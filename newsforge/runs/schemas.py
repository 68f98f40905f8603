"""Data models for fetch runs."""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any


class RunStatus(str, Enum):
    """Lifecycle of a fetch run: draft -> collecting -> completed."""

    DRAFT = "draft"
    COLLECTING = "collecting"
    COMPLETED = "completed"


@dataclass
class Run:
    """One invocation of the fetch coordinator for a user.

    ``completed_at`` is set iff ``status`` is COMPLETED; ``stats`` holds the
    serialized run result once completed.
    """

    user_id: int
    status: RunStatus = RunStatus.DRAFT
    id: int | None = None
    started_at: datetime | None = None
    completed_at: datetime | None = None
    stats: dict[str, Any] = field(default_factory=dict)

    @property
    def is_completed(self) -> bool:
        return self.status == RunStatus.COMPLETED
