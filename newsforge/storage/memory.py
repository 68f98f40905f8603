"""
In-memory record store.

Implements the source, run and item store interfaces with plain dicts.
Used by tests and by ``--memory`` local runs of the CLI and API.
"""

import copy
from datetime import datetime, timezone
from typing import Any

from newsforge.ingestion.schemas import RawItem
from newsforge.runs.schemas import Run, RunStatus
from newsforge.sources.schemas import Source
from newsforge.storage.database import StorageError


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


class InMemoryStore:
    """Dict-backed store for sources, runs and headline items."""

    def __init__(self) -> None:
        self._sources: dict[int, Source] = {}
        self._runs: dict[int, Run] = {}
        self._items: list[RawItem] = []
        self._next_source_id = 1
        self._next_run_id = 1
        self._next_item_id = 1

    # Sources

    async def create_source(self, source: Source) -> Source:
        now = _utc_now()
        stored = copy.deepcopy(source)
        stored.id = self._next_source_id
        stored.created_at = now
        stored.updated_at = now
        self._next_source_id += 1
        self._sources[stored.id] = stored
        return copy.deepcopy(stored)

    async def get_source(self, source_id: int) -> Source | None:
        source = self._sources.get(source_id)
        return copy.deepcopy(source) if source else None

    async def list_by_user(self, user_id: int, active_only: bool = False) -> list[Source]:
        return [
            copy.deepcopy(s)
            for s in self._sources.values()
            if s.user_id == user_id and (s.is_active or not active_only)
        ]

    async def get_active_by_user(self, user_id: int) -> list[Source]:
        return await self.list_by_user(user_id, active_only=True)

    async def set_active(self, source_id: int, is_active: bool) -> bool:
        source = self._sources.get(source_id)
        if source is None:
            return False
        source.is_active = is_active
        source.updated_at = _utc_now()
        return True

    async def delete_source(self, source_id: int) -> bool:
        return self._sources.pop(source_id, None) is not None

    # Runs

    async def create_run(self, user_id: int) -> Run:
        run = Run(
            id=self._next_run_id,
            user_id=user_id,
            status=RunStatus.DRAFT,
            started_at=_utc_now(),
        )
        self._next_run_id += 1
        self._runs[run.id] = run
        return copy.deepcopy(run)

    async def complete_run(self, run_id: int, stats: dict[str, Any]) -> Run:
        run = self._runs.get(run_id)
        if run is None or run.is_completed:
            raise StorageError(f"Run {run_id} not found or already completed")
        run.status = RunStatus.COMPLETED
        run.completed_at = _utc_now()
        run.stats = copy.deepcopy(stats)
        return copy.deepcopy(run)

    async def get_run(self, run_id: int) -> Run | None:
        run = self._runs.get(run_id)
        return copy.deepcopy(run) if run else None

    # Items

    async def create_items(self, items: list[RawItem]) -> int:
        for item in items:
            stored = item.model_copy(update={"id": self._next_item_id})
            self._next_item_id += 1
            self._items.append(stored)
        return len(items)

    async def get_by_run(self, run_id: int) -> list[RawItem]:
        return [i.model_copy() for i in self._items if i.run_id == run_id]
