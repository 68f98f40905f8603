"""
Record-store interfaces consumed by the services.

The asyncpg repositories and ``InMemoryStore`` both satisfy these.
"""

from typing import Any, Protocol

from newsforge.ingestion.schemas import RawItem
from newsforge.runs.schemas import Run
from newsforge.sources.schemas import Source


class SourceStore(Protocol):
    async def create_source(self, source: Source) -> Source: ...

    async def get_source(self, source_id: int) -> Source | None: ...

    async def list_by_user(self, user_id: int, active_only: bool = False) -> list[Source]: ...

    async def get_active_by_user(self, user_id: int) -> list[Source]: ...

    async def set_active(self, source_id: int, is_active: bool) -> bool: ...

    async def delete_source(self, source_id: int) -> bool: ...


class RunStore(Protocol):
    async def create_run(self, user_id: int) -> Run: ...

    async def complete_run(self, run_id: int, stats: dict[str, Any]) -> Run: ...

    async def get_run(self, run_id: int) -> Run | None: ...


class ItemStore(Protocol):
    async def create_items(self, items: list[RawItem]) -> int: ...

    async def get_by_run(self, run_id: int) -> list[RawItem]: ...
