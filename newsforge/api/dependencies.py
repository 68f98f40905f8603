"""
Dependency injection for FastAPI endpoints.
"""

from newsforge.ai.registry import ProviderRegistry, build_provider_registry
from newsforge.config.settings import get_settings
from newsforge.ingestion.registry import AdapterRegistry, build_adapter_registry
from newsforge.progress.broadcaster import ProgressBroadcaster
from newsforge.runs.repository import RunsRepository
from newsforge.services.fetch_coordinator import FetchCoordinator
from newsforge.sources.repository import SourcesRepository
from newsforge.sources.service import SourcesService
from newsforge.storage.database import Database
from newsforge.storage.memory import InMemoryStore
from newsforge.storage.protocols import ItemStore, RunStore, SourceStore
from newsforge.storage.repository import RawItemRepository

# Global instances (initialized on first request)
_database: Database | None = None
_memory_store: InMemoryStore | None = None
_adapter_registry: AdapterRegistry | None = None
_provider_registry: ProviderRegistry | None = None
_broadcaster: ProgressBroadcaster | None = None


async def get_database() -> Database:
    """Get the shared database, connecting on first use."""
    global _database

    if _database is None:
        _database = Database()
        await _database.connect()

    return _database


async def _get_stores() -> tuple[SourceStore, RunStore, ItemStore]:
    """Source, run and item stores for the configured backend."""
    global _memory_store

    if get_settings().storage_backend == "memory":
        if _memory_store is None:
            _memory_store = InMemoryStore()
        return _memory_store, _memory_store, _memory_store

    db = await get_database()
    return SourcesRepository(db), RunsRepository(db), RawItemRepository(db)


async def get_source_store() -> SourceStore:
    sources, _, _ = await _get_stores()
    return sources


async def get_run_store() -> RunStore:
    _, runs, _ = await _get_stores()
    return runs


async def get_item_store() -> ItemStore:
    _, _, items = await _get_stores()
    return items


async def get_sources_service() -> SourcesService:
    return SourcesService(await get_source_store())


def get_adapter_registry() -> AdapterRegistry:
    global _adapter_registry

    if _adapter_registry is None:
        _adapter_registry = build_adapter_registry(providers=get_provider_registry())

    return _adapter_registry


def get_provider_registry() -> ProviderRegistry:
    global _provider_registry

    if _provider_registry is None:
        _provider_registry = build_provider_registry()

    return _provider_registry


def get_progress_broadcaster() -> ProgressBroadcaster:
    global _broadcaster

    if _broadcaster is None:
        _broadcaster = ProgressBroadcaster()

    return _broadcaster


async def get_fetch_coordinator() -> FetchCoordinator:
    """
    Build a coordinator wired to the shared registries and stores.

    Progress events go to the shared broadcaster so ``/ws/progress``
    subscribers see every run.
    """
    sources, runs, items = await _get_stores()
    return FetchCoordinator(
        adapters=get_adapter_registry(),
        sources=sources,
        runs=runs,
        items=items,
        progress=get_progress_broadcaster(),
    )


async def cleanup_dependencies() -> None:
    """Clean up global dependencies on shutdown."""
    global _database, _memory_store, _adapter_registry, _provider_registry, _broadcaster

    _adapter_registry = None
    _provider_registry = None
    _broadcaster = None
    _memory_store = None

    if _database is not None:
        await _database.close()
        _database = None
