"""
Fetch coordinator - one run across all of a user's active sources.

For each invocation:
1. Create a run and load the user's active sources
2. Fetch every source concurrently through its adapter
3. Persist each successful source's items as one batch
4. Aggregate per-source outcomes and complete the run

A failing source never affects the others: every per-source task converts
its own failure into a failed ``SourceResult``. Only run creation, source
listing and run completion failures propagate to the caller.
"""

import asyncio
import time
from dataclasses import asdict, dataclass, field
from typing import Any

import structlog

from newsforge.config.settings import get_settings
from newsforge.ingestion.errors import FetchError, NetworkError
from newsforge.ingestion.registry import AdapterRegistry
from newsforge.ingestion.schemas import RawItem, SourceKind
from newsforge.observability.metrics import MetricsCollector, get_metrics
from newsforge.progress.broadcaster import ProgressReporter
from newsforge.progress.schemas import ProgressEvent
from newsforge.sources.schemas import Source
from newsforge.storage.protocols import ItemStore, RunStore, SourceStore

logger = structlog.get_logger(__name__)


@dataclass
class SourceResult:
    """Outcome of fetching one source within a run."""

    source_id: int
    source_name: str
    source_kind: str
    success: bool
    item_count: int = 0
    error: str | None = None
    error_kind: str | None = None


@dataclass
class SourceError:
    """A failed source, as reported in the run result."""

    source_id: int
    source_name: str
    source_kind: str
    error: str
    error_kind: str | None = None


@dataclass
class RunResult:
    """Aggregate outcome of a run. ``duration`` is in milliseconds."""

    run_id: int
    total_sources: int
    successful_sources: int
    failed_sources: int
    total_items: int
    errors: list[SourceError] = field(default_factory=list)
    duration: int = 0

    def to_stats(self) -> dict[str, Any]:
        """Serialized form stored on the run record (no run_id)."""
        stats = asdict(self)
        stats.pop("run_id")
        return stats

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


def aggregate_results(
    run_id: int, results: list[SourceResult], duration_ms: int
) -> RunResult:
    """Fold per-source results into a RunResult. Order-independent."""
    successful = [r for r in results if r.success]
    errors = [
        SourceError(
            source_id=r.source_id,
            source_name=r.source_name,
            source_kind=r.source_kind,
            error=r.error or "Unknown error",
            error_kind=r.error_kind,
        )
        for r in results
        if not r.success
    ]
    return RunResult(
        run_id=run_id,
        total_sources=len(results),
        successful_sources=len(successful),
        failed_sources=len(results) - len(successful),
        total_items=sum(r.item_count for r in successful),
        errors=errors,
        duration=duration_ms,
    )


class FetchCoordinator:
    """
    Orchestrates a concurrent fetch across a user's active sources.

    Usage:
        coordinator = FetchCoordinator(adapters, sources, runs, items, progress)
        result = await coordinator.run_fetch_for_all_sources(user_id=1)
    """

    def __init__(
        self,
        adapters: AdapterRegistry,
        sources: SourceStore,
        runs: RunStore,
        items: ItemStore,
        progress: ProgressReporter | None = None,
        source_timeout: float | None = None,
        metrics: MetricsCollector | None = None,
    ):
        """
        Initialize coordinator.

        Args:
            adapters: Kind -> adapter lookup
            sources: Store for reading a user's active sources
            runs: Store for creating and completing runs
            items: Store for bulk item writes
            progress: Optional progress sink (fire-and-forget)
            source_timeout: Per-source time limit in seconds (defaults to settings)
            metrics: Metrics collector (defaults to the global one)
        """
        self._adapters = adapters
        self._sources = sources
        self._runs = runs
        self._items = items
        self._progress = progress
        self._source_timeout = (
            source_timeout
            if source_timeout is not None
            else get_settings().fetch_source_timeout_seconds
        )
        self._metrics = metrics or get_metrics()

    async def run_fetch_for_all_sources(self, user_id: int) -> RunResult:
        """
        Fetch every active source of a user and record the run.

        Raises:
            StorageError: If the run cannot be created or completed, or
                sources cannot be listed
        """
        start = time.monotonic()

        run = await self._runs.create_run(user_id)
        run_id = run.id
        sources = await self._sources.get_active_by_user(user_id)
        total = len(sources)

        log = logger.bind(run_id=run_id, user_id=user_id)
        log.info("Starting fetch run", sources=total)

        if total == 0:
            result = aggregate_results(run_id, [], self._elapsed_ms(start))
            await self._runs.complete_run(run_id, result.to_stats())
            self._metrics.record_run(result.duration / 1000)
            log.info("No active sources, run completed")
            return result

        self._emit(ProgressEvent(run_id=run_id, message="Starting...", progress=0, total=total, current=0))

        results = await asyncio.gather(
            *(self._fetch_from_source(source, run_id) for source in sources)
        )

        result = aggregate_results(run_id, list(results), self._elapsed_ms(start))
        await self._runs.complete_run(run_id, result.to_stats())
        self._metrics.record_run(result.duration / 1000)

        self._emit(ProgressEvent(run_id=run_id, message="Completed", progress=100, total=total, current=total))

        log.info(
            "Fetch run completed",
            successful=result.successful_sources,
            failed=result.failed_sources,
            items=result.total_items,
            duration_ms=result.duration,
        )
        return result

    async def _fetch_from_source(self, source: Source, run_id: int) -> SourceResult:
        """Fetch and persist one source. Never raises."""
        kind = source.kind.value if isinstance(source.kind, SourceKind) else str(source.kind)
        log = logger.bind(run_id=run_id, source_id=source.id, source_kind=kind)

        self._emit(ProgressEvent(run_id=run_id, message=f"Fetching from {source.name}...", progress=0))
        started = time.monotonic()

        try:
            adapter = self._adapters.get(source.kind)
            try:
                drafts = await asyncio.wait_for(
                    adapter.fetch(source.config, user_id=source.user_id),
                    timeout=self._source_timeout,
                )
            except asyncio.TimeoutError:
                raise NetworkError(
                    f"Source timed out after {self._source_timeout:g}s"
                ) from None

            items = [RawItem.from_draft(d, run_id=run_id, source_id=source.id) for d in drafts]
            if items:
                await self._items.create_items(items)

        except Exception as e:
            error_kind = e.kind.value if isinstance(e, FetchError) else None
            message = str(e) or type(e).__name__
            log.warning("Source fetch failed", error=message, error_kind=error_kind)
            self._metrics.record_source_fetch(
                kind,
                success=False,
                latency=time.monotonic() - started,
                error_type=error_kind or type(e).__name__,
            )
            return SourceResult(
                source_id=source.id,
                source_name=source.name,
                source_kind=kind,
                success=False,
                error=message,
                error_kind=error_kind,
            )

        log.info("Source fetched", items=len(items))
        self._metrics.record_source_fetch(
            kind, success=True, items=len(items), latency=time.monotonic() - started
        )
        return SourceResult(
            source_id=source.id,
            source_name=source.name,
            source_kind=kind,
            success=True,
            item_count=len(items),
        )

    def _emit(self, event: ProgressEvent) -> None:
        if self._progress is not None:
            self._progress.emit(event)

    @staticmethod
    def _elapsed_ms(start: float) -> int:
        return int(round((time.monotonic() - start) * 1000))
