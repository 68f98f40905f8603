"""Services that orchestrate fetch runs."""

from newsforge.services.fetch_coordinator import (
    FetchCoordinator,
    RunResult,
    SourceError,
    SourceResult,
)

__all__ = ["FetchCoordinator", "RunResult", "SourceError", "SourceResult"]
