"""Fetch run endpoints: trigger a run and inspect its results."""

import structlog
from fastapi import APIRouter, Depends, HTTPException, status

from newsforge.api.auth import verify_api_key
from newsforge.api.dependencies import get_fetch_coordinator, get_item_store, get_run_store
from newsforge.api.models import (
    ErrorResponse,
    FetchRunRequest,
    RawItemResponse,
    RunItemsResponse,
    RunResponse,
    RunResultResponse,
)
from newsforge.services.fetch_coordinator import FetchCoordinator
from newsforge.storage.database import StorageError
from newsforge.storage.protocols import ItemStore, RunStore

logger = structlog.get_logger(__name__)
router = APIRouter()


@router.post(
    "/runs/fetch",
    response_model=RunResultResponse,
    responses={401: {"model": ErrorResponse}, 503: {"model": ErrorResponse}},
    summary="Fetch all active sources of a user",
)
async def fetch_run(
    request: FetchRunRequest,
    coordinator: FetchCoordinator = Depends(get_fetch_coordinator),
    api_key: str = Depends(verify_api_key),
) -> RunResultResponse:
    """
    Run the fetch coordinator synchronously and return the aggregated result.

    Individual source failures are reported in ``errors``; only storage
    failures fail the request.
    """
    try:
        result = await coordinator.run_fetch_for_all_sources(request.user_id)
    except StorageError as e:
        logger.error("Fetch run failed", user_id=request.user_id, error=str(e))
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail=f"Storage unavailable: {e}",
        )
    return RunResultResponse(**result.to_dict())


@router.get(
    "/runs/{run_id}",
    response_model=RunResponse,
    responses={404: {"model": ErrorResponse}},
    summary="Get a run",
)
async def get_run(
    run_id: int,
    runs: RunStore = Depends(get_run_store),
    api_key: str = Depends(verify_api_key),
) -> RunResponse:
    run = await runs.get_run(run_id)
    if run is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=f"Run {run_id} not found")
    return RunResponse(
        id=run.id,
        user_id=run.user_id,
        status=run.status.value,
        started_at=run.started_at,
        completed_at=run.completed_at,
        stats=run.stats,
    )


@router.get(
    "/runs/{run_id}/items",
    response_model=RunItemsResponse,
    responses={404: {"model": ErrorResponse}},
    summary="List headlines collected by a run",
)
async def get_run_items(
    run_id: int,
    runs: RunStore = Depends(get_run_store),
    items: ItemStore = Depends(get_item_store),
    api_key: str = Depends(verify_api_key),
) -> RunItemsResponse:
    if await runs.get_run(run_id) is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=f"Run {run_id} not found")

    rows = await items.get_by_run(run_id)
    return RunItemsResponse(
        run_id=run_id,
        total=len(rows),
        items=[RawItemResponse(**row.model_dump(exclude={"created_at"})) for row in rows],
    )
