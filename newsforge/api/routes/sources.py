"""Source endpoints: register, list, toggle and delete a user's sources."""

import structlog
from fastapi import APIRouter, Depends, HTTPException, Query, status

from newsforge.api.auth import verify_api_key
from newsforge.api.dependencies import get_sources_service
from newsforge.api.models import (
    CreateSourceRequest,
    ErrorResponse,
    SourceItem,
    SourcesListResponse,
    UpdateSourceRequest,
)
from newsforge.ingestion.errors import ConfigError
from newsforge.sources.schemas import Source
from newsforge.sources.service import DuplicateSourceError, SourcesService

logger = structlog.get_logger(__name__)
router = APIRouter()


def _source_to_item(s: Source) -> SourceItem:
    return SourceItem(
        id=s.id,
        user_id=s.user_id,
        name=s.name,
        kind=s.kind,
        config=s.config,
        is_active=s.is_active,
        created_at=s.created_at,
        updated_at=s.updated_at,
    )


@router.get(
    "/sources",
    response_model=SourcesListResponse,
    responses={401: {"model": ErrorResponse}},
    summary="List a user's sources",
)
async def list_sources(
    user_id: int = Query(..., ge=1),
    active_only: bool = Query(default=False, description="Only active sources"),
    service: SourcesService = Depends(get_sources_service),
    api_key: str = Depends(verify_api_key),
) -> SourcesListResponse:
    sources = await service.list_sources(user_id, active_only=active_only)
    return SourcesListResponse(
        sources=[_source_to_item(s) for s in sources],
        total=len(sources),
    )


@router.post(
    "/sources",
    response_model=SourceItem,
    status_code=status.HTTP_201_CREATED,
    responses={409: {"model": ErrorResponse}, 422: {"model": ErrorResponse}},
    summary="Register a source",
)
async def create_source(
    request: CreateSourceRequest,
    service: SourcesService = Depends(get_sources_service),
    api_key: str = Depends(verify_api_key),
) -> SourceItem:
    try:
        source = await service.create_source(
            user_id=request.user_id,
            name=request.name,
            kind=request.kind,
            config=request.config,
            is_active=request.is_active,
        )
    except DuplicateSourceError as e:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=e.message)
    except ConfigError as e:
        raise HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=e.message)

    logger.info("Source created", source_id=source.id, kind=source.kind.value)
    return _source_to_item(source)


@router.patch(
    "/sources/{source_id}",
    responses={404: {"model": ErrorResponse}},
    summary="Activate or deactivate a source",
)
async def update_source(
    source_id: int,
    request: UpdateSourceRequest,
    service: SourcesService = Depends(get_sources_service),
    api_key: str = Depends(verify_api_key),
) -> dict:
    if not await service.set_active(source_id, request.is_active):
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=f"Source {source_id} not found")
    return {"id": source_id, "is_active": request.is_active}


@router.delete(
    "/sources/{source_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    responses={404: {"model": ErrorResponse}},
    summary="Delete a source",
)
async def delete_source(
    source_id: int,
    service: SourcesService = Depends(get_sources_service),
    api_key: str = Depends(verify_api_key),
) -> None:
    if not await service.delete_source(source_id):
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=f"Source {source_id} not found")
