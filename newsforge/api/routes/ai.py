"""AI endpoints: model discovery and routed text generation."""

import structlog
from fastapi import APIRouter, Depends, HTTPException, Query, status

from newsforge.ai.errors import ProviderError, ProviderNotFoundError
from newsforge.ai.registry import ProviderRegistry
from newsforge.ai.schemas import AIRequestOptions, AIResponse
from newsforge.api.auth import verify_api_key
from newsforge.api.dependencies import get_provider_registry
from newsforge.api.models import ErrorResponse, GenerateRequest, ModelsResponse

logger = structlog.get_logger(__name__)
router = APIRouter()


@router.get(
    "/ai/models",
    response_model=ModelsResponse,
    summary="List models across providers",
)
async def list_models(
    provider_id: str | None = Query(default=None, description="Restrict to one provider"),
    registry: ProviderRegistry = Depends(get_provider_registry),
    api_key: str = Depends(verify_api_key),
) -> ModelsResponse:
    """Providers whose listing fails are left out of the response."""
    models = await registry.get_all_models(provider_id=provider_id)
    return ModelsResponse(models=models, total=len(models))


@router.post(
    "/ai/generate",
    response_model=AIResponse,
    responses={
        401: {"model": ErrorResponse},
        404: {"model": ErrorResponse},
        502: {"model": ErrorResponse},
    },
    summary="Generate text with the resolved provider",
)
async def generate(
    request: GenerateRequest,
    registry: ProviderRegistry = Depends(get_provider_registry),
    api_key: str = Depends(verify_api_key),
) -> AIResponse:
    options = AIRequestOptions.model_validate(request.model_dump(exclude={"provider_id"}))
    try:
        return await registry.generate(options, provider_id=request.provider_id)
    except ProviderNotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
    except ProviderError as e:
        logger.warning("Provider failed", provider_id=e.provider_id, error=e.message)
        raise HTTPException(
            status_code=status.HTTP_502_BAD_GATEWAY,
            detail=f"{e.provider_id}: {e.message}",
        )
