"""
Health check endpoint.
"""

import time

import structlog
from fastapi import APIRouter, Depends

from newsforge.ai.registry import ProviderRegistry
from newsforge.api.dependencies import get_adapter_registry, get_database, get_provider_registry
from newsforge.api.models import ComponentHealth, HealthResponse
from newsforge.config.settings import get_settings
from newsforge.ingestion.registry import AdapterRegistry

router = APIRouter()
logger = structlog.get_logger(__name__)


async def _check_database() -> ComponentHealth:
    """Check database connectivity and measure latency."""
    start = time.perf_counter()
    try:
        db = await get_database()
        healthy = await db.health_check()
        latency_ms = (time.perf_counter() - start) * 1000
        return ComponentHealth(
            status="healthy" if healthy else "unhealthy",
            latency_ms=round(latency_ms, 2),
        )
    except Exception as e:
        latency_ms = (time.perf_counter() - start) * 1000
        logger.warning("Database health check failed", error=str(e))
        return ComponentHealth(
            status="unhealthy",
            latency_ms=round(latency_ms, 2),
            details={"error": str(e)},
        )


@router.get(
    "/health",
    response_model=HealthResponse,
    summary="Service health check",
    description="Check storage, registered adapters and AI provider availability.",
)
async def health_check(
    adapters: AdapterRegistry = Depends(get_adapter_registry),
    providers: ProviderRegistry = Depends(get_provider_registry),
) -> HealthResponse:
    """
    Status logic:
    - unhealthy: database is down
    - degraded: no AI provider is available
    - healthy: otherwise
    """
    settings = get_settings()
    components: dict[str, ComponentHealth] = {}

    if settings.storage_backend == "postgres":
        components["database"] = await _check_database()
    else:
        components["database"] = ComponentHealth(status="healthy", details={"backend": "memory"})

    availability = await providers.availability()

    if components["database"].status == "unhealthy":
        status = "unhealthy"
    elif not any(availability.values()):
        status = "degraded"
    else:
        status = "healthy"

    return HealthResponse(
        status=status,
        storage_backend=settings.storage_backend,
        adapters=[kind.value for kind in adapters.kinds],
        providers=availability,
        components=components,
    )
