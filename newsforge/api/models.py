"""
Request and response models for the NewsForge API.
"""

from datetime import datetime
from typing import Any

from pydantic import BaseModel, Field

from newsforge.ai.schemas import AIModel, AIRequestOptions
from newsforge.ingestion.schemas import SourceKind


class ComponentHealth(BaseModel):
    """Health of one dependency."""

    status: str = Field(..., description="healthy or unhealthy")
    latency_ms: float | None = Field(default=None, description="Check latency")
    details: dict[str, Any] = Field(default_factory=dict)


class HealthResponse(BaseModel):
    """Response model for health check."""

    status: str = Field(
        ...,
        description="Overall service status: healthy, degraded, or unhealthy",
    )
    storage_backend: str = Field(..., description="postgres or memory")
    adapters: list[str] = Field(
        default_factory=list,
        description="Registered source kinds",
    )
    providers: dict[str, bool] = Field(
        default_factory=dict,
        description="AI provider availability",
    )
    components: dict[str, ComponentHealth] = Field(default_factory=dict)
    version: str = Field(default="0.1.0")


class ErrorResponse(BaseModel):
    """Response model for errors."""

    detail: str = Field(..., description="Error message")
    error_type: str = Field(default="error", description="Error type")


# Runs


class FetchRunRequest(BaseModel):
    """Trigger a fetch across a user's active sources."""

    user_id: int = Field(..., ge=1)


class SourceErrorItem(BaseModel):
    source_id: int | None = None
    source_name: str
    source_kind: str
    error: str
    error_kind: str | None = None


class RunResultResponse(BaseModel):
    """Aggregated outcome of a fetch run."""

    run_id: int
    total_sources: int
    successful_sources: int
    failed_sources: int
    total_items: int
    errors: list[SourceErrorItem] = Field(default_factory=list)
    duration: int = Field(..., description="Wall time in milliseconds")


class RunResponse(BaseModel):
    id: int
    user_id: int
    status: str
    started_at: datetime | None = None
    completed_at: datetime | None = None
    stats: dict[str, Any] = Field(default_factory=dict)


class RawItemResponse(BaseModel):
    id: int | None = None
    run_id: int
    source_id: int
    title: str
    description: str | None = None
    url: str
    published_at: datetime | None = None
    kind: SourceKind
    is_selected: bool


class RunItemsResponse(BaseModel):
    run_id: int
    total: int
    items: list[RawItemResponse]


# Sources


class CreateSourceRequest(BaseModel):
    """Register a source for a user. ``config`` is validated per kind."""

    user_id: int = Field(..., ge=1)
    name: str = Field(..., min_length=1, max_length=200)
    kind: SourceKind
    config: dict[str, Any] = Field(default_factory=dict)
    is_active: bool = True


class UpdateSourceRequest(BaseModel):
    is_active: bool


class SourceItem(BaseModel):
    id: int
    user_id: int
    name: str
    kind: SourceKind
    config: dict[str, Any]
    is_active: bool
    created_at: datetime | None = None
    updated_at: datetime | None = None


class SourcesListResponse(BaseModel):
    sources: list[SourceItem]
    total: int


# AI


class ModelsResponse(BaseModel):
    models: list[AIModel]
    total: int


class GenerateRequest(AIRequestOptions):
    """Generation options plus an optional explicit provider."""

    provider_id: str | None = Field(
        default=None,
        description="Provider to use; otherwise resolved from model_id or the default",
    )
