"""Progress event model."""

from pydantic import BaseModel, Field


class ProgressEvent(BaseModel):
    """One progress update for a run. Emitted fire-and-forget."""

    run_id: int | None = None
    message: str
    progress: int = Field(default=0, ge=0, le=100)
    total: int | None = None
    current: int | None = None
    error: str | None = None

    @property
    def is_complete(self) -> bool:
        return self.progress >= 100
