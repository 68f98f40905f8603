"""Request, response and model descriptors shared by every provider."""

from pydantic import BaseModel, ConfigDict, Field


class AIModel(BaseModel):
    """A model offered by a provider."""

    id: str
    name: str
    provider_id: str
    context_window: int | None = None
    is_local: bool = False
    cost_per_1k_input: float | None = None
    cost_per_1k_output: float | None = None


class AIRequestOptions(BaseModel):
    """
    One generation request.

    ``api_key`` overrides the provider's configured key for this call only.
    """

    model_id: str
    prompt: str
    system_prompt: str | None = None
    temperature: float | None = Field(default=None, ge=0.0, le=2.0)
    max_tokens: int | None = Field(default=None, gt=0)
    stop: list[str] | None = None
    json_mode: bool = Field(default=False, alias="json")
    api_key: str | None = Field(default=None, repr=False)

    model_config = ConfigDict(populate_by_name=True)


class AIUsage(BaseModel):
    """Token accounting. Zero when the backend does not report usage."""

    prompt_tokens: int = 0
    completion_tokens: int = 0
    total_tokens: int = 0


class AIResponse(BaseModel):
    """Provider output, returned to the caller unchanged."""

    content: str
    model: str
    usage: AIUsage | None = None
