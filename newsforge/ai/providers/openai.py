"""OpenAI provider and the shared OpenAI-compatible chat-completions client.

SDK imports are deferred to method calls (lazy loading) so the package
imports cleanly when the provider is not configured.
"""

import logging
from typing import Any

from newsforge.ai.base import AIProvider
from newsforge.ai.errors import ProviderError
from newsforge.ai.schemas import AIModel, AIRequestOptions, AIResponse, AIUsage

logger = logging.getLogger(__name__)


class OpenAICompatibleProvider(AIProvider):
    """Chat-completions provider over the OpenAI SDK.

    Subclasses set ``id``, ``name``, ``label`` and ``MODELS`` and may point
    ``base_url`` at any OpenAI-compatible endpoint.
    """

    label = "OpenAI"
    MODELS: list[dict[str, Any]] = []

    def __init__(
        self,
        api_key: str | None = None,
        base_url: str | None = None,
        timeout: float = 120.0,
    ):
        self._api_key = api_key
        self._base_url = base_url
        self._timeout = timeout
        self._clients: dict[str, Any] = {}

    def _get_client(self, api_key: str) -> Any:
        """Lazy-initialize one async client per key."""
        client = self._clients.get(api_key)
        if client is None:
            import openai

            client = openai.AsyncOpenAI(
                api_key=api_key,
                base_url=self._base_url,
                timeout=self._timeout,
            )
            self._clients[api_key] = client
        return client

    async def is_available(self) -> bool:
        return bool(self._api_key)

    async def get_models(self, api_key: str | None = None) -> list[AIModel]:
        if not (api_key or self._api_key):
            return []
        return [AIModel(provider_id=self.id, is_local=False, **m) for m in self.MODELS]

    async def generate(self, options: AIRequestOptions) -> AIResponse:
        import openai

        api_key = self._require_key(self._api_key, options.api_key, self.label)

        messages = []
        if options.system_prompt:
            messages.append({"role": "system", "content": options.system_prompt})
        messages.append({"role": "user", "content": options.prompt})

        kwargs: dict[str, Any] = {"model": options.model_id, "messages": messages}
        if options.temperature is not None:
            kwargs["temperature"] = options.temperature
        if options.max_tokens is not None:
            kwargs["max_tokens"] = options.max_tokens
        if options.stop:
            kwargs["stop"] = options.stop
        if options.json_mode:
            kwargs["response_format"] = {"type": "json_object"}

        try:
            response = await self._get_client(api_key).chat.completions.create(**kwargs)
        except openai.OpenAIError as e:
            raise ProviderError(self.id, f"{self.label} API error: {e}") from e

        usage = response.usage
        return AIResponse(
            content=response.choices[0].message.content or "",
            model=options.model_id,
            usage=AIUsage(
                prompt_tokens=usage.prompt_tokens,
                completion_tokens=usage.completion_tokens,
                total_tokens=usage.total_tokens,
            )
            if usage
            else AIUsage(),
        )


class OpenAIProvider(OpenAICompatibleProvider):
    """OpenAI's hosted models (static list)."""

    id = "openai"
    name = "OpenAI"
    label = "OpenAI"
    MODELS = [
        {
            "id": "gpt-4o",
            "name": "GPT-4o",
            "context_window": 128000,
            "cost_per_1k_input": 0.005,
            "cost_per_1k_output": 0.015,
        },
        {
            "id": "gpt-4o-mini",
            "name": "GPT-4o Mini",
            "context_window": 128000,
            "cost_per_1k_input": 0.00015,
            "cost_per_1k_output": 0.0006,
        },
    ]
