"""Anthropic provider (Messages API via the Anthropic SDK)."""

import logging
from typing import Any

from newsforge.ai.base import AIProvider
from newsforge.ai.errors import ProviderError
from newsforge.ai.schemas import AIModel, AIRequestOptions, AIResponse, AIUsage

logger = logging.getLogger(__name__)

DEFAULT_MAX_TOKENS = 4096


class AnthropicProvider(AIProvider):
    """Claude models. The Messages API requires max_tokens, so it defaults to 4096."""

    id = "anthropic"
    name = "Anthropic"

    MODELS = [
        AIModel(
            id="claude-3-5-sonnet-20240620",
            name="Claude 3.5 Sonnet",
            provider_id="anthropic",
            context_window=200000,
            is_local=False,
            cost_per_1k_input=0.003,
            cost_per_1k_output=0.015,
        ),
    ]

    def __init__(self, api_key: str | None = None, timeout: float = 120.0):
        self._api_key = api_key
        self._timeout = timeout
        self._clients: dict[str, Any] = {}

    def _get_client(self, api_key: str) -> Any:
        """Lazy-initialize one async client per key."""
        client = self._clients.get(api_key)
        if client is None:
            import anthropic

            client = anthropic.AsyncAnthropic(api_key=api_key, timeout=self._timeout)
            self._clients[api_key] = client
        return client

    async def is_available(self) -> bool:
        return bool(self._api_key)

    async def get_models(self, api_key: str | None = None) -> list[AIModel]:
        if not (api_key or self._api_key):
            return []
        return [m.model_copy() for m in self.MODELS]

    async def generate(self, options: AIRequestOptions) -> AIResponse:
        import anthropic

        api_key = self._require_key(self._api_key, options.api_key, "Anthropic")

        kwargs: dict[str, Any] = {
            "model": options.model_id,
            "messages": [{"role": "user", "content": options.prompt}],
            "max_tokens": options.max_tokens or DEFAULT_MAX_TOKENS,
        }
        if options.system_prompt:
            kwargs["system"] = options.system_prompt
        if options.temperature is not None:
            kwargs["temperature"] = options.temperature
        if options.stop:
            kwargs["stop_sequences"] = options.stop

        try:
            response = await self._get_client(api_key).messages.create(**kwargs)
        except anthropic.AnthropicError as e:
            raise ProviderError(self.id, f"Anthropic API error: {e}") from e

        content = "".join(
            block.text for block in response.content if getattr(block, "type", None) == "text"
        )
        usage = response.usage
        input_tokens = getattr(usage, "input_tokens", 0) or 0
        output_tokens = getattr(usage, "output_tokens", 0) or 0

        return AIResponse(
            content=content,
            model=options.model_id,
            usage=AIUsage(
                prompt_tokens=input_tokens,
                completion_tokens=output_tokens,
                total_tokens=input_tokens + output_tokens,
            ),
        )
