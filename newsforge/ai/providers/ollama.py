"""Ollama provider (local HTTP server, no credential)."""

import logging
from typing import Any

import httpx

from newsforge.ai.base import AIProvider
from newsforge.ai.errors import ProviderError
from newsforge.ai.schemas import AIModel, AIRequestOptions, AIResponse, AIUsage

logger = logging.getLogger(__name__)

DEFAULT_CONTEXT_WINDOW = 4096


class OllamaProvider(AIProvider):
    """Talks to a local Ollama server via /api/tags and /api/generate."""

    id = "ollama"
    name = "Ollama (Local)"
    is_local = True

    def __init__(self, base_url: str = "http://localhost:11434", timeout: float = 120.0):
        self._base_url = base_url.rstrip("/")
        self._timeout = timeout

    async def is_available(self) -> bool:
        try:
            async with httpx.AsyncClient(timeout=5.0) as client:
                response = await client.get(f"{self._base_url}/api/tags")
            return response.is_success
        except httpx.HTTPError:
            return False

    async def get_models(self, api_key: str | None = None) -> list[AIModel]:
        """List locally pulled models; empty when the server is unreachable."""
        try:
            async with httpx.AsyncClient(timeout=10.0) as client:
                response = await client.get(f"{self._base_url}/api/tags")
                response.raise_for_status()
        except httpx.HTTPError as e:
            logger.warning(f"Failed to fetch Ollama models from {self._base_url}: {e}")
            return []

        return [
            AIModel(
                id=m["name"],
                name=m["name"],
                provider_id=self.id,
                is_local=True,
                context_window=(m.get("details") or {}).get("context_window")
                or DEFAULT_CONTEXT_WINDOW,
            )
            for m in response.json().get("models") or []
        ]

    async def generate(self, options: AIRequestOptions) -> AIResponse:
        payload: dict[str, Any] = {
            "model": options.model_id,
            "prompt": options.prompt,
            "stream": False,
            "options": {
                k: v
                for k, v in {
                    "temperature": options.temperature,
                    "num_predict": options.max_tokens,
                    "stop": options.stop,
                }.items()
                if v is not None
            },
        }
        if options.system_prompt:
            payload["system"] = options.system_prompt
        if options.json_mode:
            payload["format"] = "json"

        try:
            async with httpx.AsyncClient(timeout=self._timeout) as client:
                response = await client.post(f"{self._base_url}/api/generate", json=payload)
                response.raise_for_status()
        except httpx.HTTPStatusError as e:
            raise ProviderError(
                self.id, f"Ollama API error: {e.response.status_code} - {e.response.text}"
            ) from e
        except httpx.HTTPError as e:
            raise ProviderError(self.id, f"Ollama request failed: {e}") from e

        data = response.json()
        prompt_tokens = data.get("prompt_eval_count") or 0
        completion_tokens = data.get("eval_count") or 0

        return AIResponse(
            content=data.get("response", ""),
            model=options.model_id,
            usage=AIUsage(
                prompt_tokens=prompt_tokens,
                completion_tokens=completion_tokens,
                total_tokens=prompt_tokens + completion_tokens,
            ),
        )
