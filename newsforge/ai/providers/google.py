"""Google Gemini provider (Generative Language REST API over httpx)."""

import logging
import re
from typing import Any

import httpx

from newsforge.ai.base import AIProvider
from newsforge.ai.errors import ProviderError
from newsforge.ai.schemas import AIModel, AIRequestOptions, AIResponse, AIUsage

logger = logging.getLogger(__name__)

GEMINI_API_BASE = "https://generativelanguage.googleapis.com/v1beta"
MIN_GEMINI_VERSION = 2.5

# Substrings that mark models unsuited for general text generation
EXCLUDED_MODEL_MARKERS = (
    "experimental",
    "exp",
    "embedding",
    "robotics",
    "legacy",
    "vision",
    "001",
    "002",
    "computer",
)

_VERSION_RE = re.compile(r"gemini-(\d+(?:\.\d+)?)")

STATIC_MODELS = [
    AIModel(
        id="gemini-pro",
        name="Gemini 1.0 Pro",
        provider_id="google",
        context_window=32000,
        is_local=False,
        cost_per_1k_input=0.0005,
        cost_per_1k_output=0.0015,
    ),
]


def is_supported_model(name: str) -> bool:
    """Keep current Gemini text models: version >= 2.5 and no excluded marker."""
    lowered = name.lower()
    if "gemini" not in lowered:
        return False
    if any(marker in lowered for marker in EXCLUDED_MODEL_MARKERS):
        return False
    match = _VERSION_RE.search(lowered)
    if not match:
        return False
    return float(match.group(1)) >= MIN_GEMINI_VERSION


class GoogleProvider(AIProvider):
    """
    Gemini models.

    With a key, the model list is fetched live and only that list is
    returned (an empty list if the listing fails). Without a key the static
    list is returned so the provider is discoverable during setup.
    """

    id = "google"
    name = "Google Gemini"

    def __init__(
        self,
        api_key: str | None = None,
        api_base: str = GEMINI_API_BASE,
        timeout: float = 120.0,
    ):
        self._api_key = api_key
        self._api_base = api_base.rstrip("/")
        self._timeout = timeout

    async def is_available(self) -> bool:
        return bool(self._api_key)

    async def get_models(self, api_key: str | None = None) -> list[AIModel]:
        key = api_key or self._api_key
        if not key:
            return [m.model_copy() for m in STATIC_MODELS]

        try:
            async with httpx.AsyncClient(timeout=15.0) as client:
                response = await client.get(f"{self._api_base}/models", params={"key": key})
                response.raise_for_status()
        except httpx.HTTPError as e:
            logger.warning(f"Failed to fetch Gemini models: {e}")
            return []

        models = []
        for m in response.json().get("models") or []:
            name = m.get("name", "")
            if not is_supported_model(name):
                continue
            model_id = name.removeprefix("models/")
            models.append(
                AIModel(
                    id=model_id,
                    name=m.get("displayName") or model_id,
                    provider_id=self.id,
                    is_local=False,
                    context_window=m.get("inputTokenLimit") or 1_000_000,
                    cost_per_1k_input=0,
                    cost_per_1k_output=0,
                )
            )
        logger.debug(f"Gemini listing kept {len(models)} models")
        return models

    async def generate(self, options: AIRequestOptions) -> AIResponse:
        api_key = self._require_key(self._api_key, options.api_key, "Google Gemini")

        generation_config: dict[str, Any] = {
            "responseMimeType": "application/json" if options.json_mode else "text/plain",
        }
        if options.temperature is not None:
            generation_config["temperature"] = options.temperature
        if options.max_tokens is not None:
            generation_config["maxOutputTokens"] = options.max_tokens
        if options.stop:
            generation_config["stopSequences"] = options.stop

        body: dict[str, Any] = {
            "contents": [{"role": "user", "parts": [{"text": options.prompt}]}],
            "generationConfig": generation_config,
        }
        if options.system_prompt:
            body["systemInstruction"] = {"parts": [{"text": options.system_prompt}]}

        url = f"{self._api_base}/models/{options.model_id}:generateContent"
        try:
            async with httpx.AsyncClient(timeout=self._timeout) as client:
                response = await client.post(url, params={"key": api_key}, json=body)
                response.raise_for_status()
        except httpx.HTTPStatusError as e:
            raise ProviderError(
                self.id, f"Gemini API error: {e.response.status_code} - {e.response.text}"
            ) from e
        except httpx.HTTPError as e:
            raise ProviderError(self.id, f"Gemini request failed: {e}") from e

        data = response.json()
        candidates = data.get("candidates") or []
        parts = ((candidates[0].get("content") or {}).get("parts") or []) if candidates else []
        usage = data.get("usageMetadata") or {}

        return AIResponse(
            content="".join(p.get("text", "") for p in parts),
            model=options.model_id,
            usage=AIUsage(
                prompt_tokens=usage.get("promptTokenCount", 0),
                completion_tokens=usage.get("candidatesTokenCount", 0),
                total_tokens=usage.get("totalTokenCount", 0),
            ),
        )
