"""
Provider registry and request routing.

Resolution order for ``generate(options, provider_id)``:
1. ``provider_id`` if it names a registered provider
2. the first provider (in registration order) whose model list contains
   ``options.model_id``; providers whose listing fails are skipped
3. the configured default provider
4. otherwise ``ProviderNotFoundError``

The chosen provider's response, or its exception, is returned to the
caller as-is. Requests are never retried on another provider.
"""

import time

import structlog

from newsforge.ai.base import AIProvider
from newsforge.ai.config import AIConfig, get_ai_config
from newsforge.ai.errors import ProviderNotFoundError
from newsforge.ai.providers import (
    AnthropicProvider,
    DeepSeekProvider,
    GoogleProvider,
    OllamaProvider,
    OpenAIProvider,
)
from newsforge.ai.schemas import AIModel, AIRequestOptions, AIResponse
from newsforge.observability.metrics import MetricsCollector, get_metrics

logger = structlog.get_logger(__name__)


class ProviderRegistry:
    """Explicit provider registry, populated at startup and read-only afterwards."""

    def __init__(
        self,
        providers: list[AIProvider] | None = None,
        default_provider_id: str = "ollama",
        metrics: MetricsCollector | None = None,
    ):
        self._providers: dict[str, AIProvider] = {}
        self._default_provider_id = default_provider_id
        self._metrics = metrics or get_metrics()
        for provider in providers or []:
            self.register(provider)

    def register(self, provider: AIProvider) -> None:
        """Register a provider under its id, replacing any previous one."""
        self._providers[provider.id] = provider
        logger.debug("Registered AI provider", provider_id=provider.id)

    def get(self, provider_id: str) -> AIProvider | None:
        return self._providers.get(provider_id)

    @property
    def provider_ids(self) -> list[str]:
        return list(self._providers)

    @property
    def default_provider_id(self) -> str:
        return self._default_provider_id

    async def availability(self) -> dict[str, bool]:
        """Availability of every registered provider."""
        return {pid: await p.is_available() for pid, p in self._providers.items()}

    async def get_all_models(
        self,
        per_provider_keys: dict[str, str] | None = None,
        provider_id: str | None = None,
    ) -> list[AIModel]:
        """
        Concatenate model lists across providers.

        Args:
            per_provider_keys: Optional {provider_id: api_key} overrides
            provider_id: Restrict the listing to one provider

        A provider whose listing raises contributes nothing.
        """
        keys = per_provider_keys or {}
        if provider_id is not None:
            provider = self._providers.get(provider_id)
            providers = [provider] if provider else []
        else:
            providers = list(self._providers.values())

        models: list[AIModel] = []
        for provider in providers:
            try:
                models.extend(await provider.get_models(api_key=keys.get(provider.id)))
            except Exception as e:
                logger.warning(
                    "Model listing failed", provider_id=provider.id, error=str(e)
                )
        return models

    async def resolve(self, options: AIRequestOptions, provider_id: str | None = None) -> AIProvider:
        """
        Pick the provider for a request.

        Raises:
            ProviderNotFoundError: If nothing matches and no default is registered
        """
        if provider_id and provider_id in self._providers:
            return self._providers[provider_id]

        if options.model_id:
            for provider in self._providers.values():
                try:
                    models = await provider.get_models()
                except Exception as e:
                    logger.debug(
                        "Skipping provider during model lookup",
                        provider_id=provider.id,
                        error=str(e),
                    )
                    continue
                if any(m.id == options.model_id for m in models):
                    return provider

        default = self._providers.get(self._default_provider_id)
        if default is not None:
            return default

        raise ProviderNotFoundError(provider_id)

    async def generate(
        self, options: AIRequestOptions, provider_id: str | None = None
    ) -> AIResponse:
        """
        Route a generation request to exactly one provider.

        Raises:
            ProviderNotFoundError: If no provider could be resolved
            ProviderError: If the chosen provider fails
        """
        provider = await self.resolve(options, provider_id)
        log = logger.bind(provider_id=provider.id, model_id=options.model_id)

        start = time.monotonic()
        try:
            response = await provider.generate(options)
        except Exception as e:
            self._metrics.record_generation(provider.id, success=False, latency=time.monotonic() - start)
            log.warning("Generation failed", error=str(e))
            raise

        self._metrics.record_generation(provider.id, success=True, latency=time.monotonic() - start)
        log.info("Generation completed")
        return response


def build_provider_registry(config: AIConfig | None = None) -> ProviderRegistry:
    """Build the registry with every built-in provider from configuration."""
    config = config or get_ai_config()

    def secret(value) -> str | None:
        return value.get_secret_value() if value else None

    timeout = config.request_timeout
    return ProviderRegistry(
        providers=[
            OllamaProvider(base_url=config.ollama_base_url, timeout=timeout),
            OpenAIProvider(api_key=secret(config.openai_api_key), timeout=timeout),
            AnthropicProvider(api_key=secret(config.anthropic_api_key), timeout=timeout),
            DeepSeekProvider(
                api_key=secret(config.deepseek_api_key),
                base_url=config.deepseek_base_url,
                timeout=timeout,
            ),
            GoogleProvider(api_key=secret(config.google_api_key), timeout=timeout),
        ],
        default_provider_id=config.default_provider,
    )
