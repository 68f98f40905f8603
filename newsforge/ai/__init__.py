"""AI provider registry and interchangeable generation backends."""

from newsforge.ai.base import AIProvider
from newsforge.ai.config import AIConfig, get_ai_config
from newsforge.ai.errors import ProviderError, ProviderNotFoundError
from newsforge.ai.registry import ProviderRegistry, build_provider_registry
from newsforge.ai.schemas import AIModel, AIRequestOptions, AIResponse, AIUsage

__all__ = [
    "AIConfig",
    "AIModel",
    "AIProvider",
    "AIRequestOptions",
    "AIResponse",
    "AIUsage",
    "ProviderError",
    "ProviderNotFoundError",
    "ProviderRegistry",
    "build_provider_registry",
    "get_ai_config",
]
