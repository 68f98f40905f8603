"""
Provider interface.

Every backend implements the same three operations so the registry can
route a request without knowing which backend serves it:
- is_available(): never raises
- get_models(api_key=None): [] when unconfigured
- generate(options): one backend call, ProviderError on failure
"""

from abc import ABC, abstractmethod

from newsforge.ai.errors import ProviderError
from newsforge.ai.schemas import AIModel, AIRequestOptions, AIResponse


class AIProvider(ABC):
    """Abstract base class for AI providers."""

    id: str
    name: str
    is_local: bool = False

    @abstractmethod
    async def is_available(self) -> bool:
        """Whether the provider can currently serve requests."""
        ...

    @abstractmethod
    async def get_models(self, api_key: str | None = None) -> list[AIModel]:
        """
        List the models this provider offers.

        Args:
            api_key: Optional key overriding the configured one
        """
        ...

    @abstractmethod
    async def generate(self, options: AIRequestOptions) -> AIResponse:
        """
        Generate a completion.

        Raises:
            ProviderError: Missing credential or backend failure
        """
        ...

    def _require_key(self, configured: str | None, override: str | None, label: str) -> str:
        """Resolve the effective API key, preferring the per-request override."""
        key = override or configured
        if not key:
            raise ProviderError(self.id, f"{label} API key not configured")
        return key

    def __repr__(self) -> str:
        return f"{type(self).__name__}(id={self.id!r})"
