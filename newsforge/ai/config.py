"""Configuration for AI providers.

All settings can be overridden via AI_* environment variables.

Example:
    AI_DEFAULT_PROVIDER=ollama
    AI_OPENAI_API_KEY=sk-...
    AI_OLLAMA_BASE_URL=http://gpu-box:11434
"""

from functools import lru_cache

from pydantic import Field, SecretStr
from pydantic_settings import BaseSettings, SettingsConfigDict


class AIConfig(BaseSettings):
    """Provider credentials, endpoints and the default provider."""

    model_config = SettingsConfigDict(
        env_prefix="AI_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    default_provider: str = Field(
        default="ollama",
        description="Provider used when neither an id nor an owning provider is found",
    )
    request_timeout: float = Field(
        default=120.0,
        gt=0.0,
        description="Timeout in seconds for a single generation call",
    )

    # Local
    ollama_base_url: str = Field(default="http://localhost:11434")

    # Cloud API keys
    openai_api_key: SecretStr | None = Field(default=None)
    anthropic_api_key: SecretStr | None = Field(default=None)
    deepseek_api_key: SecretStr | None = Field(default=None)
    google_api_key: SecretStr | None = Field(default=None)

    deepseek_base_url: str = Field(default="https://api.deepseek.com")


@lru_cache
def get_ai_config() -> AIConfig:
    """Get cached AI configuration."""
    return AIConfig()
