"""Concrete AI providers."""

from newsforge.ai.providers.anthropic import AnthropicProvider
from newsforge.ai.providers.deepseek import DeepSeekProvider
from newsforge.ai.providers.google import GoogleProvider
from newsforge.ai.providers.ollama import OllamaProvider
from newsforge.ai.providers.openai import OpenAICompatibleProvider, OpenAIProvider

__all__ = [
    "AnthropicProvider",
    "DeepSeekProvider",
    "GoogleProvider",
    "OllamaProvider",
    "OpenAICompatibleProvider",
    "OpenAIProvider",
]
