"""DeepSeek provider (OpenAI-compatible endpoint)."""

from newsforge.ai.providers.openai import OpenAICompatibleProvider

DEEPSEEK_BASE_URL = "https://api.deepseek.com"


class DeepSeekProvider(OpenAICompatibleProvider):
    """DeepSeek chat and reasoner models."""

    id = "deepseek"
    name = "DeepSeek"
    label = "DeepSeek"
    MODELS = [
        {
            "id": "deepseek-chat",
            "name": "DeepSeek Chat (V3)",
            "context_window": 64000,
            "cost_per_1k_input": 0.00007,
            "cost_per_1k_output": 0.00014,
        },
        {
            "id": "deepseek-reasoner",
            "name": "DeepSeek Reasoner (R1)",
            "context_window": 64000,
            "cost_per_1k_input": 0.00014,
            "cost_per_1k_output": 0.00028,
        },
    ]

    def __init__(
        self,
        api_key: str | None = None,
        base_url: str = DEEPSEEK_BASE_URL,
        timeout: float = 120.0,
    ):
        super().__init__(api_key=api_key, base_url=base_url, timeout=timeout)
