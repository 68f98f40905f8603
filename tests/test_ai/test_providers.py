"""Tests for the built-in AI providers."""

import json
from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock

import httpx
import openai
import pytest
import respx

from newsforge.ai.errors import ProviderError
from newsforge.ai.providers import (
    AnthropicProvider,
    DeepSeekProvider,
    GoogleProvider,
    OllamaProvider,
    OpenAIProvider,
)
from newsforge.ai.providers.deepseek import DEEPSEEK_BASE_URL
from newsforge.ai.providers.google import GEMINI_API_BASE, is_supported_model
from newsforge.ai.schemas import AIRequestOptions

OLLAMA = "http://ollama.test:11434"


def _options(**kwargs) -> AIRequestOptions:
    kwargs.setdefault("model_id", "m")
    kwargs.setdefault("prompt", "Summarize the news")
    return AIRequestOptions(**kwargs)


def _chat_client(response) -> MagicMock:
    client = MagicMock()
    client.chat.completions.create = AsyncMock(return_value=response)
    return client


def _chat_response(content: str = "ok", usage=None) -> SimpleNamespace:
    return SimpleNamespace(
        choices=[SimpleNamespace(message=SimpleNamespace(content=content))],
        usage=usage,
    )


class TestOllamaProvider:
    """Local server, no credential."""

    @pytest.mark.asyncio
    @respx.mock
    async def test_get_models(self):
        respx.get(f"{OLLAMA}/api/tags").mock(
            return_value=httpx.Response(
                200,
                json={"models": [{"name": "llama3:8b"}, {"name": "qwen", "details": {"context_window": 32768}}]},
            )
        )

        models = await OllamaProvider(base_url=OLLAMA).get_models()

        assert [m.id for m in models] == ["llama3:8b", "qwen"]
        assert [m.context_window for m in models] == [4096, 32768]
        assert all(m.is_local and m.provider_id == "ollama" for m in models)

    @pytest.mark.asyncio
    @respx.mock
    async def test_get_models_unreachable_is_empty(self):
        route = respx.get(f"{OLLAMA}/api/tags").mock(side_effect=httpx.ConnectError("refused"))

        assert await OllamaProvider(base_url=OLLAMA).get_models() == []
        assert route.call_count == 1

    @pytest.mark.asyncio
    @respx.mock
    async def test_get_models_server_error_is_empty(self):
        respx.get(f"{OLLAMA}/api/tags").mock(return_value=httpx.Response(500))

        assert await OllamaProvider(base_url=OLLAMA).get_models() == []

    @pytest.mark.asyncio
    @respx.mock
    async def test_is_available(self):
        respx.get(f"{OLLAMA}/api/tags").mock(side_effect=httpx.ConnectError("refused"))
        assert await OllamaProvider(base_url=OLLAMA).is_available() is False

    @pytest.mark.asyncio
    @respx.mock
    async def test_generate(self):
        route = respx.post(f"{OLLAMA}/api/generate").mock(
            return_value=httpx.Response(
                200, json={"response": '{"a": 1}', "prompt_eval_count": 12, "eval_count": 5}
            )
        )

        response = await OllamaProvider(base_url=OLLAMA).generate(
            _options(model_id="llama3", system_prompt="Be brief", temperature=0.2, json_mode=True)
        )

        payload = json.loads(route.calls.last.request.content)
        assert payload["stream"] is False
        assert payload["options"] == {"temperature": 0.2}
        assert payload["system"] == "Be brief"
        assert payload["format"] == "json"
        assert response.content == '{"a": 1}'
        assert response.usage.total_tokens == 17

    @pytest.mark.asyncio
    @respx.mock
    async def test_generate_error(self):
        respx.post(f"{OLLAMA}/api/generate").mock(return_value=httpx.Response(404, text="model not found"))

        with pytest.raises(ProviderError, match="404"):
            await OllamaProvider(base_url=OLLAMA).generate(_options())


class TestOpenAIProvider:
    @pytest.mark.asyncio
    async def test_no_key_lists_nothing(self):
        assert await OpenAIProvider().get_models() == []
        assert await OpenAIProvider().is_available() is False

    @pytest.mark.asyncio
    async def test_request_key_enables_listing(self):
        models = await OpenAIProvider().get_models(api_key="sk-user")
        assert [m.id for m in models] == ["gpt-4o", "gpt-4o-mini"]

    @pytest.mark.asyncio
    async def test_generate_without_key(self):
        with pytest.raises(ProviderError, match="OpenAI API key not configured"):
            await OpenAIProvider().generate(_options(model_id="gpt-4o"))

    @pytest.mark.asyncio
    async def test_generate(self):
        provider = OpenAIProvider(api_key="sk-config")
        usage = SimpleNamespace(prompt_tokens=3, completion_tokens=4, total_tokens=7)
        client = _chat_client(_chat_response("headline", usage))
        provider._get_client = MagicMock(return_value=client)

        response = await provider.generate(
            _options(model_id="gpt-4o", system_prompt="sys", max_tokens=50, json_mode=True, api_key="sk-req")
        )

        provider._get_client.assert_called_once_with("sk-req")
        kwargs = client.chat.completions.create.call_args.kwargs
        assert kwargs["messages"][0] == {"role": "system", "content": "sys"}
        assert kwargs["max_tokens"] == 50
        assert kwargs["response_format"] == {"type": "json_object"}
        assert response.content == "headline"
        assert response.usage.total_tokens == 7

    @pytest.mark.asyncio
    async def test_missing_usage_is_zero(self):
        provider = OpenAIProvider(api_key="sk")
        provider._get_client = MagicMock(return_value=_chat_client(_chat_response(None)))

        response = await provider.generate(_options())

        assert response.content == ""
        assert response.usage.total_tokens == 0

    @pytest.mark.asyncio
    async def test_sdk_error_becomes_provider_error(self):
        provider = OpenAIProvider(api_key="sk")
        client = MagicMock()
        client.chat.completions.create = AsyncMock(
            side_effect=openai.APIConnectionError(request=httpx.Request("POST", "https://api.openai.com"))
        )
        provider._get_client = MagicMock(return_value=client)

        with pytest.raises(ProviderError) as exc_info:
            await provider.generate(_options())

        assert exc_info.value.provider_id == "openai"


class TestDeepSeekProvider:
    def test_defaults_to_deepseek_endpoint(self):
        assert DeepSeekProvider(api_key="k")._base_url == DEEPSEEK_BASE_URL

    @pytest.mark.asyncio
    async def test_models(self):
        models = await DeepSeekProvider(api_key="k").get_models()
        assert [m.id for m in models] == ["deepseek-chat", "deepseek-reasoner"]
        assert all(m.provider_id == "deepseek" for m in models)

    @pytest.mark.asyncio
    async def test_missing_key_message(self):
        with pytest.raises(ProviderError, match="DeepSeek API key not configured"):
            await DeepSeekProvider().generate(_options(model_id="deepseek-chat"))


class TestAnthropicProvider:
    @pytest.mark.asyncio
    async def test_generate(self):
        provider = AnthropicProvider(api_key="sk-ant")
        client = MagicMock()
        client.messages.create = AsyncMock(
            return_value=SimpleNamespace(
                content=[
                    SimpleNamespace(type="text", text="Hello "),
                    SimpleNamespace(type="tool_use", text="ignored"),
                    SimpleNamespace(type="text", text="world"),
                ],
                usage=SimpleNamespace(input_tokens=10, output_tokens=2),
            )
        )
        provider._get_client = MagicMock(return_value=client)

        response = await provider.generate(
            _options(model_id="claude-3-5-sonnet-20240620", system_prompt="sys", stop=["END"])
        )

        kwargs = client.messages.create.call_args.kwargs
        assert kwargs["max_tokens"] == 4096
        assert kwargs["system"] == "sys"
        assert kwargs["stop_sequences"] == ["END"]
        assert response.content == "Hello world"
        assert (response.usage.prompt_tokens, response.usage.total_tokens) == (10, 12)

    @pytest.mark.asyncio
    async def test_models_require_key(self):
        assert await AnthropicProvider().get_models() == []
        assert len(await AnthropicProvider(api_key="k").get_models()) == 1


class TestGoogleProvider:
    """Gemini REST API."""

    @pytest.mark.parametrize(
        "name,expected",
        [
            ("models/gemini-2.5-pro", True),
            ("models/gemini-3.0-flash", True),
            ("models/gemini-1.5-pro", False),
            ("models/gemini-2.0-flash-exp", False),
            ("models/text-embedding-004", False),
            ("models/gemini-2.5-flash-001", False),
        ],
    )
    def test_is_supported_model(self, name, expected):
        assert is_supported_model(name) is expected

    @pytest.mark.asyncio
    async def test_static_models_without_key(self):
        models = await GoogleProvider().get_models()
        assert [m.id for m in models] == ["gemini-pro"]

    @pytest.mark.asyncio
    @respx.mock
    async def test_live_listing_filtered(self):
        respx.get(f"{GEMINI_API_BASE}/models").mock(
            return_value=httpx.Response(
                200,
                json={
                    "models": [
                        {"name": "models/gemini-2.5-pro", "displayName": "Gemini 2.5 Pro"},
                        {"name": "models/gemini-1.5-flash"},
                        {"name": "models/embedding-gecko"},
                    ]
                },
            )
        )

        models = await GoogleProvider(api_key="g-key").get_models()

        assert [(m.id, m.name) for m in models] == [("gemini-2.5-pro", "Gemini 2.5 Pro")]

    @pytest.mark.asyncio
    @respx.mock
    async def test_listing_failure_is_empty(self):
        respx.get(f"{GEMINI_API_BASE}/models").mock(return_value=httpx.Response(403))
        assert await GoogleProvider(api_key="g-key").get_models() == []

    @pytest.mark.asyncio
    @respx.mock
    async def test_generate(self):
        route = respx.post(f"{GEMINI_API_BASE}/models/gemini-2.5-pro:generateContent").mock(
            return_value=httpx.Response(
                200,
                json={
                    "candidates": [{"content": {"parts": [{"text": "a"}, {"text": "b"}]}}],
                    "usageMetadata": {
                        "promptTokenCount": 4,
                        "candidatesTokenCount": 2,
                        "totalTokenCount": 6,
                    },
                },
            )
        )

        response = await GoogleProvider(api_key="g-key").generate(
            _options(model_id="gemini-2.5-pro", system_prompt="sys", json_mode=True)
        )

        request = route.calls.last.request
        assert request.url.params["key"] == "g-key"
        body = json.loads(request.content)
        assert body["generationConfig"]["responseMimeType"] == "application/json"
        assert body["systemInstruction"] == {"parts": [{"text": "sys"}]}
        assert response.content == "ab"
        assert response.usage.total_tokens == 6

    @pytest.mark.asyncio
    async def test_generate_without_key(self):
        with pytest.raises(ProviderError, match="Google Gemini API key not configured"):
            await GoogleProvider().generate(_options(model_id="gemini-pro"))
