"""Tests for chat providers and the provider registry."""

import json

import httpx
import pytest

from agentflow.config import Settings
from agentflow.core.exceptions import InternalException
from agentflow.providers.base import ChatMessage, ChatRequest
from agentflow.providers.mock import MockProvider
from agentflow.providers.openai_compat import OpenAICompatProvider
from agentflow.providers.registry import ProviderRegistry


class TestOpenAICompatProvider:
    @pytest.mark.asyncio
    async def test_chat_once(self):
        seen = {}

        def handler(request: httpx.Request) -> httpx.Response:
            seen["url"] = str(request.url)
            seen["auth"] = request.headers.get("authorization")
            seen["body"] = json.loads(request.content)
            return httpx.Response(
                200,
                json={
                    "model": "gpt-5",
                    "choices": [{"message": {"role": "assistant", "content": "hi there"}, "finish_reason": "stop"}],
                    "usage": {"prompt_tokens": 3, "completion_tokens": 2, "total_tokens": 5},
                },
            )

        provider = OpenAICompatProvider(
            "https://llm.example.com/v1/", api_key="sk-test", transport=httpx.MockTransport(handler)
        )
        request = ChatRequest(messages=[ChatMessage(role="user", content="hello")], model="gpt-5", temperature=0.2)
        response = await provider.chat_once(request)
        await provider.aclose()

        assert seen["url"] == "https://llm.example.com/v1/chat/completions"
        assert seen["auth"] == "Bearer sk-test"
        assert seen["body"]["temperature"] == 0.2
        assert seen["body"]["messages"] == [{"role": "user", "content": "hello"}]
        assert response.content == "hi there"
        assert response.total_tokens == 5

    @pytest.mark.asyncio
    async def test_http_error_propagates(self):
        provider = OpenAICompatProvider(
            "https://llm.example.com/v1",
            transport=httpx.MockTransport(lambda request: httpx.Response(500, json={"error": "down"})),
        )
        with pytest.raises(httpx.HTTPStatusError):
            await provider.chat_once(ChatRequest(messages=[ChatMessage(role="user", content="x")]))
        assert await provider.healthcheck() is False


class TestMockProvider:
    @pytest.mark.asyncio
    async def test_echoes_last_user_message(self):
        request = ChatRequest(
            messages=[
                ChatMessage(role="system", content="rules"),
                ChatMessage(role="user", content="first"),
                ChatMessage(role="assistant", content="ok"),
                ChatMessage(role="user", content="second"),
            ]
        )
        response = await MockProvider().chat_once(request)
        assert response.content == "[mock] second"


class TestProviderRegistry:
    def test_mock_mode_forces_mock(self, monkeypatch):
        monkeypatch.setenv("PROVIDER_MODE", "mock")
        registry = ProviderRegistry(Settings(providers_enabled="openai_compat"))
        assert registry.list_providers() == ["mock"]
        assert isinstance(registry.get_provider(), MockProvider)

    def test_enabled_providers(self, monkeypatch):
        monkeypatch.delenv("PROVIDER_MODE", raising=False)
        registry = ProviderRegistry(Settings(providers_enabled="openai_compat,mock,unknown"))
        assert registry.list_providers() == ["openai_compat", "mock"]
        assert isinstance(registry.get_provider("openai_compat"), OpenAICompatProvider)

    def test_missing_provider(self, monkeypatch):
        monkeypatch.delenv("PROVIDER_MODE", raising=False)
        registry = ProviderRegistry(Settings(providers_enabled="mock", provider_default="openai_compat"))
        with pytest.raises(InternalException) as exc_info:
            registry.get_provider()
        assert exc_info.value.code == "PROVIDER_NOT_FOUND"
