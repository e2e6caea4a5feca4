"""Deterministic mock provider for tests and offline development."""

from typing import List

from agentflow.providers.base import (
    BaseProvider,
    ChatRequest,
    ChatResponse,
    ModelInfo,
    ProviderType,
)


class MockProvider(BaseProvider):
    """Echoes the last user message back, prefixed with ``[mock]``."""

    provider_type = ProviderType.MOCK

    async def list_models(self) -> List[ModelInfo]:
        return [
            ModelInfo(
                id="mock-model",
                name="Mock Model",
                provider=ProviderType.MOCK,
                context_length=8192,
            )
        ]

    async def chat_once(self, request: ChatRequest) -> ChatResponse:
        prompt = next(
            (m.content for m in reversed(request.messages) if m.role == "user"),
            "",
        )
        return ChatResponse(
            content=f"[mock] {prompt}".strip(),
            model=request.model or "mock-model",
            finish_reason="stop",
            prompt_tokens=8,
            completion_tokens=8,
            total_tokens=16,
        )
