"""Chat providers."""

from agentflow.providers.base import (
    BaseProvider,
    ChatMessage,
    ChatRequest,
    ChatResponse,
    ModelInfo,
    ProviderType,
)
from agentflow.providers.registry import ProviderRegistry

__all__ = [
    "BaseProvider",
    "ChatMessage",
    "ChatRequest",
    "ChatResponse",
    "ModelInfo",
    "ProviderRegistry",
    "ProviderType",
]
