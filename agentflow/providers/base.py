"""Chat provider interface and wire models."""

from abc import ABC, abstractmethod
from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, Field


class ProviderType(str, Enum):
    OPENAI_COMPAT = "openai_compat"
    MOCK = "mock"


class ChatMessage(BaseModel):
    role: str  # system | user | assistant
    content: str


class ChatRequest(BaseModel):
    messages: List[ChatMessage]
    model: Optional[str] = None
    temperature: Optional[float] = None
    max_tokens: Optional[int] = None


class ChatResponse(BaseModel):
    content: str
    model: Optional[str] = None
    finish_reason: Optional[str] = None
    prompt_tokens: Optional[int] = None
    completion_tokens: Optional[int] = None
    total_tokens: Optional[int] = None


class ModelInfo(BaseModel):
    id: str
    name: str
    provider: ProviderType
    context_length: Optional[int] = Field(default=None)


class BaseProvider(ABC):
    """An LLM backend able to answer a chat completion."""

    provider_type: ProviderType

    @abstractmethod
    async def chat_once(self, request: ChatRequest) -> ChatResponse:
        ...

    @abstractmethod
    async def list_models(self) -> List[ModelInfo]:
        ...

    async def healthcheck(self) -> bool:
        return True

    async def aclose(self) -> None:
        pass
