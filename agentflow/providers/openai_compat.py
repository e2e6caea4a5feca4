"""Chat completions over any OpenAI-compatible HTTP endpoint."""

from typing import Any, Dict, List, Optional

import httpx

from agentflow.core.logging import get_logger
from agentflow.providers.base import (
    BaseProvider,
    ChatRequest,
    ChatResponse,
    ModelInfo,
    ProviderType,
)

logger = get_logger(__name__)


def build_payload(request: ChatRequest) -> Dict[str, Any]:
    payload: Dict[str, Any] = {
        "model": request.model,
        "messages": [message.model_dump(include={"role", "content"}) for message in request.messages],
        "stream": False,
    }
    # Unset sampling options are left to the server defaults
    if request.temperature is not None:
        payload["temperature"] = request.temperature
    if request.max_tokens:
        payload["max_tokens"] = request.max_tokens
    return payload


def parse_completion(data: Dict[str, Any], requested_model: Optional[str]) -> ChatResponse:
    choice = (data.get("choices") or [{}])[0]
    usage = data.get("usage") or {}
    return ChatResponse(
        content=(choice.get("message") or {}).get("content") or "",
        model=data.get("model") or requested_model,
        finish_reason=choice.get("finish_reason"),
        prompt_tokens=usage.get("prompt_tokens"),
        completion_tokens=usage.get("completion_tokens"),
        total_tokens=usage.get("total_tokens"),
    )


class OpenAICompatProvider(BaseProvider):
    """Talks to ``{base_url}/chat/completions`` and ``{base_url}/models``.

    The HTTP client is created on first use and recreated after ``aclose``.
    Pass ``transport`` to route requests somewhere other than the network.
    """

    provider_type = ProviderType.OPENAI_COMPAT

    def __init__(
        self,
        base_url: str,
        api_key: str = "",
        timeout: int = 120,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.api_key = api_key
        self.timeout = timeout
        self.transport = transport
        self._client: httpx.AsyncClient | None = None

    def _headers(self) -> Dict[str, str]:
        if not self.api_key:
            return {}
        return {"Authorization": f"Bearer {self.api_key}"}

    @property
    def client(self) -> httpx.AsyncClient:
        if self._client is None or self._client.is_closed:
            self._client = httpx.AsyncClient(
                base_url=self.base_url,
                headers=self._headers(),
                timeout=httpx.Timeout(self.timeout),
                transport=self.transport,
            )
        return self._client

    async def aclose(self) -> None:
        client, self._client = self._client, None
        if client is not None and not client.is_closed:
            await client.aclose()

    async def healthcheck(self) -> bool:
        try:
            response = await self.client.get("/models")
        except httpx.HTTPError as exc:
            logger.warning("Provider healthcheck failed", data={"base_url": self.base_url, "error": str(exc)})
            return False
        return response.is_success

    async def list_models(self) -> List[ModelInfo]:
        response = await self.client.get("/models")
        response.raise_for_status()
        models = response.json().get("data") or []
        return [
            ModelInfo(id=item["id"], name=item["id"], provider=self.provider_type)
            for item in models
            if item.get("id")
        ]

    async def chat_once(self, request: ChatRequest) -> ChatResponse:
        try:
            response = await self.client.post("/chat/completions", json=build_payload(request))
            response.raise_for_status()
        except httpx.HTTPStatusError as exc:
            logger.error(
                "Chat completion rejected",
                data={"model": request.model, "status": exc.response.status_code},
            )
            raise
        return parse_completion(response.json(), request.model)
