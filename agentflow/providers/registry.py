"""Provider registry for chat backends."""

import os
from typing import Callable, Dict, List, Optional

from agentflow.config import Settings
from agentflow.core.exceptions import InternalException
from agentflow.core.logging import get_logger
from agentflow.providers.base import BaseProvider, ProviderType
from agentflow.providers.mock import MockProvider
from agentflow.providers.openai_compat import OpenAICompatProvider

logger = get_logger(__name__)

ProviderFactory = Callable[[Settings], BaseProvider]

PROVIDER_FACTORIES: Dict[str, ProviderFactory] = {
    ProviderType.OPENAI_COMPAT.value: lambda settings: OpenAICompatProvider(
        base_url=settings.openai_compat_base_url,
        api_key=settings.openai_compat_api_key,
        timeout=settings.provider_timeout_seconds,
    ),
    ProviderType.MOCK.value: lambda settings: MockProvider(),
}


def is_mock_mode() -> bool:
    return os.environ.get("PROVIDER_MODE", "").strip().lower() == "mock"


class ProviderRegistry:
    """Builds the enabled providers once and hands them out by name.

    With ``PROVIDER_MODE=mock`` only the mock provider exists and it is the
    default, whatever the settings enable.
    """

    def __init__(self, settings: Settings):
        self.settings = settings
        self.providers: Dict[str, BaseProvider] = {}
        self.default_provider = settings.provider_default

        if is_mock_mode():
            self.providers[ProviderType.MOCK.value] = MockProvider()
            self.default_provider = ProviderType.MOCK.value
            logger.info("Chat providers replaced by the mock provider", data={"provider_mode": "mock"})
        else:
            for name in settings.providers_enabled_list:
                factory = PROVIDER_FACTORIES.get(name)
                if factory is None:
                    logger.warning("Skipping unknown chat provider", data={"provider": name})
                    continue
                self.providers[name] = factory(settings)

        logger.info(
            "Chat providers ready",
            data={"providers": self.list_providers(), "default": self.default_provider},
        )

    def get_provider(self, name: Optional[str] = None) -> BaseProvider:
        name = name or self.default_provider
        provider = self.providers.get(name)
        if provider is None:
            raise InternalException("PROVIDER_NOT_FOUND", f"Chat provider '{name}' is not configured")
        return provider

    def list_providers(self) -> List[str]:
        return list(self.providers)

    async def aclose(self) -> None:
        for name, provider in self.providers.items():
            try:
                await provider.aclose()
            except Exception as exc:
                logger.warning("Failed to close chat provider", data={"provider": name, "error": str(exc)})
