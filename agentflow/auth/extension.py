"""Auth wiring: provider construction and the context middleware."""

from typing import Optional

import httpx
from fastapi import FastAPI

from agentflow.auth.context import AuthContextService
from agentflow.auth.middleware import FetchContextDataMiddleware
from agentflow.auth.providers import build_auth_provider
from agentflow.bootstrapper import AppExtension
from agentflow.config import Settings
from agentflow.core.logging import get_logger

logger = get_logger(__name__)


class AuthExtension(AppExtension):
    name = "auth"

    def __init__(self, http_client: Optional[httpx.AsyncClient] = None):
        self.http_client = http_client

    def setup(self, app: FastAPI, settings: Settings) -> None:
        provider = build_auth_provider(settings, http_client=self.http_client)
        if settings.auth_dev_mode:
            logger.warning("Auth dev mode enabled: x-dev-jwt-* headers are trusted")
        service = AuthContextService(provider=provider, dev_mode=settings.auth_dev_mode)
        app.state.auth_service = service
        app.add_middleware(FetchContextDataMiddleware, auth_service=service)
