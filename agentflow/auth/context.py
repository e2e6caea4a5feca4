"""Resolve the caller's identity from request headers."""

import json
from typing import Mapping, Optional

from agentflow.auth.providers import AuthProvider
from agentflow.auth.types import AuthContextStorage, ContextData

DEV_JWT_PREFIX = "x-dev-jwt-"
DEV_USER_HEADER = "x-dev-user"


class AuthContextDataBuilder:
    """Builds context data from ``x-dev-jwt-<claim>`` headers."""

    @staticmethod
    def get_dev_user(headers: Optional[Mapping[str, str]]) -> Optional[ContextData]:
        context: ContextData = {}
        for key, value in (headers or {}).items():
            key = key.lower()
            if not key.startswith(DEV_JWT_PREFIX):
                continue
            try:
                value = json.loads(value)
            except (TypeError, ValueError):
                pass
            context[key[len(DEV_JWT_PREFIX):]] = value
        return context or None


class AuthContextService:
    """Turns headers into an ``AuthContextStorage``.

    In dev mode trusted headers are accepted as-is; otherwise the bearer
    token is verified by the configured provider. Without a token or a
    provider the context is empty.
    """

    def __init__(self, provider: Optional[AuthProvider] = None, dev_mode: bool = False):
        self.provider = provider
        self.dev_mode = dev_mode
        self.builder = AuthContextDataBuilder()

    @staticmethod
    def get_token(headers: Mapping[str, str]) -> Optional[str]:
        authorization = headers.get("authorization")
        if not authorization:
            return None
        parts = authorization.split()
        return parts[-1] if parts else None

    async def build_context_data(self, headers: Mapping[str, str]) -> Optional[ContextData]:
        if self.dev_mode:
            context = self.builder.get_dev_user(headers)
            if context:
                return context
            dev_user = headers.get(DEV_USER_HEADER)
            if dev_user:
                return {"sub": dev_user}

        token = self.get_token(headers)
        if not token or self.provider is None:
            return None
        return await self.provider.verify_token(token)

    async def init(self, headers: Mapping[str, str]) -> AuthContextStorage:
        return AuthContextStorage(await self.build_context_data(headers))
