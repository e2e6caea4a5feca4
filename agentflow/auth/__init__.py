"""Authentication: identity resolution and bearer token verification."""

from agentflow.auth.context import AuthContextDataBuilder, AuthContextService
from agentflow.auth.dependencies import get_auth_context, only_for_authorized
from agentflow.auth.middleware import FetchContextDataMiddleware
from agentflow.auth.providers import (
    Auth0Provider,
    AuthProvider,
    KeycloakProvider,
    LogtoProvider,
    build_auth_provider,
)
from agentflow.auth.types import AuthContextStorage, ContextData

__all__ = [
    "Auth0Provider",
    "AuthContextDataBuilder",
    "AuthContextService",
    "AuthContextStorage",
    "AuthProvider",
    "ContextData",
    "FetchContextDataMiddleware",
    "KeycloakProvider",
    "LogtoProvider",
    "build_auth_provider",
    "get_auth_context",
    "only_for_authorized",
]
