"""FastAPI dependencies for authentication."""

from fastapi import Request

from agentflow.auth.types import AuthContextStorage


def get_auth_context(request: Request) -> AuthContextStorage:
    """Identity resolved by FetchContextDataMiddleware (empty if absent)."""
    storage = getattr(request.state, "auth", None)
    return storage if storage is not None else AuthContextStorage()


def only_for_authorized(request: Request) -> str:
    """Require an authenticated caller; returns its sub."""
    return get_auth_context(request).check_sub()
