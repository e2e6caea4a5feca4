"""Populate ``request.state.auth`` for every request."""

from typing import Callable

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response

from agentflow.auth.context import AuthContextService
from agentflow.auth.types import AuthContextStorage
from agentflow.core.exceptions import AppException
from agentflow.core.logging import get_logger, request_context

logger = get_logger(__name__)


class FetchContextDataMiddleware(BaseHTTPMiddleware):
    """Resolve identity once per request; failures leave the context empty."""

    def __init__(self, app, auth_service: AuthContextService):
        super().__init__(app)
        self.auth_service = auth_service

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        try:
            storage = await self.auth_service.init(request.headers)
        except AppException as exc:
            logger.error("Cannot verify the token", data={"error": exc.message})
            storage = AuthContextStorage()

        request.state.auth = storage
        ctx = request_context.get()
        if ctx and storage.sub:
            ctx["sub"] = storage.sub
        return await call_next(request)
