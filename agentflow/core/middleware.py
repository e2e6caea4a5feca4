"""Request context middleware."""

import re
import time
import uuid
from contextlib import contextmanager
from typing import Callable, Iterator, Optional

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response

from agentflow.core.logging import get_logger, request_context

logger = get_logger(__name__)

REQUEST_ID_HEADER = "X-Request-ID"
_REQUEST_ID_RE = re.compile(r"^[A-Za-z0-9._:-]{1,128}$")


def resolve_request_id(value: Optional[str]) -> str:
    """Reuse a caller supplied id when it is safe to log, otherwise mint one."""
    if value and _REQUEST_ID_RE.match(value):
        return value
    return uuid.uuid4().hex


@contextmanager
def bind_request_context(request_id: str, path: str, method: str) -> Iterator[None]:
    token = request_context.set({"request_id": request_id, "path": path, "method": method})
    try:
        yield
    finally:
        request_context.reset(token)


class RequestContextMiddleware(BaseHTTPMiddleware):
    """Binds request id, path and method to every log line of the request."""

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        request_id = resolve_request_id(request.headers.get(REQUEST_ID_HEADER))
        started = time.perf_counter()

        with bind_request_context(request_id, request.url.path, request.method):
            response = await call_next(request)

            auth = getattr(request.state, "auth", None)
            logger.info(
                f"{request.method} {request.url.path} -> {response.status_code}",
                data={
                    "status": response.status_code,
                    "duration_ms": round((time.perf_counter() - started) * 1000, 2),
                    "sub": getattr(auth, "sub", None),
                },
            )

        response.headers[REQUEST_ID_HEADER] = request_id
        return response
