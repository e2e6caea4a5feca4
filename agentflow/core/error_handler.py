"""Global exception handlers producing the public error payload."""

from typing import Any, Dict, List

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from pydantic import ValidationError
from starlette.exceptions import HTTPException as StarletteHTTPException

from agentflow.core.error_tracking import SentryService
from agentflow.core.exceptions import AppException, ValidationException, get_exception_data
from agentflow.core.logging import get_logger

logger = get_logger(__name__)


def _validation_fields(errors: List[Dict[str, Any]]) -> List[Dict[str, str]]:
    fields = []
    for error in errors:
        loc = [str(part) for part in error.get("loc", ()) if part not in ("body", "query", "path")]
        fields.append({"name": ".".join(loc) or "body", "message": error.get("msg", "")})
    return fields


class ExceptionHandler:
    """Logs, reports and serialises every error leaving a route."""

    def __init__(self, error_tracker: SentryService):
        self.error_tracker = error_tracker

    def handle(self, request: Request, exc: Exception) -> JSONResponse:
        data = get_exception_data(exc)
        status_code = data["statusCode"]

        if status_code >= 400:
            log_data = {
                "status_code": status_code,
                "code": data["code"],
                "method": request.method,
                "path": request.url.path,
                "fields": data["fields"],
            }
            if status_code >= 500:
                logger.error(data["fullMessage"], data=log_data, exc_info=exc)
                auth = getattr(request.state, "auth", None)
                sub = auth.sub if auth is not None else None
                self.error_tracker.capture(
                    exc,
                    context={"method": request.method, "path": request.url.path},
                    user={"id": sub} if sub else None,
                )
            else:
                logger.warning(data["fullMessage"], data=log_data)

        headers = getattr(exc, "headers", None)
        return JSONResponse(status_code=status_code, content=data, headers=headers)


def setup_exception_handlers(app: FastAPI, error_tracker: SentryService) -> None:
    """Register exception handlers with FastAPI app."""
    handler = ExceptionHandler(error_tracker)

    @app.exception_handler(RequestValidationError)
    async def request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
        return handler.handle(request, ValidationException(fields=_validation_fields(exc.errors())))

    @app.exception_handler(ValidationError)
    async def pydantic_validation_handler(request: Request, exc: ValidationError) -> JSONResponse:
        return handler.handle(request, ValidationException(fields=_validation_fields(exc.errors())))

    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
        return handler.handle(request, exc)

    @app.exception_handler(AppException)
    async def app_exception_handler(request: Request, exc: AppException) -> JSONResponse:
        return handler.handle(request, exc)

    # Unhandled errors go through ServerErrorMiddleware, which re-raises after responding
    @app.exception_handler(Exception)
    async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
        return handler.handle(request, exc)
