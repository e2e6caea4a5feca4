"""Application exception taxonomy and error payload normalisation."""

from typing import Any, Dict, List, Optional

from fastapi import status
from starlette.exceptions import HTTPException as StarletteHTTPException

DEFAULT_MESSAGE = "An exception has occurred"

# Human-readable descriptions for known error codes
EXCEPTION_CODES: Dict[str, str] = {
    "BAD_REQUEST": "Bad request",
    "UNAUTHORIZED": "Unauthorized",
    "FORBIDDEN": "Forbidden",
    "NOT_FOUND": "Not found",
    "CONFLICT": "Conflict",
    "VALIDATION_ERROR": "Validation error",
    "INTERNAL_SERVER_ERROR": "Internal server error",
    "NO_SUB": "No sub",
    "INVALID_TOKEN": "Invalid token",
    "GRAPH_NOT_FOUND": "Graph not found",
    "GRAPH_NOT_RUNNING": "Graph is not running",
    "GRAPH_ALREADY_RUNNING": "Graph is already running",
    "GRAPH_VERSION_CONFLICT": "Graph version conflicts with the current version",
    "NODE_NOT_FOUND": "Node not found",
    "NODE_NOT_TRIGGER": "Node is not a trigger",
    "TRIGGER_NOT_LISTENING": "Trigger is not listening",
    "TEMPLATE_NOT_FOUND": "Template not found",
    "TEMPLATE_ALREADY_REGISTERED": "Template is already registered",
    "THREAD_NOT_FOUND": "Thread not found",
    "PROVIDER_NOT_FOUND": "Chat provider is not configured",
}

DEFAULT_CODES: Dict[int, str] = {
    status.HTTP_400_BAD_REQUEST: "BAD_REQUEST",
    status.HTTP_401_UNAUTHORIZED: "UNAUTHORIZED",
    status.HTTP_403_FORBIDDEN: "FORBIDDEN",
    status.HTTP_404_NOT_FOUND: "NOT_FOUND",
    status.HTTP_422_UNPROCESSABLE_ENTITY: "VALIDATION_ERROR",
}


class AppException(Exception):
    """Base exception carrying an error code and an HTTP status."""

    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR
    default_code: str = "INTERNAL_SERVER_ERROR"

    def __init__(
        self,
        code: Optional[str] = None,
        description: Optional[str] = None,
        fields: Optional[List[Dict[str, str]]] = None,
        custom_data: Optional[Dict[str, Any]] = None,
        status_code: Optional[int] = None,
    ):
        self.code = code or self.default_code
        self.message = description or EXCEPTION_CODES.get(self.code, DEFAULT_MESSAGE)
        self.fields = fields or []
        self.custom_data = custom_data or {}
        if status_code is not None:
            self.status_code = status_code
        super().__init__(self.message)


class BadRequestException(AppException):
    status_code = status.HTTP_400_BAD_REQUEST
    default_code = "BAD_REQUEST"


class UnauthorizedException(AppException):
    status_code = status.HTTP_401_UNAUTHORIZED
    default_code = "UNAUTHORIZED"


class ForbiddenException(AppException):
    status_code = status.HTTP_403_FORBIDDEN
    default_code = "FORBIDDEN"


class NotFoundException(AppException):
    status_code = status.HTTP_404_NOT_FOUND
    default_code = "NOT_FOUND"


class ConflictException(AppException):
    status_code = status.HTTP_409_CONFLICT
    default_code = "CONFLICT"


class ValidationException(AppException):
    """Request payload failed validation.

    Reported as 403 rather than 422; API clients depend on this status.
    """

    status_code = status.HTTP_403_FORBIDDEN
    default_code = "VALIDATION_ERROR"


class InternalException(AppException):
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    default_code = "INTERNAL_SERVER_ERROR"


def build_full_message(code: str, message: str, fields: List[Dict[str, str]]) -> str:
    """Render ``[CODE] message: field - reason, ...``."""
    full = f"[{code}] {message}"
    if fields:
        details = ", ".join(f"{f.get('name')} - {f.get('message')}" for f in fields)
        full = f"{full}: {details}"
    return full


def get_exception_data(exc: Exception) -> Dict[str, Any]:
    """Normalise any exception into the public error payload."""
    if isinstance(exc, AppException):
        status_code = exc.status_code
        code = exc.code
        message = exc.message
        fields = exc.fields
    elif isinstance(exc, StarletteHTTPException):
        status_code = exc.status_code
        code = DEFAULT_CODES.get(status_code, "INTERNAL_SERVER_ERROR")
        message = exc.detail if isinstance(exc.detail, str) else DEFAULT_MESSAGE
        fields = []
    else:
        status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
        code = "INTERNAL_SERVER_ERROR"
        message = str(exc) or DEFAULT_MESSAGE
        fields = []

    return {
        "statusCode": status_code,
        "code": code,
        "message": message,
        "fullMessage": build_full_message(code, message, fields),
        "fields": fields,
    }
