"""Core utilities: logging, errors, middleware."""

from agentflow.core.error_handler import ExceptionHandler, setup_exception_handlers
from agentflow.core.error_tracking import SentryService
from agentflow.core.exceptions import (
    AppException,
    BadRequestException,
    ConflictException,
    ForbiddenException,
    InternalException,
    NotFoundException,
    UnauthorizedException,
    ValidationException,
    get_exception_data,
)
from agentflow.core.logging import get_logger, request_context, setup_logging
from agentflow.core.middleware import RequestContextMiddleware

__all__ = [
    "AppException",
    "BadRequestException",
    "ConflictException",
    "ExceptionHandler",
    "ForbiddenException",
    "InternalException",
    "NotFoundException",
    "RequestContextMiddleware",
    "SentryService",
    "UnauthorizedException",
    "ValidationException",
    "get_exception_data",
    "get_logger",
    "request_context",
    "setup_exception_handlers",
    "setup_logging",
]
