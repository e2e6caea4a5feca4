"""Structured logging configuration for agentflow."""

import json
import logging
import re
import sys
from contextvars import ContextVar
from typing import Any, Dict, Optional, Set

from agentflow.core.time import utcnow

# Request-scoped data (request_id, path, method, sub)
request_context: ContextVar[Dict[str, Any]] = ContextVar("request_context", default={})

SENSITIVE_KEYS: Set[str] = {
    "authorization",
    "cookie",
    "set-cookie",
    "x-api-key",
    "api_key",
    "openai_compat_api_key",
    "password",
    "token",
    "access_token",
    "refresh_token",
}

# Dev-mode identity headers carry claims and are treated like credentials
SENSITIVE_PREFIXES = ("x-dev-jwt-",)

_COOKIE_VALUE = re.compile(r"=[^;]*")

# Static fields stamped on every structured record
_app_fields: Dict[str, Any] = {}


def _is_sensitive_key(key: str) -> bool:
    key_lower = key.lower()
    return key_lower in SENSITIVE_KEYS or key_lower.startswith(SENSITIVE_PREFIXES)


def _mask(value: Any) -> str:
    """Mask a secret, keeping the first/last 3 chars of long values."""
    if not isinstance(value, str):
        return "[REDACTED]"
    if len(value) < 12:
        return "<REDACTED>"
    return f"{value[:3]}***{value[-3:]}"


def redact_sensitive_data(data: Any) -> Any:
    """Recursively redact credentials from dicts and lists.

    Keys are matched case-insensitively. Cookie headers keep their names
    but lose their values.
    """
    if isinstance(data, dict):
        redacted = {}
        for key, value in data.items():
            key_str = str(key)
            if "cookie" in key_str.lower():
                if isinstance(value, str):
                    redacted[key] = _COOKIE_VALUE.sub("=<REDACTED>", value)
                else:
                    redacted[key] = "[REDACTED]"
            elif _is_sensitive_key(key_str):
                redacted[key] = _mask(value)
            else:
                redacted[key] = redact_sensitive_data(value)
        return redacted
    if isinstance(data, (list, tuple)):
        return [redact_sensitive_data(item) for item in data]
    return data


class StructuredFormatter(logging.Formatter):
    """JSON formatter for structured logging."""

    def format(self, record: logging.LogRecord) -> str:
        log_data = {
            "timestamp": utcnow().isoformat() + "Z",
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            **_app_fields,
        }

        ctx = request_context.get()
        if ctx:
            log_data["request_id"] = ctx.get("request_id")
            log_data["path"] = ctx.get("path")
            if ctx.get("sub"):
                log_data["sub"] = ctx.get("sub")

        if getattr(record, "data", None):
            log_data["data"] = redact_sensitive_data(record.data)

        if record.exc_info:
            log_data["exception"] = self.formatException(record.exc_info)

        return json.dumps(log_data, default=str)


class ConsoleFormatter(logging.Formatter):
    """Human-readable formatter for console output."""

    COLORS = {
        "DEBUG": "\033[36m",
        "INFO": "\033[32m",
        "WARNING": "\033[33m",
        "ERROR": "\033[31m",
        "CRITICAL": "\033[35m",
    }
    RESET = "\033[0m"

    def format(self, record: logging.LogRecord) -> str:
        color = self.COLORS.get(record.levelname, "")
        timestamp = utcnow().strftime("%Y-%m-%d %H:%M:%S")
        ctx = request_context.get()
        request_id = ctx.get("request_id", "-")[:8] if ctx else "-"

        message = (
            f"{timestamp} | {color}{record.levelname:8}{self.RESET} | "
            f"{request_id} | {record.name} | {record.getMessage()}"
        )
        if getattr(record, "data", None):
            message += f" | {redact_sensitive_data(record.data)}"
        if record.exc_info:
            message += f"\n{self.formatException(record.exc_info)}"
        return message


class ContextLogger(logging.LoggerAdapter):
    """Logger adapter accepting a ``data=`` mapping of structured context."""

    def process(self, msg: str, kwargs: Dict[str, Any]) -> tuple:
        extra = kwargs.get("extra", {})
        if "data" in kwargs:
            extra["data"] = kwargs.pop("data")
        kwargs["extra"] = extra
        return msg, kwargs


_loggers: Dict[str, ContextLogger] = {}


def get_logger(name: str) -> ContextLogger:
    """Get a context-aware logger."""
    if name not in _loggers:
        _loggers[name] = ContextLogger(logging.getLogger(name), {})
    return _loggers[name]


def setup_logging(
    level: str = "INFO",
    json_output: bool = False,
    log_file: Optional[str] = None,
    app_name: Optional[str] = None,
    environment: Optional[str] = None,
    version: Optional[str] = None,
) -> None:
    """Configure application logging."""
    _app_fields.clear()
    if app_name:
        _app_fields["app"] = app_name
    if environment:
        _app_fields["environment"] = environment
    if version:
        _app_fields["version"] = version

    root_logger = logging.getLogger()
    root_logger.setLevel(getattr(logging, level.upper()))
    root_logger.handlers.clear()

    console_handler = logging.StreamHandler(sys.stdout)
    if json_output:
        console_handler.setFormatter(StructuredFormatter())
    else:
        console_handler.setFormatter(ConsoleFormatter())
    root_logger.addHandler(console_handler)

    # File output is always JSON
    if log_file:
        file_handler = logging.FileHandler(log_file)
        file_handler.setFormatter(StructuredFormatter())
        root_logger.addHandler(file_handler)

    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)
