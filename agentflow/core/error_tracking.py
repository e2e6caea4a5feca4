"""Error tracking backed by Sentry."""

from typing import Any, Dict, Optional

import sentry_sdk

from agentflow.config import Settings
from agentflow.core.logging import get_logger

logger = get_logger(__name__)


class SentryService:
    """Thin wrapper so the rest of the app never touches sentry_sdk directly."""

    def __init__(self, settings: Settings):
        self.enabled = bool(settings.sentry_dsn)
        if self.enabled:
            sentry_sdk.init(
                dsn=settings.sentry_dsn,
                environment=settings.environment,
                release=f"{settings.app_name}@{settings.app_version}",
                send_default_pii=False,
            )
            logger.info("Sentry error tracking enabled")

    def capture(
        self,
        exc: BaseException,
        context: Optional[Dict[str, Any]] = None,
        user: Optional[Dict[str, Any]] = None,
    ) -> None:
        if not self.enabled:
            return
        with sentry_sdk.new_scope() as scope:
            if context:
                scope.set_context("request", context)
            if user:
                scope.set_user(user)
            scope.capture_exception(exc)
