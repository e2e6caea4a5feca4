"""HTTP server wiring: error handling, request context, CORS and health."""

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from agentflow.bootstrapper import AppExtension
from agentflow.config import Settings
from agentflow.core.error_handler import setup_exception_handlers
from agentflow.core.error_tracking import SentryService
from agentflow.core.middleware import RequestContextMiddleware


class HttpServerExtension(AppExtension):
    """Register last so request context and CORS wrap everything else."""

    name = "http-server"

    def setup(self, app: FastAPI, settings: Settings) -> None:
        from agentflow.api.health import router as health_router

        error_tracker = SentryService(settings)
        app.state.error_tracker = error_tracker
        setup_exception_handlers(app, error_tracker)

        app.add_middleware(RequestContextMiddleware)

        origins = settings.cors_origins_list
        app.add_middleware(
            CORSMiddleware,
            allow_origins=origins,
            allow_credentials="*" not in origins,
            allow_methods=["GET", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"],
            allow_headers=["*"],
            expose_headers=["X-Request-ID"],
        )

        app.include_router(health_router)
