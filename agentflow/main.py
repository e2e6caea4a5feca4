"""
Agentflow API application.

Graph-based agent workflows over FastAPI: authentication, metrics,
graph runtime and HTTP plumbing are wired as extensions.
"""

from fastapi import FastAPI

from agentflow.api.v1 import router as v1_router
from agentflow.auth.extension import AuthExtension
from agentflow.bootstrapper import AppBootstrapper
from agentflow.config import get_settings
from agentflow.core.http_server import HttpServerExtension
from agentflow.graphs.extension import GraphsExtension
from agentflow.metrics.extension import MetricsExtension


def create_app() -> FastAPI:
    """Create and configure the FastAPI application."""
    settings = get_settings()

    # Later extensions wrap earlier middleware: request context and CORS stay outermost
    bootstrapper = (
        AppBootstrapper(settings)
        .add_extension(AuthExtension())
        .add_extension(MetricsExtension())
        .add_extension(GraphsExtension())
        .add_extension(HttpServerExtension())
        .add_routers(v1_router)
    )
    return bootstrapper.build()


# Create application instance
app = create_app()


if __name__ == "__main__":
    import uvicorn

    _settings = get_settings()
    uvicorn.run("agentflow.main:app", host=_settings.host, port=_settings.port, reload=_settings.debug)
