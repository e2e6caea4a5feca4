"""Application assembly from routers and lifecycle extensions."""

from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from typing import List

from fastapi import APIRouter, FastAPI

from agentflow.config import Settings
from agentflow.core.logging import get_logger, setup_logging
from agentflow.db import dispose_engine, verify_database_connection

logger = get_logger(__name__)


class AppExtension:
    """A unit of wiring: configures the app, then starts and stops with it.

    Middleware added by a later extension wraps the middleware of earlier ones.
    """

    name = "extension"

    def setup(self, app: FastAPI, settings: Settings) -> None:
        pass

    async def startup(self, app: FastAPI) -> None:
        pass

    async def shutdown(self, app: FastAPI) -> None:
        pass


class AppBootstrapper:
    def __init__(self, settings: Settings):
        self.settings = settings
        self.extensions: List[AppExtension] = []
        self.routers: List[APIRouter] = []

    def add_extension(self, extension: AppExtension) -> "AppBootstrapper":
        self.extensions.append(extension)
        return self

    def add_routers(self, *routers: APIRouter) -> "AppBootstrapper":
        self.routers.extend(routers)
        return self

    def _lifespan(self):
        settings = self.settings
        extensions = self.extensions

        @asynccontextmanager
        async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
            setup_logging(
                level=settings.log_level,
                json_output=not settings.debug,
                log_file=settings.log_file or None,
                app_name=settings.app_name,
                environment=settings.environment,
                version=settings.app_version,
            )
            logger.info(
                f"Starting {settings.app_name}",
                data={
                    "host": settings.host,
                    "port": settings.port,
                    "environment": settings.environment,
                    "global_prefix": settings.global_prefix,
                    "extensions": [ext.name for ext in extensions],
                },
            )

            if verify_database_connection():
                logger.info("Database connection verified")
            else:
                logger.warning("Database connection failed - run 'alembic upgrade head' to initialize")

            started: List[AppExtension] = []
            try:
                for extension in extensions:
                    await extension.startup(app)
                    started.append(extension)
                yield
            finally:
                logger.info(f"Shutting down {settings.app_name}")
                for extension in reversed(started):
                    try:
                        await extension.shutdown(app)
                    except Exception as exc:
                        logger.error(
                            f"Extension {extension.name} failed to shut down",
                            data={"error": str(exc)},
                            exc_info=True,
                        )
                dispose_engine()

        return lifespan

    def build(self) -> FastAPI:
        settings = self.settings
        swagger_path = settings.swagger_path.rstrip("/")
        app = FastAPI(
            title=settings.app_name,
            description="Graph-based agent workflows: definitions, execution, threads and messages",
            version=settings.app_version,
            lifespan=self._lifespan(),
            docs_url=swagger_path or None,
            openapi_url=f"{swagger_path}/openapi.json" if swagger_path else None,
            redoc_url=None,
        )
        app.state.settings = settings

        for extension in self.extensions:
            extension.setup(app, settings)

        for router in self.routers:
            app.include_router(router, prefix=settings.global_prefix)

        return app
