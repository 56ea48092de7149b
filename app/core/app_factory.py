"""Application factory for the portal API.

Centralizes app construction (metadata, middleware, handlers, routers and
the service container lifecycle) so tests can build isolated instances.
"""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import Callable

from fastapi import FastAPI

from app.api.routes import admin_router, collaborators_router, health_router, innovators_router
from app.core.config import settings
from app.core.container import ServiceContainer, build_container
from app.core.exception_handlers import setup_exception_handlers
from app.core.logging import configure_logging
from app.core.middleware import request_id_middleware
from app.core.openapi import apply_openapi_customizations

logger = logging.getLogger(__name__)

ContainerFactory = Callable[[], ServiceContainer]


def create_app(container_factory: ContainerFactory | None = None) -> FastAPI:
    """Create and configure the FastAPI application instance.

    Args:
        container_factory: Builds the service container on startup.
            Defaults to wiring everything from the global settings.

    Returns:
        Configured FastAPI app with middleware, handlers, routers and docs.
    """
    # Logging first so subsequent init logs are formatted as desired
    configure_logging(settings)

    factory = container_factory or (lambda: build_container(settings))

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        container = factory()
        container.start()
        app.state.container = container
        logger.info("app.startup")
        try:
            yield
        finally:
            container.close()
            logger.info("app.shutdown")

    app = FastAPI(
        title="Entrepreneurship Center Portal API",
        description=(
            "Backend for the entrepreneurship center portal: public collaborator "
            "and innovator submissions and listings, plus the admin console "
            "(search, review, export, statistics and audit log). Admin endpoints "
            "require a bearer token; every endpoint is rate limited."
        ),
        version="0.1.0",
        lifespan=lifespan,
    )

    app.middleware("http")(request_id_middleware)

    setup_exception_handlers(app)

    app.include_router(collaborators_router, prefix="/api")
    app.include_router(innovators_router, prefix="/api")
    app.include_router(admin_router, prefix="/api")
    app.include_router(health_router)

    apply_openapi_customizations(app)

    return app
