"""
FastAPI application factory and configuration.

This module creates and configures the FastAPI application with
middleware, exception handlers and route registration.
"""

import logging
from contextlib import asynccontextmanager
from typing import Any, AsyncIterator, Dict, Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from ...application.container import Container, IContainer
from ...application.startup import ApplicationStartup
from ...infrastructure.config.models import ApplicationConfig
from .errors import register_exception_handlers
from .middleware import ErrorHandlerMiddleware, RequestTimingMiddleware, SecurityMiddleware
from .routers import health, nodes, system

logger = logging.getLogger(__name__)

# Configuration file for apps built by create_app_from_config
CONFIG_FILE_ENV = "MONITOR_CONFIG_FILE"


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """
    Application lifespan manager.

    When the app was created with an ``ApplicationStartup``, its services
    are configured and started here and stopped on shutdown.
    """
    startup: Optional[ApplicationStartup] = getattr(app.state, "startup", None)
    logger.info("Application starting up...")

    if startup is not None:
        await startup.configure_services(app.state.config)
        await startup.start_application()

    try:
        yield
    finally:
        if startup is not None:
            await startup.stop_application()
        logger.info("Application shut down")


def create_app(container: IContainer, config: ApplicationConfig,
               startup: Optional[ApplicationStartup] = None) -> FastAPI:
    """
    Create and configure the FastAPI application.

    Args:
        container: Service container
        config: Application configuration
        startup: Startup sequence run by the app lifespan (optional; when
            omitted the caller is responsible for starting the services)

    Returns:
        Configured FastAPI application
    """
    app = FastAPI(
        title=config.name,
        version=config.version,
        description="Monitor server node management API",
        debug=config.debug,
        lifespan=lifespan
    )

    app.state.container = container
    app.state.config = config
    app.state.startup = startup

    _configure_middleware(app, config)
    register_exception_handlers(app)
    _register_routes(app)

    logger.info(f"FastAPI application created: {config.name} v{config.version}")
    return app


def create_app_from_config() -> FastAPI:
    """
    Create app from configuration (for uvicorn reload).

    Reads the file named by ``MONITOR_CONFIG_FILE`` (set by the ``dev``
    command), falling back to ``config.yaml`` in the working directory
    when present.
    """
    import os
    from pathlib import Path
    from ...infrastructure.config.loader import ConfigLoader

    config_file = os.getenv(CONFIG_FILE_ENV) or (
        "config.yaml" if Path("config.yaml").exists() else None)
    config = ConfigLoader().load_config(config_file)

    container = Container()
    return create_app(container, config, ApplicationStartup(container))


def _configure_middleware(app: FastAPI, config: ApplicationConfig) -> None:
    """Configure application middleware."""

    app.add_middleware(SecurityMiddleware, config=config.security)
    app.add_middleware(RequestTimingMiddleware)
    app.add_middleware(ErrorHandlerMiddleware)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=config.security.allowed_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    logger.debug("Middleware configured")


def _register_routes(app: FastAPI) -> None:
    """Register API routes."""

    app.include_router(
        health.router,
        prefix="/health",
        tags=["health"]
    )

    app.include_router(
        system.router,
        prefix="/api/v1/system",
        tags=["system"]
    )

    app.include_router(nodes.router)

    @app.get("/", tags=["root"])
    async def root() -> Dict[str, Any]:
        """Root endpoint with basic application information."""
        return {
            "name": app.title,
            "version": app.version,
            "status": "running",
            "docs_url": "/docs",
            "health_url": "/health"
        }

    logger.debug("Routes registered")
