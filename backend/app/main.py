"""FastAPI application entry point."""

import logging
from contextlib import asynccontextmanager
from typing import Optional
from fastapi import FastAPI

from .api import router, health_router
from .config import Settings, get_settings
from .middleware import install_middleware, register_error_handlers
from .models import ServiceInfo
from .services import ExternalStores
from . import __version__

logger = logging.getLogger(__name__)


def configure_logging(settings: Settings) -> None:
    """Configure root logging once for the process."""
    logging.basicConfig(
        level=settings.log_level.upper(),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
    )


def build_lifespan(settings: Settings, stores: ExternalStores):
    """Create the lifespan manager bound to the injected stores."""

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """Application lifespan manager - handles startup and shutdown."""
        # Startup
        logger.info(f"Starting {settings.app_name}... (env={settings.environment})")
        try:
            await stores.open()
            logger.info(f"API ready - Version {__version__}")
            yield
        finally:
            # Shutdown
            logger.info(f"Shutting down {settings.app_name}...")
            await stores.close()
            logger.info("External stores closed")

    return lifespan


def create_app(
    settings: Optional[Settings] = None,
    stores: Optional[ExternalStores] = None,
) -> FastAPI:
    """Create and configure FastAPI application."""
    settings = settings or get_settings()
    stores = stores or ExternalStores()
    api_prefix = settings.api_prefix

    app = FastAPI(
        title=settings.app_name,
        description="""
## Email Validation API

Checks email addresses against a basic syntax pattern.

### Features
- **Single validation**: `POST /validate` with `{"email": "..."}`
- **Batch validation**: `POST /batch` with `{"emails": [...]}`
- **Health probes**: `/health`, `/health/ready`, `/health/live`

Validation is intentionally simplified: only syntax is checked and the
quality score is a fixed value.
        """,
        version=__version__,
        lifespan=build_lifespan(settings, stores),
        docs_url=f"{api_prefix}/docs",
        redoc_url=f"{api_prefix}/redoc",
        openapi_url=f"{api_prefix}/openapi.json",
    )
    app.state.settings = settings
    app.state.stores = stores

    install_middleware(app, settings)
    register_error_handlers(app)

    # Include routes
    app.include_router(health_router, prefix="/health")
    app.include_router(router, prefix=api_prefix)

    @app.get("/", response_model=ServiceInfo, tags=["System"])
    async def root():
        """Describe the service and its endpoints."""
        return ServiceInfo(
            name=settings.app_name,
            version=__version__,
            status="running",
            documentation=f"{api_prefix}/docs",
            endpoints={
                "validate": f"{api_prefix}/validate",
                "batch": f"{api_prefix}/batch",
                "health": "/health",
            },
        )

    return app


# Create app instance
app = create_app()
