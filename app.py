"""Main FastAPI application for Evexia.

This module creates and configures the FastAPI application with all
routers, middleware, and error handlers.
"""

from contextlib import asynccontextmanager
from typing import Any, AsyncIterator, Dict

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from evexia.api import (
    auth_endpoints,
    health,
    organization_endpoints,
    patient_endpoints,
    provider_endpoints,
)
from evexia.api.exceptions import register_exception_handlers
from evexia.config import get_settings
from evexia.middleware import RequestLoggingMiddleware, SecurityHeadersMiddleware
from evexia.utils.logging import get_logger, setup_logging

# Setup logging
setup_logging()
logger = get_logger(__name__)

# Get settings
settings = get_settings()


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Application lifespan handler."""
    logger.info(
        "application_starting",
        app_name=settings.app_name,
        version=settings.app_version,
        environment=settings.environment,
        auth_mode=settings.auth_mode.value,
    )

    if settings.environment == "development":
        from evexia.core.database import init_db  # pylint: disable=import-outside-toplevel

        init_db()
        logger.info("database_initialized")

    yield

    logger.info("application_stopping")


def create_app() -> FastAPI:
    """Build the application."""
    application = FastAPI(
        title=settings.app_name,
        version=settings.app_version,
        description="Patient-controlled sharing of medical records with providers",
        docs_url="/docs" if settings.debug else None,
        redoc_url="/redoc" if settings.debug else None,
        openapi_url="/openapi.json" if settings.debug else None,
        lifespan=lifespan,
    )

    # Security headers wrap everything below
    application.add_middleware(SecurityHeadersMiddleware)
    application.add_middleware(RequestLoggingMiddleware)

    # CORS
    application.add_middleware(
        CORSMiddleware,
        allow_origins=settings.allowed_origins,
        allow_credentials="*" not in settings.allowed_origins,
        allow_methods=["GET", "POST", "PATCH", "DELETE"],
        allow_headers=["*"],
        max_age=3600,
    )

    register_exception_handlers(application)

    application.include_router(health.router)
    application.include_router(auth_endpoints.router)
    application.include_router(patient_endpoints.router)
    application.include_router(provider_endpoints.router)
    application.include_router(organization_endpoints.router)

    @application.get("/")
    async def root() -> Dict[str, Any]:
        """Root endpoint."""
        return {
            "name": settings.app_name,
            "version": settings.app_version,
            "status": "running",
        }

    return application


app = create_app()


def main() -> None:
    """Run the development server."""
    import uvicorn  # pylint: disable=import-outside-toplevel

    uvicorn.run(
        "app:app",
        host="0.0.0.0",
        port=8000,
        reload=settings.debug,
        log_level=settings.log_level.lower(),
    )


if __name__ == "__main__":
    main()
