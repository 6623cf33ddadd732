"""FastAPI application for Whisperer."""

from __future__ import annotations

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from whisperer import __version__
from whisperer.config import Settings
from whisperer.exceptions import (
    AuthenticationError,
    DeliveryError,
    NotFoundError,
    ValidationError,
    WhispererError,
)
from whisperer.logging import configure_from_settings, get_logger
from whisperer.service import WhispererService

from .router import router, set_service

logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Manage application lifespan.

    Creates the WhispererService on startup. On shutdown, in-flight
    delivery chains are awaited before the store is closed.
    """
    settings: Settings = app.state.settings

    configure_from_settings(settings)
    logger.info(
        "Starting Whisperer API",
        log_level=settings.log_level,
        storage_backend=settings.storage_backend,
    )

    service = WhispererService.create(settings)
    await service.initialize()
    set_service(service)

    yield

    await service.close()
    set_service(None)


def create_app(settings: Settings | None = None) -> FastAPI:
    """Create a FastAPI application.

    Args:
        settings: Optional settings. Uses environment if None.

    Returns:
        Configured FastAPI application.

    Example:
        ```python
        from whisperer.api import create_app

        app = create_app()
        # Run with: uvicorn whisperer.api:app --reload
        ```
    """
    if settings is None:
        settings = Settings()

    app = FastAPI(
        title="Whisperer",
        description="Signed webhook delivery and CRM contact matching for sales call analysis.",
        version=__version__,
        lifespan=lifespan,
        docs_url="/docs",
        redoc_url="/redoc",
    )
    app.state.settings = settings

    @app.exception_handler(ValidationError)
    async def validation_error_handler(request: Request, exc: ValidationError) -> JSONResponse:
        """Handle validation errors with 400 status."""
        logger.warning(
            "Validation error", field=exc.field, error=exc.message, path=str(request.url)
        )
        return JSONResponse(status_code=400, content=exc.to_dict())

    @app.exception_handler(NotFoundError)
    async def not_found_error_handler(request: Request, exc: NotFoundError) -> JSONResponse:
        """Handle not found errors with 404 status."""
        logger.info(
            "Resource not found",
            resource_type=exc.resource_type,
            resource_id=exc.resource_id,
            path=str(request.url),
        )
        return JSONResponse(status_code=404, content=exc.to_dict())

    @app.exception_handler(AuthenticationError)
    async def authentication_error_handler(
        request: Request, exc: AuthenticationError
    ) -> JSONResponse:
        """Handle authentication errors with 401 status."""
        logger.warning("Authentication failed", error=exc.message, path=str(request.url))
        return JSONResponse(
            status_code=401,
            content=exc.to_dict(),
            headers={"WWW-Authenticate": "Bearer"},
        )

    @app.exception_handler(DeliveryError)
    async def delivery_error_handler(request: Request, exc: DeliveryError) -> JSONResponse:
        """Handle a dispatcher that is shutting down with 503 status."""
        logger.warning("Delivery unavailable", error=exc.message, path=str(request.url))
        return JSONResponse(status_code=503, content=exc.to_dict())

    @app.exception_handler(WhispererError)
    async def whisperer_error_handler(request: Request, exc: WhispererError) -> JSONResponse:
        """Handle all other Whisperer errors with 500 status."""
        logger.error("Whisperer error", error=exc.message, code=exc.code, path=str(request.url))
        return JSONResponse(status_code=500, content=exc.to_dict())

    app.include_router(router, prefix="/api/v1")

    return app


# Default app instance for uvicorn
app = create_app()
