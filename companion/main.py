"""
FastAPI application entry point.
Configures logging, CORS, exception handlers, static assets and routes.
"""

import asyncio
import logging
from contextlib import asynccontextmanager
from pathlib import Path
from typing import AsyncGenerator

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.staticfiles import StaticFiles

from companion.api.middleware import RequestLoggingMiddleware, setup_structured_logging
from companion.core.config import settings
from companion.core.container import get_container
from companion.core.exceptions import (
    AppException,
    ServiceUnavailableError,
    log_exception,
)
from companion.db.session import close_db, init_db


logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan handler for startup and shutdown events."""
    setup_structured_logging(settings.logging.level, settings.logging.use_json)

    await init_db()

    container = get_container()
    # Model loading blocks, so it runs off the event loop
    await asyncio.get_running_loop().run_in_executor(
        None, container.get_language_detector().warm_up
    )
    gateway = container.get_provider_gateway()
    logger.info(
        f"{settings.app_name} v{settings.app_version} started "
        f"(mode={container.mode.value}, primary provider={gateway.primary})"
    )
    yield

    await close_db()


def create_app() -> FastAPI:
    """Create and configure the FastAPI application."""
    app = FastAPI(
        title=settings.app_name,
        version=settings.app_version,
        debug=settings.debug,
        lifespan=lifespan,
        docs_url="/docs",
        redoc_url="/redoc",
        openapi_url="/openapi.json",
    )

    allow_credentials = settings.cors_allow_credentials
    if "*" in settings.cors_origins and allow_credentials:
        allow_credentials = False
        logger.warning(
            "CORS allow_credentials=True is not compatible with allow_origins=['*']; "
            "forcing allow_credentials=False."
        )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=allow_credentials,
        allow_methods=settings.cors_allow_methods,
        allow_headers=settings.cors_allow_headers,
    )

    if settings.logging.enable_request_logging:
        app.add_middleware(RequestLoggingMiddleware)

    static_dir = Path(settings.static_dir)
    if static_dir.is_dir():
        app.mount("/static", StaticFiles(directory=static_dir), name="static")
    else:
        logger.warning(f"Static directory '{static_dir}' not found; fallback assets will 404")

    register_exception_handlers(app)
    register_routes(app)

    return app


def register_exception_handlers(app: FastAPI) -> None:
    """Register custom exception handlers.

    Maps custom exceptions to HTTP status codes without exposing internals.
    """

    @app.exception_handler(ServiceUnavailableError)
    async def service_unavailable_handler(
        request: Request, exc: ServiceUnavailableError
    ) -> JSONResponse:
        log_exception(exc, "Service unavailable")
        return JSONResponse(
            status_code=503,
            content={
                "error": exc.error_code,
                "message": exc.message,
            },
        )

    @app.exception_handler(AppException)
    async def app_exception_handler(request: Request, exc: AppException) -> JSONResponse:
        log_exception(exc, "Application error")
        return JSONResponse(
            status_code=500,
            content={
                "error": exc.error_code,
                "message": exc.message,
            },
        )

    @app.exception_handler(Exception)
    async def generic_exception_handler(request: Request, exc: Exception) -> JSONResponse:
        """Log the full exception but return a generic message."""
        logger.exception(f"Unexpected error: {exc}")
        return JSONResponse(
            status_code=500,
            content={
                "error": "internal_error",
                "message": "An unexpected error occurred",
            },
        )


def register_routes(app: FastAPI) -> None:
    from companion.api import character, chat, health, realtime, sessions

    prefix = settings.api_prefix
    app.include_router(chat.router, prefix=prefix)
    app.include_router(character.router, prefix=prefix)
    app.include_router(sessions.router, prefix=prefix)
    app.include_router(realtime.router, prefix=prefix)
    app.include_router(health.router, prefix=prefix)
    # Unprefixed alias for load balancers and the setup script
    app.include_router(health.router)


app = create_app()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "companion.main:app",
        host="0.0.0.0",
        port=8000,
        reload=settings.debug,
    )
