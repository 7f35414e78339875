# Copyright (c) 2025 Parth Sinha and Shine Gupta. All rights reserved.
# Crashlink - Links GitHub accounts over OAuth and escalates crash reports into GitHub issues.

"""
FastAPI application entrypoint.
"""

from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, Request, status
from fastapi.responses import HTMLResponse, JSONResponse, PlainTextResponse
import structlog

from app.api.v1 import router as v1_router
from app.api.v1.oauth import render_page
from app.core.config import Settings, get_settings
from app.core.schemas.reports import HealthResponse
from app.dependencies import ServiceContainer
from app.exceptions import CrashlinkError, OAuthNotConfigured
from app.utils.logging import configure_logging
from app.version import __version__

logger = structlog.get_logger(__name__)


def create_app(settings: Optional[Settings] = None) -> FastAPI:
    """
    Build the application.

    Args:
        settings: Settings to use (defaults to environment settings)
    """
    settings = settings or get_settings()
    configure_logging(settings.log_level, settings.log_json)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        app.state.container = ServiceContainer.build(settings)
        logger.info("crashlink_started", version=__version__)
        try:
            yield
        finally:
            app.state.container.close()
            logger.info("crashlink_stopped")

    app = FastAPI(
        title="Crashlink",
        description="Links GitHub accounts over OAuth and escalates crash reports into GitHub issues.",
        version=__version__,
        lifespan=lifespan,
    )

    app.include_router(v1_router)

    @app.get("/", response_class=PlainTextResponse, include_in_schema=False)
    async def root() -> str:
        return "Crashlink backend running"

    @app.get("/health", response_model=HealthResponse, tags=["Health"])
    async def health() -> HealthResponse:
        return HealthResponse(ok=True)

    @app.exception_handler(OAuthNotConfigured)
    async def oauth_not_configured_handler(request: Request, exc: OAuthNotConfigured) -> HTMLResponse:
        logger.error("github_oauth_not_configured", path=request.url.path)
        return render_page(
            "GitHub OAuth not configured",
            "This server is missing its GitHub OAuth credentials.",
            status.HTTP_500_INTERNAL_SERVER_ERROR,
        )

    @app.exception_handler(CrashlinkError)
    async def crashlink_error_handler(request: Request, exc: CrashlinkError) -> JSONResponse:
        logger.error(
            "request_failed",
            path=request.url.path,
            error_type=type(exc).__name__,
            error=str(exc),
        )
        return JSONResponse(
            status_code=exc.status_code,
            content={"ok": False, "error": str(exc)},
        )

    @app.exception_handler(Exception)
    async def unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
        logger.error(
            "unhandled_exception",
            path=request.url.path,
            error_type=type(exc).__name__,
            exc_info=exc,
        )
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={"ok": False, "error": "internal_error"},
        )

    return app


app = create_app()
