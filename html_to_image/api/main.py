"""
FastAPI Application
==================

Main FastAPI application serving the render endpoint, plus the
``html-to-image-server`` entrypoint.
"""

import sys
from contextlib import asynccontextmanager
from functools import partial
from typing import AsyncGenerator, Optional

import uvicorn
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from html_to_image import __version__
from html_to_image.api.middleware import BodySizeLimitMiddleware, add_request_id
from html_to_image.api.routes.health import router as health_router
from html_to_image.api.routes.render import router as render_router
from html_to_image.config.logging import get_logger, setup_logging
from html_to_image.config.settings import (
    ConfigurationError,
    ServiceConfig,
    Settings,
    default_render_workers,
    load_settings,
)
from html_to_image.core.errors import ApiError
from html_to_image.core.pipeline import RenderPipeline
from html_to_image.core.queue.worker_pool import EngineFactory, RenderWorkerPool
from html_to_image.core.rendering.engine import PlaywrightLayoutEngine

logger = get_logger(__name__)

API_TITLE = "HTML to Image API"


def create_app(
    config: ServiceConfig,
    engine_factory: EngineFactory = PlaywrightLayoutEngine,
    render_workers: Optional[int] = None,
    max_pending_renders: Optional[int] = None,
    enable_docs: bool = True,
) -> FastAPI:
    """
    Application factory.

    Args:
        config: Immutable service configuration shared by every request
        engine_factory: Creates one layout engine per render worker thread
        render_workers: Render worker threads (defaults to ``min(4, cpu_count)``)
        max_pending_renders: Jobs allowed to wait for a worker (defaults to 4 per worker)
        enable_docs: Expose Swagger UI at ``/swagger`` and the OpenAPI document

    Returns:
        FastAPI application instance
    """
    workers = render_workers or default_render_workers()
    pending = max_pending_renders if max_pending_renders is not None else workers * 4

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
        """Application lifespan manager."""
        pool = RenderWorkerPool(engine_factory, max_workers=workers, max_pending=pending)
        pool.start()
        app.state.pipeline = RenderPipeline(config, pool)
        logger.info(
            "Render service started",
            fonts_dir=str(config.fonts_dir) if config.fonts_dir else None,
            max_body_size=config.max_body_size,
            workers=workers,
        )
        try:
            yield
        finally:
            logger.info("Shutting down render service")
            await pool.aclose()

    app = FastAPI(
        title=API_TITLE,
        version=__version__,
        lifespan=lifespan,
        docs_url="/swagger" if enable_docs else None,
        redoc_url=None,
        openapi_url="/spec" if enable_docs else None,
        servers=[{"url": config.server_base_url}] if config.server_base_url else None,
    )

    app.add_middleware(BodySizeLimitMiddleware, max_body_size=config.max_body_size)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["GET", "POST"],
        allow_headers=["*"],
    )
    app.middleware("http")(add_request_id)

    app.include_router(health_router)
    app.include_router(render_router)

    if enable_docs:

        @app.get("/api/spec", include_in_schema=False)
        async def openapi_spec_alias() -> JSONResponse:
            """Alias of ``/spec``."""
            return JSONResponse(app.openapi())

    register_exception_handlers(app)
    return app


def register_exception_handlers(app: FastAPI) -> None:
    """Map classified and unexpected errors to JSON error bodies."""

    @app.exception_handler(ApiError)
    async def api_error_handler(request: Request, exc: ApiError) -> JSONResponse:
        log = logger.warning if exc.status_code < 500 else logger.error
        log(
            "Render request failed",
            kind=exc.kind.value,
            error=str(exc),
            cause=repr(exc.__cause__) if exc.__cause__ else None,
            request_id=getattr(request.state, "request_id", None),
        )
        return JSONResponse(status_code=exc.status_code, content={"error": str(exc)})

    @app.exception_handler(RequestValidationError)
    async def request_validation_handler(
        request: Request, exc: RequestValidationError
    ) -> JSONResponse:
        error = ApiError.validation(describe_validation_errors(exc))
        logger.warning(
            "Malformed render request",
            error=str(error),
            request_id=getattr(request.state, "request_id", None),
        )
        return JSONResponse(status_code=error.status_code, content={"error": str(error)})

    @app.exception_handler(Exception)
    async def general_exception_handler(request: Request, exc: Exception) -> JSONResponse:
        logger.error(
            "Unhandled exception",
            exception=str(exc),
            request_id=getattr(request.state, "request_id", None),
            exc_info=exc,
        )
        return JSONResponse(status_code=500, content={"error": "internal server error"})


def describe_validation_errors(exc: RequestValidationError) -> str:
    """Fold pydantic errors into one sentence."""
    parts = []
    for error in exc.errors():
        location = ".".join(str(part) for part in error.get("loc", ()) if part != "body")
        message = error.get("msg", "invalid value")
        parts.append(f"{location}: {message}" if location else message)
    return "; ".join(parts) or "malformed request body"


def create_app_from_settings(settings: Settings) -> FastAPI:
    """Build the application from environment settings."""
    config = settings.to_service_config()
    return create_app(
        config,
        engine_factory=partial(PlaywrightLayoutEngine, timeout_ms=settings.browser_timeout_ms),
        render_workers=settings.render_workers,
        max_pending_renders=settings.max_pending_renders,
        enable_docs=settings.enable_docs,
    )


def main() -> None:
    """Run the render server."""
    try:
        settings = load_settings()
    except ValueError as e:
        print(f"invalid configuration: {e}", file=sys.stderr)
        raise SystemExit(1) from e

    setup_logging(settings.log_level, settings.environment)
    try:
        app = create_app_from_settings(settings)
    except ConfigurationError as e:
        logger.error("Invalid configuration", error=str(e))
        print(str(e), file=sys.stderr)
        raise SystemExit(1) from e

    logger.info("listening", addr=settings.server_addr)
    uvicorn.run(
        app,
        host=settings.host,
        port=settings.port,
        log_config=None,
        access_log=False,
        timeout_graceful_shutdown=30,
    )
    logger.info("server stopped")


if __name__ == "__main__":
    main()
