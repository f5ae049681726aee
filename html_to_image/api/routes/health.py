"""
Health Routes
=============

FastAPI routes for health check endpoints.
"""

from fastapi import APIRouter, Request
from fastapi.responses import PlainTextResponse

from html_to_image import __version__
from html_to_image.models.schemas import HealthStatus, WorkerPoolStatus

router = APIRouter(tags=["Health"])


@router.get("/healthz", response_class=PlainTextResponse)
async def healthz() -> str:
    """Liveness probe."""
    return "ok"


@router.get("/health", response_model=HealthStatus)
async def health_check(request: Request) -> HealthStatus:
    """Health status including render worker pool statistics."""
    pipeline = request.app.state.pipeline
    pool = pipeline.worker_pool
    stats = pool.stats()
    healthy = not pool.closed and stats["workers"] > 0

    return HealthStatus(
        status="healthy" if healthy else "unhealthy",
        version=__version__,
        fonts_enabled=pipeline.config.fonts_dir is not None,
        worker_pool=WorkerPoolStatus(**stats),
    )
