"""
Pydantic Models and Schemas
===========================

API request and response models for the render service.
"""

from typing import Any, List, Optional

from pydantic import BaseModel, Field

DEFAULT_SCALE = 1.0
DEFAULT_ANIMATION_TIME = 5.0


class RenderRequest(BaseModel):
    """Render an HTML template to PNG."""

    html: str = Field(..., description="HTML content that may contain Jinja2 placeholders")
    width: int = Field(..., description="Output width in pixels (1..=4096 by default)")
    height: int = Field(..., description="Output height in pixels (1..=4096 by default)")
    scale: float = Field(default=DEFAULT_SCALE, description="Scale factor applied during painting")
    animation_time: float = Field(
        default=DEFAULT_ANIMATION_TIME,
        description="Virtual animation time in seconds passed into the renderer",
    )
    font_paths: Optional[List[str]] = Field(
        default=None,
        description="Optional font file names resolved against the configured fonts directory",
    )
    data: Optional[Any] = Field(
        default=None, description="Arbitrary template variables (free-form JSON)"
    )

    model_config = {
        "json_schema_extra": {
            "examples": [
                {
                    "html": "<div>{{ name }}</div>",
                    "width": 64,
                    "height": 48,
                    "data": {"name": "Test User"},
                }
            ]
        }
    }


class ErrorResponse(BaseModel):
    """Error response body."""

    error: str = Field(..., description="Human-readable error message")


class WorkerPoolStatus(BaseModel):
    """Render worker pool statistics."""

    workers: int
    busy_workers: int
    admitted_jobs: int
    capacity: int


class HealthStatus(BaseModel):
    """Service health status."""

    status: str = Field(..., description="Overall status")
    version: str = Field(..., description="Service version")
    fonts_enabled: bool = Field(..., description="Whether a fonts directory is configured")
    worker_pool: WorkerPoolStatus
