"""
Render Routes
=============

FastAPI route rendering HTML templates to PNG.
"""

from fastapi import APIRouter, Request
from fastapi.responses import Response

from html_to_image.core.pipeline import RenderPipeline
from html_to_image.models.schemas import ErrorResponse, RenderRequest

router = APIRouter(tags=["Rendering"])


def get_pipeline(request: Request) -> RenderPipeline:
    return request.app.state.pipeline


@router.post(
    "/render/png",
    response_class=Response,
    responses={
        200: {"content": {"image/png": {}}, "description": "PNG image"},
        400: {"model": ErrorResponse, "description": "Invalid request or font not allowed"},
        413: {"model": ErrorResponse, "description": "Request body too large"},
        500: {"model": ErrorResponse, "description": "Rendering failed"},
    },
)
async def render_png(body: RenderRequest, request: Request) -> Response:
    """Render HTML (as a Jinja2 template) to PNG bytes."""
    png_bytes = await get_pipeline(request).process(body)
    return Response(content=png_bytes, media_type="image/png")
