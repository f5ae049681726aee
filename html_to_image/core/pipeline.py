"""
Render Pipeline
===============

Orchestrates one render request from untrusted input to PNG bytes:

validate -> resolve fonts -> build context -> expand template ->
(worker) load fonts -> layout/paint -> encode PNG

Every stage either hands its output to the next one or raises a classified
``ApiError``; nothing else leaves the pipeline and no partial output is
ever returned.
"""

from pathlib import Path
from typing import Any, Optional, Sequence

from html_to_image.config.logging import get_logger
from html_to_image.config.settings import ServiceConfig
from html_to_image.core.context import build_context
from html_to_image.core.errors import ApiError, summarize_exception
from html_to_image.core.fonts import ResolvedFont, load_fonts, resolve_requested_fonts
from html_to_image.core.queue.worker_pool import RenderWorkerPool
from html_to_image.core.rendering.codec import encode_png, write_png
from html_to_image.core.rendering.engine import BaseLayoutEngine
from html_to_image.core.rendering.template import render_template
from html_to_image.core.validation import validate_dimensions, validate_request
from html_to_image.models.schemas import (
    DEFAULT_ANIMATION_TIME,
    DEFAULT_SCALE,
    RenderRequest,
)

logger = get_logger(__name__)


def render_png(
    engine: BaseLayoutEngine,
    html: str,
    width: int,
    height: int,
    scale: float,
    animation_time: float,
    fonts: Sequence[ResolvedFont],
) -> bytes:
    """
    Render expanded HTML to PNG bytes on the calling (worker) thread.

    Raises:
        ApiError: ``validation`` for unusable fonts, ``render`` for engine
            and encoder failures
    """
    loaded = load_fonts(fonts)
    try:
        rgba = engine.render(html, width, height, scale, animation_time, loaded)
    except ApiError:
        raise
    except Exception as e:
        raise ApiError.render(f"layout engine failed: {summarize_exception(e)}") from e
    return encode_png(rgba, width, height)


class RenderPipeline:
    """Shared request-processing core for every entry point."""

    def __init__(self, config: ServiceConfig, worker_pool: RenderWorkerPool) -> None:
        self.config = config
        self.worker_pool = worker_pool
        self.logger: Any = logger.bind(component="render_pipeline")

    async def process(self, request: RenderRequest) -> bytes:
        """
        Render an untrusted request to PNG bytes.

        Raises:
            ApiError: classified failure of the first stage that failed
        """
        validate_request(request, self.config.limits)
        fonts = resolve_requested_fonts(self.config.fonts_dir, request.font_paths)
        context = build_context(request.width, request.height, request.data)
        html = render_template(request.html, context)

        self.logger.debug(
            "Dispatching render job",
            width=request.width,
            height=request.height,
            scale=request.scale,
            fonts=len(fonts),
            html_length=len(html),
        )
        return await self._render(
            html, request.width, request.height, request.scale, request.animation_time, fonts
        )

    async def render_to_file(
        self,
        html: str,
        out_path: Path,
        width: int,
        height: int,
        scale: float = DEFAULT_SCALE,
        animation_time: float = DEFAULT_ANIMATION_TIME,
        data: Optional[Any] = None,
        font_paths: Sequence[Path] = (),
    ) -> None:
        """
        Render a template for a trusted local caller and write the PNG file.

        Font paths are used as given instead of being resolved inside the
        fonts directory; they are still loaded and checked.

        Raises:
            ApiError: classified failure of the first stage that failed
        """
        validate_dimensions(width, height, scale, animation_time, self.config.limits)
        fonts = [ResolvedFont(name=str(path), path=Path(path)) for path in font_paths]
        context = build_context(width, height, data)
        html = render_template(html, context)

        def job(engine: BaseLayoutEngine) -> int:
            png_bytes = render_png(engine, html, width, height, scale, animation_time, fonts)
            write_png(Path(out_path), png_bytes)
            return len(png_bytes)

        size = await self.worker_pool.run(job)
        self.logger.info("Wrote PNG", path=str(out_path), size=size)

    async def _render(
        self,
        html: str,
        width: int,
        height: int,
        scale: float,
        animation_time: float,
        fonts: Sequence[ResolvedFont],
    ) -> bytes:
        def job(engine: BaseLayoutEngine) -> bytes:
            return render_png(engine, html, width, height, scale, animation_time, fonts)

        return await self.worker_pool.run(job)
