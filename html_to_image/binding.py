"""
In-process Binding
==================

Async API for rendering a template file to a PNG file from Python code.

Rendering runs on a render worker thread, so awaiting it never blocks the
caller's event loop.
"""

from pathlib import Path
from typing import Any, Optional, Sequence, Union

from html_to_image.config.settings import ServiceConfig
from html_to_image.core.errors import ApiError, ErrorKind
from html_to_image.core.pipeline import RenderPipeline
from html_to_image.core.queue.worker_pool import EngineFactory, RenderWorkerPool
from html_to_image.core.rendering.engine import PlaywrightLayoutEngine
from html_to_image.core.rendering.template import load_template
from html_to_image.models.schemas import DEFAULT_ANIMATION_TIME, DEFAULT_SCALE

PathLike = Union[str, Path]


class RenderFailure(RuntimeError):
    """Raised when rendering through the binding fails."""

    def __init__(self, message: str, kind: ErrorKind) -> None:
        super().__init__(message)
        self.kind = kind


async def render_template_to_png(
    template_path: PathLike,
    out_path: PathLike,
    width: int,
    height: int,
    data: Optional[Any] = None,
    scale: Optional[float] = None,
    animation_time: Optional[float] = None,
    font_paths: Optional[Sequence[PathLike]] = None,
    *,
    pipeline: Optional[RenderPipeline] = None,
    engine_factory: EngineFactory = PlaywrightLayoutEngine,
) -> None:
    """
    Render a Jinja2 HTML template file to a PNG file on disk.

    Pass ``pipeline`` to reuse a running worker pool across calls; otherwise a
    one-worker pool is started for this call and shut down afterwards.

    Raises:
        RenderFailure: carrying the classified error message and kind
    """
    fonts = [Path(path) for path in font_paths or ()]
    try:
        template = load_template(Path(template_path))
        if pipeline is not None:
            await _render(
                pipeline, template, out_path, width, height, data, scale, animation_time, fonts
            )
            return

        async with RenderWorkerPool(engine_factory, max_workers=1, max_pending=0) as pool:
            await _render(
                RenderPipeline(ServiceConfig(), pool),
                template,
                out_path,
                width,
                height,
                data,
                scale,
                animation_time,
                fonts,
            )
    except ApiError as e:
        raise RenderFailure(str(e), e.kind) from e


async def _render(
    pipeline: RenderPipeline,
    template: str,
    out_path: PathLike,
    width: int,
    height: int,
    data: Optional[Any],
    scale: Optional[float],
    animation_time: Optional[float],
    fonts: Sequence[Path],
) -> None:
    await pipeline.render_to_file(
        template,
        Path(out_path),
        width,
        height,
        scale=DEFAULT_SCALE if scale is None else scale,
        animation_time=DEFAULT_ANIMATION_TIME if animation_time is None else animation_time,
        data=data,
        font_paths=fonts,
    )
