"""
Test Configuration
==================

Pytest configuration with fixtures for all test types.
Provides an in-memory layout engine, service configuration, a sandboxed
fonts directory and an HTTP test client.
"""

from pathlib import Path
from typing import Any, AsyncGenerator, Dict, Generator, List, Optional, Sequence, Tuple

import pytest
import pytest_asyncio
from fastapi.testclient import TestClient

from html_to_image.api.main import create_app
from html_to_image.config.settings import RenderLimits, ServiceConfig
from html_to_image.core.fonts import LoadedFont
from html_to_image.core.pipeline import RenderPipeline
from html_to_image.core.queue.worker_pool import RenderWorkerPool
from html_to_image.core.rendering.engine import BaseLayoutEngine

SYSTEM_FONT_CANDIDATES = [
    "/usr/share/fonts/truetype/dejavu/DejaVuSans.ttf",
    "/usr/share/fonts/dejavu/DejaVuSans.ttf",
    "/usr/share/fonts/TTF/DejaVuSans.ttf",
    "/usr/share/fonts/truetype/liberation/LiberationSans-Regular.ttf",
    "/Library/Fonts/Arial.ttf",
    "C:/Windows/Fonts/arial.ttf",
]


class FakeLayoutEngine(BaseLayoutEngine):
    """Layout engine that paints a solid colour and records every call."""

    def __init__(
        self,
        color: Tuple[int, int, int, int] = (30, 60, 90, 255),
        fail_with: Optional[Exception] = None,
        short_buffer: bool = False,
    ) -> None:
        self.color = color
        self.fail_with = fail_with
        self.short_buffer = short_buffer
        self.calls: List[Dict[str, Any]] = []
        self.closed = False

    def render(
        self,
        html: str,
        width: int,
        height: int,
        scale: float,
        animation_time: float,
        fonts: Sequence[LoadedFont],
    ) -> bytes:
        self.calls.append(
            {
                "html": html,
                "width": width,
                "height": height,
                "scale": scale,
                "animation_time": animation_time,
                "fonts": list(fonts),
            }
        )
        if self.fail_with is not None:
            raise self.fail_with
        pixels = bytes(self.color) * (width * height)
        return pixels[:-1] if self.short_buffer else pixels

    def close(self) -> None:
        self.closed = True


class EngineRecorder:
    """Engine factory that keeps every engine it creates."""

    def __init__(self, **engine_kwargs: Any) -> None:
        self.engine_kwargs = engine_kwargs
        self.engines: List[FakeLayoutEngine] = []

    def __call__(self) -> FakeLayoutEngine:
        engine = FakeLayoutEngine(**self.engine_kwargs)
        self.engines.append(engine)
        return engine

    @property
    def calls(self) -> List[Dict[str, Any]]:
        return [call for engine in self.engines for call in engine.calls]


@pytest.fixture
def limits() -> RenderLimits:
    """Default render limits."""
    return RenderLimits()


@pytest.fixture
def fonts_dir(tmp_path: Path) -> Path:
    """Fonts directory holding one file that is not a usable font."""
    directory = tmp_path / "fonts"
    directory.mkdir()
    (directory / "Brand.ttf").write_bytes(b"definitely not a font")
    return directory.resolve()


@pytest.fixture
def service_config(fonts_dir: Path) -> ServiceConfig:
    """Service configuration with fonts enabled."""
    return ServiceConfig(fonts_dir=fonts_dir)


@pytest.fixture
def engine_factory() -> EngineRecorder:
    """Factory producing fake layout engines."""
    return EngineRecorder()


@pytest.fixture
def system_font_path() -> Path:
    """Path to a real TrueType font installed on this machine."""
    for candidate in SYSTEM_FONT_CANDIDATES:
        path = Path(candidate)
        if path.is_file():
            return path
    pytest.skip("no system TrueType font available")


@pytest_asyncio.fixture
async def pipeline(
    service_config: ServiceConfig, engine_factory: EngineRecorder
) -> AsyncGenerator[RenderPipeline, None]:
    """Render pipeline backed by a one-worker pool of fake engines."""
    async with RenderWorkerPool(engine_factory, max_workers=1, max_pending=4) as pool:
        yield RenderPipeline(service_config, pool)


@pytest.fixture
def client(
    service_config: ServiceConfig, engine_factory: EngineRecorder
) -> Generator[TestClient, None, None]:
    """HTTP client for an application rendering with fake engines."""
    app = create_app(service_config, engine_factory=engine_factory, render_workers=1)
    with TestClient(app) as test_client:
        yield test_client
