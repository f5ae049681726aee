"""
Chromium End-to-End Tests
=========================

Rendering through a real headless Chromium driven by Playwright.
Skipped when no Chromium build is installed (``playwright install chromium``).
"""

import io
from typing import Generator

import pytest
from fastapi.testclient import TestClient
from PIL import Image

from html_to_image.api.main import create_app
from html_to_image.config.settings import ServiceConfig
from html_to_image.core.rendering.codec import PNG_SIGNATURE
from html_to_image.core.rendering.engine import PlaywrightLayoutEngine

pytestmark = pytest.mark.e2e

FULL_PAGE_STYLE = "<style>html,body{margin:0;padding:0;background:transparent}</style>"


@pytest.fixture(scope="module")
def engine() -> Generator[PlaywrightLayoutEngine, None, None]:
    """A started Chromium engine shared by the module."""
    engine = PlaywrightLayoutEngine(timeout_ms=30000)
    try:
        engine._ensure_browser()
    except Exception as e:
        engine.close()
        pytest.skip(f"Chromium is not available: {e}")
    yield engine
    engine.close()


def _pixel(rgba: bytes, width: int, x: int, y: int):
    offset = (y * width + x) * 4
    return tuple(rgba[offset : offset + 4])


class TestPlaywrightLayoutEngine:
    """Test the Chromium layout engine directly."""

    def test_solid_block(self, engine):
        """Test that a coloured block is painted at the requested size."""
        html = (
            f"<html><head>{FULL_PAGE_STYLE}</head><body>"
            '<div style="width:40px;height:20px;background:rgb(255,0,0)"></div>'
            "</body></html>"
        )

        rgba = engine.render(html, 64, 48, 1.0, 0.0, [])

        assert len(rgba) == 64 * 48 * 4
        assert _pixel(rgba, 64, 10, 10) == (255, 0, 0, 255)
        assert _pixel(rgba, 64, 60, 40)[3] == 0

    def test_scale_keeps_output_size(self, engine):
        """Test that a scale factor does not change the buffer size."""
        html = f"{FULL_PAGE_STYLE}<div style='width:100%;height:100%'></div>"

        rgba = engine.render(html, 32, 16, 2.0, 0.0, [])

        assert len(rgba) == 32 * 16 * 4

    def test_animation_clock(self, engine):
        """Test that the virtual clock selects the animation frame."""
        html = (
            f"<html><head>{FULL_PAGE_STYLE}<style>"
            "@keyframes appear{from{opacity:0}to{opacity:1}}"
            "div{width:64px;height:48px;background:rgb(0,0,255);"
            "animation:appear 2s linear forwards}"
            "</style></head><body><div></div></body></html>"
        )

        start = engine.render(html, 64, 48, 1.0, 0.0, [])
        end = engine.render(html, 64, 48, 1.0, 5.0, [])

        assert _pixel(start, 64, 32, 24)[3] == 0
        assert _pixel(end, 64, 32, 24) == (0, 0, 255, 255)

    def test_scripts_do_not_run(self, engine):
        """Test that page scripts are disabled."""
        html = (
            f"{FULL_PAGE_STYLE}<div id='box' style='width:64px;height:48px'></div>"
            "<script>document.getElementById('box').style.background='red'</script>"
        )

        rgba = engine.render(html, 64, 48, 1.0, 0.0, [])

        assert _pixel(rgba, 64, 32, 24)[3] == 0

    def test_network_requests_blocked(self, engine):
        """Test that external resources are not fetched and do not fail rendering."""
        html = (
            f"{FULL_PAGE_STYLE}"
            "<img src='http://192.0.2.1/image.png' width='10' height='10'>"
            "<link rel='stylesheet' href='http://192.0.2.1/style.css'>"
        )

        rgba = engine.render(html, 16, 16, 1.0, 0.0, [])

        assert len(rgba) == 16 * 16 * 4


class TestRenderServiceWithChromium:
    """Test the HTTP service with the real engine."""

    def test_render_endpoint(self, engine):
        """Test a full request through the service."""
        app = create_app(ServiceConfig(), engine_factory=PlaywrightLayoutEngine, render_workers=1)
        with TestClient(app) as client:
            response = client.post(
                "/render/png",
                json={
                    "html": "<div style='color:#333'>{{ name }}</div>",
                    "width": 64,
                    "height": 48,
                    "data": {"name": "Test User"},
                },
            )

        assert response.status_code == 200
        assert response.content.startswith(PNG_SIGNATURE)
        with Image.open(io.BytesIO(response.content)) as image:
            assert image.size == (64, 48)
