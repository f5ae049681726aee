"""
Layout Engines
==============

Turn an HTML document, a pixel size, a scale factor, a virtual animation
clock and loaded fonts into a raw RGBA buffer.

Engines are used from a single render worker thread each; they are never
shared between threads.
"""

import base64
import io
import re
from abc import ABC, abstractmethod
from typing import Any, Optional, Sequence

from PIL import Image  # type: ignore
from playwright.sync_api import Browser, Playwright, Route, sync_playwright

from html_to_image.config.logging import get_logger
from html_to_image.core.fonts import LoadedFont

logger = get_logger(__name__)

BROWSER_ARGS = [
    "--no-sandbox",
    "--disable-setuid-sandbox",
    "--disable-dev-shm-usage",
    "--disable-gpu",
]

# Pause every animation and move it to the virtual clock (milliseconds).
SEEK_ANIMATIONS_SCRIPT = """
(time) => {
    for (const animation of document.getAnimations()) {
        animation.pause();
        animation.currentTime = time;
    }
}
"""

_HEAD_OPEN = re.compile(r"<head(\s[^>]*)?>", re.IGNORECASE)
_DOCTYPE = re.compile(r"^\s*<!doctype[^>]*>", re.IGNORECASE)


class BaseLayoutEngine(ABC):
    """Abstract base class for layout/paint engines."""

    @abstractmethod
    def render(
        self,
        html: str,
        width: int,
        height: int,
        scale: float,
        animation_time: float,
        fonts: Sequence[LoadedFont],
    ) -> bytes:
        """Render ``html`` to exactly ``width * height * 4`` RGBA bytes."""
        pass

    def close(self) -> None:
        """Release engine resources."""
        pass


class PlaywrightLayoutEngine(BaseLayoutEngine):
    """Headless Chromium engine driven through the synchronous Playwright API.

    The browser is launched on the first render, on the worker thread that
    owns the engine, and must be closed on that same thread.
    """

    def __init__(self, timeout_ms: int = 0, headless: bool = True) -> None:
        self.timeout_ms = timeout_ms
        self.headless = headless
        self._playwright: Optional[Playwright] = None
        self._browser: Optional[Browser] = None
        self.logger: Any = logger.bind(engine="playwright")

    def _ensure_browser(self) -> Browser:
        if self._browser is not None and self._browser.is_connected():
            return self._browser

        self.close()
        self._playwright = sync_playwright().start()
        self._browser = self._playwright.chromium.launch(headless=self.headless, args=BROWSER_ARGS)
        self.logger.info("Browser launched", version=self._browser.version)
        return self._browser

    def render(
        self,
        html: str,
        width: int,
        height: int,
        scale: float,
        animation_time: float,
        fonts: Sequence[LoadedFont],
    ) -> bytes:
        browser = self._ensure_browser()
        context = browser.new_context(
            viewport={"width": width, "height": height},
            device_scale_factor=scale,
            java_script_enabled=False,
        )
        try:
            context.set_default_timeout(self.timeout_ms)
            context.route("**/*", _abort_request)
            page = context.new_page()
            page.set_content(inject_font_faces(html, fonts), wait_until="load")
            page.evaluate(SEEK_ANIMATIONS_SCRIPT, animation_time * 1000.0)
            screenshot = page.screenshot(type="png", omit_background=True)
        finally:
            context.close()

        return fit_to_canvas(screenshot, width, height)

    def close(self) -> None:
        if self._browser is not None:
            try:
                self._browser.close()
            except Exception as e:
                self.logger.warning("Failed to close browser", error=str(e))
            self._browser = None
        if self._playwright is not None:
            try:
                self._playwright.stop()
            except Exception as e:
                self.logger.warning("Failed to stop playwright", error=str(e))
            self._playwright = None


def _abort_request(route: Route) -> None:
    route.abort()


def font_face_css(fonts: Sequence[LoadedFont]) -> str:
    """Build ``@font-face`` rules embedding each font as a ``data:`` URI."""
    rules = []
    for font in fonts:
        encoded = base64.b64encode(font.data).decode("ascii")
        family = font.family.replace("\\", "\\\\").replace('"', '\\"')
        style = font.style.lower()
        weight = "bold" if "bold" in style else "normal"
        slant = "italic" if ("italic" in style or "oblique" in style) else "normal"
        rules.append(
            "@font-face{"
            f'font-family:"{family}";'
            f"font-weight:{weight};"
            f"font-style:{slant};"
            f"src:url(data:application/octet-stream;base64,{encoded});"
            "}"
        )
    return "".join(rules)


def inject_font_faces(html: str, fonts: Sequence[LoadedFont]) -> str:
    """Insert the font rules into the document head, keeping any doctype first."""
    if not fonts:
        return html

    style = f"<style>{font_face_css(fonts)}</style>"
    head = _HEAD_OPEN.search(html)
    if head:
        return html[: head.end()] + style + html[head.end() :]
    doctype = _DOCTYPE.match(html)
    if doctype:
        return html[: doctype.end()] + style + html[doctype.end() :]
    return style + html


def fit_to_canvas(png_bytes: bytes, width: int, height: int) -> bytes:
    """Place a screenshot on a transparent ``width x height`` RGBA canvas."""
    with Image.open(io.BytesIO(png_bytes)) as shot:
        shot = shot.convert("RGBA")
        canvas = Image.new("RGBA", (width, height), (0, 0, 0, 0))
        canvas.paste(shot.crop((0, 0, min(width, shot.width), min(height, shot.height))), (0, 0))
    return canvas.tobytes()
