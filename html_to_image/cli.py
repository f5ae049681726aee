"""
Command Line Interface
======================

Render an HTML template to a PNG file with headless Chromium.
"""

import argparse
import asyncio
import random
import sys
from pathlib import Path
from typing import List, Optional, Sequence

from html_to_image import __version__
from html_to_image.config.logging import setup_logging
from html_to_image.config.settings import ServiceConfig
from html_to_image.core.errors import ApiError
from html_to_image.core.pipeline import RenderPipeline
from html_to_image.core.queue.worker_pool import EngineFactory, RenderWorkerPool
from html_to_image.core.rendering.engine import PlaywrightLayoutEngine
from html_to_image.core.rendering.template import load_template
from html_to_image.models.schemas import DEFAULT_ANIMATION_TIME, DEFAULT_SCALE

DEFAULT_TEMPLATE = Path(__file__).parent / "templates" / "card.html"
DEFAULT_WIDTH = 420
DEFAULT_HEIGHT = 155

ICONS = ["★", "✨", "🚀", "🎉", "✅", "💎", "🌙", "☕", "⚡", "🔔", "🧠"]
MESSAGES = [
    "Your shiny Discord-sized card is ready. Crisp, compact, and screenshot-friendly.",
    "New render dropped: clean edges, smooth gradients, zero browser drama.",
    "Everything compiled. Nothing exploded. This is your sign to ship it. ✅",
    "A small card with big energy. Have a great one. ✨",
    "Pixels are aligned and vibes are immaculate.",
]


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="html-to-image",
        description="Render an HTML template to a PNG using headless Chromium.",
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    parser.add_argument(
        "-t",
        "--template",
        type=Path,
        default=DEFAULT_TEMPLATE,
        help="Path to the HTML template (Jinja2 syntax)",
    )
    parser.add_argument(
        "-o",
        "--out",
        type=Path,
        default=Path("card.png"),
        help="Output PNG file path (directories will be created)",
    )
    parser.add_argument("-n", "--name", default="User", help="Name to render into the greeting")
    parser.add_argument(
        "--width", type=int, default=DEFAULT_WIDTH, help="Fixed output width in pixels"
    )
    parser.add_argument(
        "--height", type=int, default=DEFAULT_HEIGHT, help="Fixed output height in pixels"
    )
    parser.add_argument(
        "--scale",
        type=float,
        default=DEFAULT_SCALE,
        help="Scale factor used by the painter (1.0 is normal)",
    )
    parser.add_argument(
        "--animation-time",
        type=float,
        default=DEFAULT_ANIMATION_TIME,
        help="Virtual time in seconds applied to CSS animations",
    )
    parser.add_argument(
        "--font-path",
        dest="font_paths",
        action="append",
        default=[],
        metavar="PATH",
        help="Additional font file to load (repeatable, or comma-separated)",
    )
    parser.add_argument("--icon", help="Override the random icon (e.g. \"★\", \"🚀\")")
    parser.add_argument("--message", help="Override the random message")
    parser.add_argument(
        "--seed", type=int, help="Seed for deterministic random icon/message selection"
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Log progress to stderr")
    return parser


def split_font_paths(values: Sequence[str]) -> List[Path]:
    return [Path(part.strip()) for value in values for part in value.split(",") if part.strip()]


def pick_icon(rng: random.Random) -> str:
    return rng.choice(ICONS)


def pick_message(rng: random.Random) -> str:
    return rng.choice(MESSAGES)


async def render_card(
    args: argparse.Namespace, engine_factory: EngineFactory = PlaywrightLayoutEngine
) -> None:
    rng = random.Random(args.seed)
    data = {
        "user": args.name,
        "icon": args.icon if args.icon is not None else pick_icon(rng),
        "message": args.message if args.message is not None else pick_message(rng),
        "width": args.width,
        "height": args.height,
    }

    template = load_template(args.template)
    async with RenderWorkerPool(engine_factory, max_workers=1, max_pending=0) as pool:
        pipeline = RenderPipeline(ServiceConfig(), pool)
        await pipeline.render_to_file(
            template,
            args.out,
            args.width,
            args.height,
            scale=args.scale,
            animation_time=args.animation_time,
            data=data,
            font_paths=split_font_paths(args.font_paths),
        )


def main(
    argv: Optional[List[str]] = None, engine_factory: EngineFactory = PlaywrightLayoutEngine
) -> int:
    parser = _build_parser()
    args = parser.parse_args(argv)
    setup_logging("INFO" if args.verbose else "WARNING", "development")

    try:
        asyncio.run(render_card(args, engine_factory))
    except ApiError as exc:
        print(f"render failed (template={args.template}, out={args.out}): {exc}", file=sys.stderr)
        return exc.exit_code

    print(f"Wrote {args.out}")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
