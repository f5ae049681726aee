"""
PNG Codec
=========

Encode raw RGBA buffers as PNG with Pillow and write them to disk.
"""

import io
from pathlib import Path

from PIL import Image  # type: ignore

from html_to_image.core.errors import ApiError

PNG_SIGNATURE = b"\x89PNG\r\n\x1a\n"


def encode_png(rgba: bytes, width: int, height: int) -> bytes:
    """
    Encode a ``width x height`` RGBA buffer as PNG bytes.

    Raises:
        ApiError: ``render`` if the buffer size does not match or encoding fails
    """
    expected = width * height * 4
    if len(rgba) != expected:
        raise ApiError.render(
            f"failed to encode png: expected {expected} bytes of RGBA data, got {len(rgba)}"
        )

    try:
        image = Image.frombytes("RGBA", (width, height), rgba)
        output = io.BytesIO()
        image.save(output, format="PNG")
    except (OSError, ValueError) as e:
        raise ApiError.render(f"failed to encode png: {e}") from e
    return output.getvalue()


def write_png(path: Path, png_bytes: bytes) -> None:
    """
    Write PNG bytes to ``path``, creating missing parent directories.

    Raises:
        ApiError: ``render`` if the directory or the file cannot be written
    """
    path = Path(path)
    parent = path.parent
    if str(parent) not in ("", "."):
        try:
            parent.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise ApiError.render(f"failed to create output directory: {parent}") from e

    try:
        path.write_bytes(png_bytes)
    except OSError as e:
        raise ApiError.render(f"failed to write png: {path}") from e
