"""
Unit Tests for the PNG Codec
============================
"""

import io

import pytest
from PIL import Image

from html_to_image.core.errors import ApiError, ErrorKind
from html_to_image.core.rendering.codec import PNG_SIGNATURE, encode_png, write_png


class TestEncodePng:
    """Test RGBA to PNG encoding."""

    def test_encode_preserves_size_and_pixels(self):
        """Test that the PNG decodes to the input buffer."""
        rgba = bytes([255, 0, 0, 255, 0, 0, 255, 128])

        png_bytes = encode_png(rgba, 2, 1)

        assert png_bytes.startswith(PNG_SIGNATURE)
        with Image.open(io.BytesIO(png_bytes)) as image:
            assert image.size == (2, 1)
            assert image.mode == "RGBA"
            assert image.getpixel((0, 0)) == (255, 0, 0, 255)
            assert image.getpixel((1, 0)) == (0, 0, 255, 128)

    def test_encode_is_deterministic(self):
        """Test that identical buffers encode to identical bytes."""
        rgba = bytes([10, 20, 30, 255]) * 64

        assert encode_png(rgba, 8, 8) == encode_png(rgba, 8, 8)

    @pytest.mark.parametrize("length", [0, 15, 17])
    def test_size_mismatch(self, length):
        """Test that a buffer of the wrong length is a render failure."""
        with pytest.raises(ApiError) as exc_info:
            encode_png(b"\x00" * length, 2, 2)

        assert exc_info.value.kind is ErrorKind.RENDER
        assert exc_info.value.message == (
            f"failed to encode png: expected 16 bytes of RGBA data, got {length}"
        )


class TestWritePng:
    """Test writing PNG files."""

    def test_creates_parent_directories(self, tmp_path):
        """Test that missing directories are created."""
        target = tmp_path / "a" / "b" / "card.png"

        write_png(target, PNG_SIGNATURE + b"data")

        assert target.read_bytes() == PNG_SIGNATURE + b"data"

    def test_overwrites_existing_file(self, tmp_path):
        """Test that an existing output is replaced."""
        target = tmp_path / "card.png"
        target.write_bytes(b"old")

        write_png(target, b"new")

        assert target.read_bytes() == b"new"

    def test_parent_is_a_file(self, tmp_path):
        """Test that an impossible directory is a render failure."""
        blocker = tmp_path / "blocker"
        blocker.write_text("x")

        with pytest.raises(ApiError) as exc_info:
            write_png(blocker / "card.png", b"data")

        assert exc_info.value.kind is ErrorKind.RENDER
        assert exc_info.value.message.startswith("failed to create output directory: ")

    def test_target_is_a_directory(self, tmp_path):
        """Test that writing onto a directory is a render failure."""
        with pytest.raises(ApiError) as exc_info:
            write_png(tmp_path, b"data")

        assert exc_info.value.message == f"failed to write png: {tmp_path}"
