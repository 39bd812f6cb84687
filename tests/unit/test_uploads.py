"""Tests for pixelsmith.api.uploads — upload validation and resizing."""

import io

import pytest
from PIL import Image

from pixelsmith.api.uploads import MAX_SIDE, prepare_upload
from pixelsmith.core.errors import ValidationError

LIMIT = 10 * 1024 * 1024


def encode(image: Image.Image, fmt: str = "PNG") -> bytes:
    buffer = io.BytesIO()
    image.save(buffer, format=fmt)
    return buffer.getvalue()


def test_small_image_keeps_size(png_bytes):
    result = Image.open(io.BytesIO(prepare_upload(png_bytes, LIMIT)))
    assert result.size == (64, 48)
    assert result.format == "PNG"


def test_large_image_shrunk_to_fit():
    """Aspect ratio is kept while the longest edge fits the limit."""
    data = encode(Image.new("RGB", (2048, 1024)), "JPEG")
    result = Image.open(io.BytesIO(prepare_upload(data, LIMIT)))
    assert result.size == (MAX_SIDE, MAX_SIDE // 2)
    assert result.format == "PNG"


def test_palette_image_converted():
    data = encode(Image.new("P", (32, 32)))
    result = Image.open(io.BytesIO(prepare_upload(data, LIMIT)))
    assert result.mode in ("RGB", "RGBA")


def test_empty_upload_rejected():
    with pytest.raises(ValidationError):
        prepare_upload(b"", LIMIT)


def test_oversized_upload_rejected(png_bytes):
    with pytest.raises(ValidationError, match="upload limit"):
        prepare_upload(png_bytes, max_bytes=10)


def test_non_image_rejected():
    with pytest.raises(ValidationError, match="not a supported image"):
        prepare_upload(b"this is plainly not an image", LIMIT)
