"""Validation and preprocessing of uploaded images.

Uploads are decoded with Pillow, auto-oriented from EXIF, shrunk to fit
``MAX_SIDE`` pixels and re-encoded as PNG before they reach a provider.
"""

from __future__ import annotations

import io
import logging

from PIL import Image, ImageOps, UnidentifiedImageError

from pixelsmith.core.errors import ValidationError

logger = logging.getLogger(__name__)

MAX_SIDE = 1024


def prepare_upload(data: bytes, max_bytes: int, max_side: int = MAX_SIDE) -> bytes:
    """Turn raw upload bytes into a provider-ready PNG.

    Args:
        data: Bytes as received from the client.
        max_bytes: Largest accepted upload.
        max_side: Longest allowed edge after resizing.

    Returns:
        PNG encoded image no larger than ``max_side`` on either edge.

    Raises:
        ValidationError: If the upload is empty, too large, or not an image.
    """
    if not data:
        raise ValidationError("An image upload is required")
    if len(data) > max_bytes:
        raise ValidationError(f"Image exceeds the {max_bytes // (1024 * 1024)} MiB upload limit")

    try:
        image = Image.open(io.BytesIO(data))
        image.load()
    except (UnidentifiedImageError, OSError) as e:
        raise ValidationError("Uploaded file is not a supported image") from e

    image = ImageOps.exif_transpose(image)

    if max(image.size) > max_side:
        original_size = image.size
        image.thumbnail((max_side, max_side), Image.Resampling.LANCZOS)
        logger.info(f"Resized upload from {original_size} to {image.size}")

    if image.mode not in ("RGB", "RGBA"):
        image = image.convert("RGBA" if "A" in image.getbands() else "RGB")

    buffer = io.BytesIO()
    image.save(buffer, format="PNG")
    return buffer.getvalue()
