"""
Shared decode primitive and per-call rendering surfaces for the intake pipeline.
Every call gets its own surface; nothing is cached between calls.
"""
import io
import logging
from contextlib import contextmanager
from typing import Iterator, Tuple

import numpy as np
from PIL import Image, ImageOps, UnidentifiedImageError

from lawn_guardian.core.byte_utils import base64_to_binary
from lawn_guardian.core.errors import ImageLoadError, SurfaceUnavailableError

logger = logging.getLogger("lawn_guardian.core.image_loader")

_WIDE_INT_MODES = ("I", "I;16", "I;16B", "I;16L", "I;16N")


def _to_8bit(img: Image.Image) -> Image.Image:
    """Scales 16-bit (and 32-bit int) grayscale onto 0-255; plain convert() would clip."""
    if img.mode not in _WIDE_INT_MODES:
        return img
    values = np.asarray(img, dtype=np.float64)
    scaled = np.clip(np.rint(values / 257.0), 0, 255).astype(np.uint8)
    return Image.fromarray(scaled, "L")


def decode_image(image_data_url: str) -> Image.Image:
    """Decodes a data URL into a fully loaded RGBA PIL image."""
    if not isinstance(image_data_url, str) or not image_data_url:
        raise ImageLoadError("Image data must be a non-empty data URL string")

    payload = base64_to_binary(image_data_url)
    try:
        with Image.open(io.BytesIO(payload.data)) as img:
            # PIL decodes lazily; force it so truncated data fails here
            img.load()
            # Follow the EXIF orientation tag the way a browser displays the photo
            upright = ImageOps.exif_transpose(img)
            return _to_8bit(upright).convert("RGBA")
    except (UnidentifiedImageError, OSError, Image.DecompressionBombError, SyntaxError) as e:
        logger.error(f"Image decode failed ({payload.mime_type}, {len(payload.data)} bytes): {e}")
        raise ImageLoadError(f"Failed to load image: {e}") from e


@contextmanager
def rendering_surface(size: Tuple[int, int], mode: str = "RGBA", color=(0, 0, 0, 0)) -> Iterator[Image.Image]:
    """Allocates a blank surface of `size` and releases it on exit, including on error paths."""
    try:
        surface = Image.new(mode, size, color)
    except (ValueError, MemoryError) as e:
        logger.error(f"Could not allocate {mode} surface of {size}: {e}")
        raise SurfaceUnavailableError(f"Could not get rendering surface: {e}") from e

    try:
        yield surface
    finally:
        surface.close()
