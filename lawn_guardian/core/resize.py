import io
import logging
import math
from typing import Any, Mapping, Optional, Tuple

from PIL import Image

from lawn_guardian.core.byte_utils import to_data_url
from lawn_guardian.core.errors import SurfaceUnavailableError
from lawn_guardian.core.image_loader import decode_image, rendering_surface
from lawn_guardian.domain.models import ResizeOptions

logger = logging.getLogger("lawn_guardian.core.resize")


def _round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def compute_target_size(width: int, height: int, options: ResizeOptions) -> Tuple[int, int]:
    """Fits (width, height) inside the option bounds keeping aspect ratio. Never upscales."""
    if width <= options.max_width and height <= options.max_height:
        return width, height

    ratio = min(options.max_width / width, options.max_height / height)
    return max(1, _round_half_up(width * ratio)), max(1, _round_half_up(height * ratio))


def jpeg_quality(quality: float) -> int:
    """Maps 0-1 fidelity onto the encoder's 1-100 scale."""
    return min(100, max(1, _round_half_up(quality * 100)))


def resize_image(image_data_url: str, options: Optional[Mapping[str, Any]] = None) -> str:
    """
    Re-encodes an image as a JPEG data URL bounded by max_width x max_height.
    Independent of the quality verdict. Raises ImageLoadError / SurfaceUnavailableError.
    """
    opts = ResizeOptions.merged(options)

    with decode_image(image_data_url) as img:
        width, height = img.size
        target = compute_target_size(width, height, opts)

        # JPEG has no alpha; transparent areas end up black
        with rendering_surface(target, mode="RGB", color=(0, 0, 0)) as surface:
            scaled = img if img.size == target else img.resize(target, Image.Resampling.LANCZOS)
            alpha = None
            try:
                alpha = scaled.getchannel("A")
                surface.paste(scaled, (0, 0), mask=alpha)
            finally:
                if alpha is not None:
                    alpha.close()
                if scaled is not img:
                    scaled.close()

            buffer = io.BytesIO()
            try:
                surface.save(buffer, format="JPEG", quality=jpeg_quality(opts.quality))
            except (OSError, ValueError) as e:
                raise SurfaceUnavailableError(f"Could not encode rendering surface: {e}") from e

    encoded = buffer.getvalue()
    logger.info(f"Resized {width}x{height} -> {target[0]}x{target[1]} ({len(encoded)} bytes, q={opts.quality})")
    return to_data_url(encoded, "image/jpeg")
