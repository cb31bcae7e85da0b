import logging

import numpy as np
from PIL import Image

from lawn_guardian.core.image_loader import decode_image, rendering_surface
from lawn_guardian.domain.models import SampledImage

logger = logging.getLogger("lawn_guardian.core.sampler")

# Analysis trades fidelity for latency; metrics come from at most 400x400 pixels.
MAX_SAMPLE_DIM = 400


def sample_size(width: int, height: int):
    return min(width, MAX_SAMPLE_DIM), min(height, MAX_SAMPLE_DIM)


def sample_image(image_data_url: str) -> SampledImage:
    """
    Decodes the image and draws it into a bounded sampling surface.
    The returned width/height are the true image dimensions, not the sample's.
    """
    with decode_image(image_data_url) as img:
        width, height = img.size
        size = sample_size(width, height)

        with rendering_surface(size) as surface:
            # Nearest keeps sampled values real pixel values instead of blends
            scaled = img if img.size == size else img.resize(size, Image.Resampling.NEAREST)
            try:
                surface.paste(scaled, (0, 0))
            finally:
                if scaled is not img:
                    scaled.close()
            pixels = np.array(surface, dtype=np.uint8)

    logger.debug(f"Sampled {width}x{height} image at {size[0]}x{size[1]}")
    return SampledImage(pixels=pixels, width=width, height=height)
