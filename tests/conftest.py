import base64
import io

import numpy as np
import pytest
from PIL import Image


def image_to_data_url(img: Image.Image, fmt: str = "PNG", **save_kwargs) -> str:
    buffered = io.BytesIO()
    img.save(buffered, format=fmt, **save_kwargs)
    b64 = base64.b64encode(buffered.getvalue()).decode("utf-8")
    return f"data:image/{fmt.lower()};base64,{b64}"


def data_url_to_image(data_url: str) -> Image.Image:
    return Image.open(io.BytesIO(base64.b64decode(data_url.split(",", 1)[1])))


def solid_image(width, height, color):
    return Image.new("RGB", (width, height), color)


def noise_image(width, height, seed=0):
    """Uniform RGB noise: mid brightness, moderate variance, partial green coverage."""
    rng = np.random.default_rng(seed)
    arr = rng.integers(0, 256, size=(height, width, 3), dtype=np.uint8)
    return Image.fromarray(arr, "RGB")


def checkerboard_image(width, height, block=20, green_every=20):
    """Bright/dark blocks with every `green_every`-th block painted green."""
    arr = np.zeros((height, width, 3), dtype=np.uint8)
    cols = (width + block - 1) // block
    for by in range(0, height, block):
        for bx in range(0, width, block):
            k = (by // block) * cols + (bx // block)
            if k % green_every == 0:
                color = (0, 200, 0)
            elif ((by // block) + (bx // block)) % 2 == 0:
                color = (255, 255, 255)
            else:
                color = (0, 0, 0)
            arr[by:by + block, bx:bx + block] = color
    return Image.fromarray(arr, "RGB")


@pytest.fixture
def noise_url():
    return image_to_data_url(noise_image(800, 600))


def rotated_jpeg_data_url(width, height, orientation=6):
    """JPEG stored as width x height with an EXIF orientation tag, like a phone portrait shot."""
    exif = Image.Exif()
    exif[0x0112] = orientation
    return image_to_data_url(noise_image(width, height), fmt="JPEG", exif=exif)
