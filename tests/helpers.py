from io import BytesIO

import numpy as np
from PIL import Image

from peelforge_service.buffers import ImageBuffer

WHITE = (255, 255, 255)
BLACK = (0, 0, 0)


def solid_rgb(width, height, color=WHITE):
    rgb = np.zeros((height, width, 3), dtype=np.uint8)
    rgb[...] = color
    return rgb


def png_bytes(image: ImageBuffer) -> bytes:
    buf = BytesIO()
    Image.fromarray(np.ascontiguousarray(image.pixels)).save(buf, format="PNG")
    return buf.getvalue()


def square_foreground():
    """Expected (y, x) foreground of the 10x10 square image: square plus its edge ring."""
    square = {(y, x) for y in (4, 5) for x in (4, 5)}
    ring = set()
    for y, x in square:
        for ny, nx in ((y - 1, x), (y + 1, x), (y, x - 1), (y, x + 1)):
            if (ny, nx) not in square:
                ring.add((ny, nx))
    return square | ring
