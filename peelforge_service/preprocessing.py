"""
Image decoding for the segmentation pipeline.

Encoded uploads (PNG, JPEG, WebP, ...) are decoded with Pillow into the RGBA
`ImageBuffer` the engine works on. No resizing: masks are produced at the
source resolution so they can be composited straight back onto it.
"""

from __future__ import annotations

from io import BytesIO

import numpy as np
from PIL import Image

from .buffers import ImageBuffer


def load_image_from_bytes(image_bytes: bytes) -> ImageBuffer:
    """
    Decode an encoded image into an RGBA buffer.

    Raises:
        ValueError: when the bytes are not a decodable image.
    """
    try:
        image = Image.open(BytesIO(image_bytes))
        image.load()
    except Exception as exc:  # noqa: BLE001
        raise ValueError("Invalid image data") from exc

    return load_image(image)


def load_image(image: Image.Image) -> ImageBuffer:
    """Convert a PIL image to an RGBA buffer."""
    rgba = np.asarray(image.convert("RGBA"), dtype=np.uint8)
    return ImageBuffer.from_array(rgba)
