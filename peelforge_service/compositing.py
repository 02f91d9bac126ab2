"""Mask construction and cutout composition."""

from __future__ import annotations

from io import BytesIO
import logging
from pathlib import Path

import cv2
import numpy as np
from PIL import Image

from .buffers import OPAQUE, TRANSPARENT, ImageBuffer, Mask, check_same_size
from .errors import DimensionMismatchError

logger = logging.getLogger(__name__)


def mask_from_background(is_background: np.ndarray) -> Mask:
    """Hard binary alpha: background pixels transparent, everything else opaque."""
    if is_background.ndim != 2:
        raise DimensionMismatchError(f"expected an (H, W) grid, got shape {is_background.shape}")
    height, width = is_background.shape
    values = np.where(is_background.astype(bool), TRANSPARENT, OPAQUE).astype(np.uint8)
    return Mask(width=width, height=height, values=values)


def composite(image: ImageBuffer, mask: Mask) -> ImageBuffer:
    """New RGBA buffer: RGB copied from `image`, alpha replaced by `mask`."""
    check_same_size(image, mask)
    rgba = np.dstack((image.rgb, mask.values))
    return ImageBuffer(width=image.width, height=image.height, pixels=rgba)


def encode_png(cutout: ImageBuffer) -> bytes:
    """Serialize an RGBA buffer as PNG bytes."""
    out = Image.fromarray(np.ascontiguousarray(cutout.pixels))
    buf = BytesIO()
    out.save(buf, format="PNG")
    return buf.getvalue()


def maybe_dump_debug(edges: np.ndarray, mask: Mask, debug_dir: Path) -> None:
    """Write the edge map and mask as grayscale PNGs when DEBUG is enabled."""
    try:
        debug_dir.mkdir(parents=True, exist_ok=True)
        edges_path = debug_dir / "edges.png"
        mask_path = debug_dir / "mask.png"

        cv2.imwrite(str(edges_path), edges.astype(np.uint8) * 255)
        cv2.imwrite(str(mask_path), mask.values)
        logger.debug("segmentation: wrote debug outputs to %s", debug_dir)
    except Exception as exc:  # noqa: BLE001
        logger.warning("segmentation: failed to write debug outputs: %s", exc)
