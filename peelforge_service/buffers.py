"""
Pixel storage shared by every stage of the engine.

`ImageBuffer` is the read-only RGBA source and `Mask` the mutable opacity
grid paired with it. Both wrap contiguous numpy arrays so scratch passes can
index them flat as `y * width + x`.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Union

import numpy as np

from .errors import DimensionMismatchError

OPAQUE = 255
TRANSPARENT = 0


def _check_positive(width: int, height: int) -> None:
    if width <= 0 or height <= 0:
        raise ValueError(f"image dimensions must be positive, got {width}x{height}")


def _check_uint8(array: np.ndarray, what: str) -> None:
    if array.dtype != np.uint8:
        raise ValueError(f"{what} must be uint8, got {array.dtype}")


@dataclass(frozen=True, eq=False)
class ImageBuffer:
    """
    RGBA pixels, shape (H, W, 4), dtype uint8.

    The array is marked read-only on construction; the engine never writes to
    a source image.
    """

    width: int
    height: int
    pixels: np.ndarray

    def __post_init__(self) -> None:
        _check_positive(self.width, self.height)
        if self.pixels.shape != (self.height, self.width, 4):
            raise DimensionMismatchError(
                f"pixel array shape {self.pixels.shape} does not match "
                f"{self.width}x{self.height} RGBA"
            )
        _check_uint8(self.pixels, "pixel array")
        pixels = np.ascontiguousarray(self.pixels, dtype=np.uint8)
        if pixels is self.pixels:
            pixels = pixels.copy()
        pixels.flags.writeable = False
        object.__setattr__(self, "pixels", pixels)

    @classmethod
    def from_bytes(cls, width: int, height: int, raw: Union[bytes, bytearray, memoryview]) -> "ImageBuffer":
        """Wrap a flat RGBA byte buffer; its length must be width * height * 4."""
        _check_positive(width, height)
        expected = width * height * 4
        if len(raw) != expected:
            raise DimensionMismatchError(
                f"RGBA buffer holds {len(raw)} bytes, expected {expected} for {width}x{height}"
            )
        pixels = np.frombuffer(bytes(raw), dtype=np.uint8).reshape(height, width, 4)
        return cls(width=width, height=height, pixels=pixels)

    @classmethod
    def from_array(cls, pixels: np.ndarray) -> "ImageBuffer":
        """Build from an (H, W, 3) RGB or (H, W, 4) RGBA array."""
        if pixels.ndim != 3 or pixels.shape[2] not in (3, 4):
            raise ValueError(f"expected an (H, W, 3|4) array, got shape {pixels.shape}")
        _check_uint8(pixels, "pixel array")
        if pixels.shape[2] == 3:
            alpha = np.full(pixels.shape[:2] + (1,), OPAQUE, dtype=np.uint8)
            pixels = np.concatenate([pixels, alpha], axis=2)
        height, width = pixels.shape[:2]
        return cls(width=width, height=height, pixels=pixels)

    @property
    def size(self) -> tuple[int, int]:
        return self.width, self.height

    @property
    def rgb(self) -> np.ndarray:
        """Read-only (H, W, 3) view of the colour channels."""
        return self.pixels[..., :3]

    def tobytes(self) -> bytes:
        return self.pixels.tobytes()


@dataclass
class Mask:
    """Per-pixel opacity, shape (H, W), dtype uint8. 0 transparent, 255 opaque."""

    width: int
    height: int
    values: np.ndarray

    def __post_init__(self) -> None:
        _check_positive(self.width, self.height)
        if self.values.shape != (self.height, self.width):
            raise DimensionMismatchError(
                f"mask shape {self.values.shape} does not match {self.width}x{self.height}"
            )
        _check_uint8(self.values, "mask values")
        self.values = np.ascontiguousarray(self.values, dtype=np.uint8)

    @classmethod
    def filled(cls, width: int, height: int, value: int = OPAQUE) -> "Mask":
        return cls(width=width, height=height, values=np.full((height, width), value, dtype=np.uint8))

    @property
    def size(self) -> tuple[int, int]:
        return self.width, self.height

    def copy(self) -> "Mask":
        return Mask(width=self.width, height=self.height, values=self.values.copy())

    def tobytes(self) -> bytes:
        return self.values.tobytes()

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Mask):
            return NotImplemented
        return self.size == other.size and bool(np.array_equal(self.values, other.values))


def check_same_size(image: ImageBuffer, mask: Mask) -> None:
    """Raise DimensionMismatchError unless image and mask share dimensions."""
    if image.size != mask.size:
        raise DimensionMismatchError(
            f"mask is {mask.width}x{mask.height} but image is {image.width}x{image.height}"
        )
