"""
Brush-based manual mask editing.

`apply_stroke` is the pure stamping operation. `ManualMaskEditor` wraps it in
a small pointer state machine (idle / hover / drawing) so transition rules
and cursor preview can be exercised without a GUI toolkit.

Strokes are applied once per pointer event. Positions between two move events
are not interpolated, so fast motion can leave gaps between stamps.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
import logging
import math
from typing import Callable, List, Optional, Tuple

import numpy as np

from .buffers import OPAQUE, TRANSPARENT, Mask

logger = logging.getLogger(__name__)

UNDO_LIMIT = 20

Point = Tuple[float, float]


class BrushMode(str, Enum):
    ERASE = "erase"
    RESTORE = "restore"

    @property
    def value_to_write(self) -> int:
        return TRANSPARENT if self is BrushMode.ERASE else OPAQUE


class EditorState(str, Enum):
    IDLE = "idle"
    HOVER = "hover"
    DRAWING = "drawing"


@dataclass(frozen=True)
class BrushStroke:
    center: Point
    radius: float
    mode: BrushMode


Span = Tuple[int, int]


def _window(center: float, extent: int) -> Span:
    """Offsets whose rounded target lands in [0, extent - 1] for this centre."""
    return math.ceil(-center - 0.5), math.ceil(extent - center - 0.5) - 1


def stroke_offsets(
    radius: float,
    x_window: Optional[Span] = None,
    y_window: Optional[Span] = None,
) -> np.ndarray:
    """
    Integer (dx, dy) offsets inside a disc of `radius`, as an (N, 2) array.

    Optional windows restrict the offsets to a rectangle, which keeps the grid
    no larger than the canvas however large the radius is.
    """
    r = max(float(radius), 0.0)
    spans = []
    for window in (x_window, y_window):
        if math.isfinite(r):
            reach = int(math.floor(r))
            lo, hi = -reach, reach
            if window is not None:
                lo, hi = max(lo, window[0]), min(hi, window[1])
        elif window is not None:
            lo, hi = window
        else:
            raise ValueError("an unbounded radius needs an offset window")
        spans.append(np.arange(lo, hi + 1, dtype=np.int64))

    dy, dx = np.meshgrid(spans[1], spans[0], indexing="ij")
    inside = dx * dx + dy * dy <= r * r
    return np.stack((dx[inside], dy[inside]), axis=1)


def apply_stroke(mask: Mask, center: Point, radius: float, mode: BrushMode) -> Mask:
    """
    Stamp a hard circular brush onto `mask` in place and return it.

    Every integer offset (dx, dy) with dx^2 + dy^2 <= radius^2 targets pixel
    (round(cx + dx), round(cy + dy)); in-bounds targets are overwritten with 0
    (erase) or 255 (restore). A non-positive radius stamps the centre pixel
    only; targets off the canvas are skipped, so strokes straddling an edge
    apply partially. Only offsets that can land on the canvas are visited.
    """
    mode = BrushMode(mode)
    cx, cy = center
    offsets = stroke_offsets(
        radius,
        x_window=_window(cx, mask.width),
        y_window=_window(cy, mask.height),
    )
    if not len(offsets):
        return mask
    xs = np.floor(cx + offsets[:, 0] + 0.5).astype(np.int64)
    ys = np.floor(cy + offsets[:, 1] + 0.5).astype(np.int64)
    inside = (xs >= 0) & (xs < mask.width) & (ys >= 0) & (ys < mask.height)
    mask.values[ys[inside], xs[inside]] = mode.value_to_write
    return mask


def pointer_to_image(
    x: float,
    y: float,
    display_size: Tuple[float, float],
    image_size: Tuple[int, int],
) -> Point:
    """Map a pointer position on a scaled display onto image pixel coordinates."""
    display_w, display_h = display_size
    image_w, image_h = image_size
    if display_w <= 0 or display_h <= 0:
        return x, y
    return x * (image_w / display_w), y * (image_h / display_h)


class ManualMaskEditor:
    """
    Pointer-driven brush editor over one mask.

    Every stroke mutates the mask in place and then hands it to
    `on_mask_update`, which is expected to regenerate the displayed cutout.
    """

    def __init__(
        self,
        mask: Mask,
        brush_size: int = 20,
        mode: BrushMode = BrushMode.ERASE,
        on_mask_update: Optional[Callable[[Mask], None]] = None,
        min_brush_size: int = 5,
        max_brush_size: int = 100,
    ):
        self.mask = mask
        self.min_brush_size = min_brush_size
        self.max_brush_size = max_brush_size
        self.brush_size = self._clamp_brush(brush_size)
        self.mode = BrushMode(mode)
        self.on_mask_update = on_mask_update
        self.state = EditorState.IDLE
        self.cursor: Optional[Point] = None
        self._undo_stack: List[np.ndarray] = []

    def _clamp_brush(self, size: int) -> int:
        return int(min(max(size, self.min_brush_size), self.max_brush_size))

    @property
    def radius(self) -> float:
        return self.brush_size / 2.0

    def set_brush_size(self, size: int) -> None:
        self.brush_size = self._clamp_brush(size)

    def set_mode(self, mode: BrushMode) -> None:
        self.mode = BrushMode(mode)

    def _stroke(self, x: float, y: float) -> BrushStroke:
        stroke = BrushStroke(center=(x, y), radius=self.radius, mode=self.mode)
        apply_stroke(self.mask, stroke.center, stroke.radius, stroke.mode)
        if self.on_mask_update is not None:
            self.on_mask_update(self.mask)
        return stroke

    # -------------- Pointer events --------------
    def pointer_enter(self, x: Optional[float] = None, y: Optional[float] = None) -> None:
        if self.state is not EditorState.DRAWING:
            self.state = EditorState.HOVER
        if x is not None and y is not None:
            self.cursor = (x, y)

    def pointer_down(self, x: float, y: float) -> Optional[BrushStroke]:
        if self.state is EditorState.DRAWING:
            return None
        self._undo_stack.append(self.mask.values.copy())
        if len(self._undo_stack) > UNDO_LIMIT:
            self._undo_stack = self._undo_stack[-UNDO_LIMIT:]
        self.state = EditorState.DRAWING
        self.cursor = (x, y)
        return self._stroke(x, y)

    def pointer_move(self, x: float, y: float) -> Optional[BrushStroke]:
        self.cursor = (x, y)
        if self.state is EditorState.DRAWING:
            return self._stroke(x, y)
        self.state = EditorState.HOVER
        return None

    def pointer_up(self) -> None:
        if self.state is EditorState.DRAWING:
            self.state = EditorState.IDLE

    def pointer_leave(self) -> None:
        self.state = EditorState.IDLE
        self.cursor = None

    # -------------- History --------------
    @property
    def can_undo(self) -> bool:
        return bool(self._undo_stack)

    def undo(self) -> bool:
        """Restore the mask as it was before the most recent pointer-down."""
        if not self._undo_stack:
            return False
        self.mask.values[...] = self._undo_stack.pop()
        logger.debug("editor: undo, %d snapshots left", len(self._undo_stack))
        if self.on_mask_update is not None:
            self.on_mask_update(self.mask)
        return True

    def clear_history(self) -> None:
        """Drop undo snapshots and any stroke in progress, e.g. after the mask is replaced."""
        self._undo_stack = []
        if self.state is EditorState.DRAWING:
            self.state = EditorState.IDLE
