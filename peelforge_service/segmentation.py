"""
Background classification: border colour estimate, edge map, region growth.

Every pass is O(width * height) over the source pixels. The flood fill adds
each pixel to a region at most once and rejects it at most four times (once
per neighbour), so large images scale linearly; there is no cancellation or
timeout, callers drop the result if they no longer need it.
"""

from __future__ import annotations

from enum import Enum
import logging
from typing import Callable, Dict, List, NamedTuple, Optional, Tuple

import cv2
import numpy as np

from .buffers import ImageBuffer
from .config import SegmentationParams

logger = logging.getLogger(__name__)

# YCrCb skin range, (Y, Cr, Cb) lower and upper bounds.
SKIN_YCRCB_LOW = (0, 133, 77)
SKIN_YCRCB_HIGH = (255, 178, 133)

COLOR_WEIGHT = 0.6
FLATNESS_WEIGHT = 0.4


class BackgroundColor(NamedTuple):
    r: int
    g: int
    b: int


class ClassifierStrategy(str, Enum):
    EDGE_FLOOD_FILL = "edge_flood_fill"
    HEURISTIC_SCORED = "heuristic_scored"


def _band_indices(extent: int, band_width: int) -> List[Tuple[int, int]]:
    """(near, far) index pairs for a band, clamped to [0, extent - 1]."""
    last = extent - 1
    return [(min(i, last), max(last - i, 0)) for i in range(band_width)]


def estimate_background_color(image: ImageBuffer, border_width: int = 10) -> BackgroundColor:
    """
    Per-channel median of a `border_width` band along all four borders.

    Images narrower than twice the band sample overlapping rows and columns
    more than once; indices are clamped so nothing is read out of bounds.
    """
    rgb = image.rgb
    samples = []
    for near, far in _band_indices(image.height, border_width):
        samples.append(rgb[near, :, :])
        samples.append(rgb[far, :, :])
    for near, far in _band_indices(image.width, border_width):
        samples.append(rgb[:, near, :])
        samples.append(rgb[:, far, :])

    stacked = np.sort(np.concatenate(samples, axis=0), axis=0)
    mid = stacked[stacked.shape[0] // 2]
    return BackgroundColor(int(mid[0]), int(mid[1]), int(mid[2]))


def detect_edges(image: ImageBuffer, threshold: float = 40.0) -> np.ndarray:
    """
    Boolean (H, W) edge map from the four-neighbour colour gradient.

    The gradient magnitude of an interior pixel is the largest Euclidean RGB
    distance to its up, down, left and right neighbours. Border pixels stay
    False.
    """
    edges = np.zeros((image.height, image.width), dtype=bool)
    if image.width < 3 or image.height < 3:
        return edges

    rgb = image.rgb.astype(np.int32)
    center = rgb[1:-1, 1:-1]
    neighbours = (
        rgb[:-2, 1:-1],  # up
        rgb[2:, 1:-1],  # down
        rgb[1:-1, :-2],  # left
        rgb[1:-1, 2:],  # right
    )
    max_sq = np.zeros(center.shape[:2], dtype=np.int32)
    for neighbour in neighbours:
        diff = center - neighbour
        np.maximum(max_sq, np.einsum("ijk,ijk->ij", diff, diff), out=max_sq)

    edges[1:-1, 1:-1] = np.sqrt(max_sq) > threshold
    return edges


def seed_pixels(width: int, height: int, band_width: int) -> List[Tuple[int, int]]:
    """Border band seeds as (x, y), in fill order: rows first, then columns."""
    seeds: List[Tuple[int, int]] = []
    rows = _band_indices(height, band_width)
    cols = _band_indices(width, band_width)
    for (top, bottom), (left, right) in zip(rows, cols):
        for x in range(width):
            seeds.append((x, top))
            seeds.append((x, bottom))
        for y in range(height):
            seeds.append((left, y))
            seeds.append((right, y))
    return seeds


def _flood_fill(
    start_x: int,
    start_y: int,
    width: int,
    height: int,
    reds: List[int],
    greens: List[int],
    blues: List[int],
    edges: List[bool],
    visited: bytearray,
    is_background: bytearray,
    tolerance_sq: float,
) -> int:
    """Depth-first fill anchored on the seed's own colour. Returns pixels added."""
    start = start_y * width + start_x
    tr, tg, tb = reds[start], greens[start], blues[start]
    stack = [(start_x, start_y)]
    added = 0
    while stack:
        x, y = stack.pop()
        if x < 0 or x >= width or y < 0 or y >= height:
            continue
        idx = y * width + x
        if visited[idx] or edges[idx]:
            continue
        dr = reds[idx] - tr
        dg = greens[idx] - tg
        db = blues[idx] - tb
        if dr * dr + dg * dg + db * db > tolerance_sq:
            continue

        visited[idx] = 1
        is_background[idx] = 1
        added += 1
        stack.append((x + 1, y))
        stack.append((x - 1, y))
        stack.append((x, y + 1))
        stack.append((x, y - 1))
    return added


def grow_edge_flood_fill(
    image: ImageBuffer,
    edges: np.ndarray,
    background: BackgroundColor,
    params: SegmentationParams,
) -> np.ndarray:
    """
    Mark pixels reachable from the border band through similar, non-edge pixels.

    Each fill re-anchors its target colour on its own seed, so slowly varying
    backgrounds are followed region by region. `background` is unused here;
    the signature is shared with the heuristic strategy.
    """
    width, height = image.width, image.height
    flat = image.rgb.reshape(-1, 3)
    reds = flat[:, 0].tolist()
    greens = flat[:, 1].tolist()
    blues = flat[:, 2].tolist()
    edge_flags = edges.reshape(-1).tolist()

    visited = bytearray(width * height)
    is_background = bytearray(width * height)
    tolerance_sq = float(params.color_tolerance) ** 2

    fills = 0
    for x, y in seed_pixels(width, height, params.seed_band_width):
        if visited[y * width + x]:
            continue
        if _flood_fill(
            x, y, width, height, reds, greens, blues, edge_flags, visited, is_background, tolerance_sq
        ):
            fills += 1

    logger.debug("segmentation: %d border fills", fills)
    return np.frombuffer(bytes(is_background), dtype=np.uint8).reshape(height, width).astype(bool)


def background_scores(
    image: ImageBuffer, background: BackgroundColor, params: SegmentationParams
) -> np.ndarray:
    """
    Per-pixel likelihood of being background, float32 in [0, 1].

    Blends similarity to the estimated background colour with local flatness
    (3x3 luminance standard deviation). Skin-toned pixels score 0 so faces and
    hands are never grown into.
    """
    rgb = np.ascontiguousarray(image.rgb)
    rgb_f = rgb.astype(np.float32)

    bg = np.array(background, dtype=np.float32)
    distance = np.sqrt(np.sum((rgb_f - bg) ** 2, axis=2))
    color_similarity = np.clip(1.0 - distance / max(params.heuristic_color_range, 1e-6), 0.0, 1.0)

    gray = cv2.cvtColor(rgb, cv2.COLOR_RGB2GRAY).astype(np.float32)
    mean = cv2.blur(gray, (3, 3))
    mean_sq = cv2.blur(gray * gray, (3, 3))
    std = np.sqrt(np.clip(mean_sq - mean * mean, 0.0, None))
    flatness = np.clip(1.0 - std / max(params.heuristic_flatness_range, 1e-6), 0.0, 1.0)

    score = COLOR_WEIGHT * color_similarity + FLATNESS_WEIGHT * flatness

    ycrcb = cv2.cvtColor(rgb, cv2.COLOR_RGB2YCrCb)
    skin = cv2.inRange(ycrcb, SKIN_YCRCB_LOW, SKIN_YCRCB_HIGH) > 0
    score[skin] = 0.0
    return score.astype(np.float32)


def _seed_band(width: int, height: int, band_width: int) -> np.ndarray:
    band = np.zeros((height, width), dtype=bool)
    bw_rows = min(band_width, height)
    bw_cols = min(band_width, width)
    band[:bw_rows, :] = True
    band[height - bw_rows :, :] = True
    band[:, :bw_cols] = True
    band[:, width - bw_cols :] = True
    return band


def grow_heuristic_scored(
    image: ImageBuffer,
    edges: np.ndarray,
    background: BackgroundColor,
    params: SegmentationParams,
) -> np.ndarray:
    """
    Background = 4-connected components of high-score, non-edge pixels that
    touch the border band.
    """
    scores = background_scores(image, background, params)
    candidate = (scores >= params.heuristic_score_threshold) & ~edges

    num_labels, labels = cv2.connectedComponents(candidate.astype(np.uint8), connectivity=4)
    if num_labels <= 1:
        return np.zeros((image.height, image.width), dtype=bool)

    band = _seed_band(image.width, image.height, params.seed_band_width)
    touching = np.zeros(num_labels, dtype=bool)
    touching[np.unique(labels[band & candidate])] = True
    touching[0] = False
    logger.debug(
        "segmentation: %d candidate components, %d touch the border",
        num_labels - 1,
        int(touching.sum()),
    )
    return touching[labels]


RegionGrower = Callable[[ImageBuffer, np.ndarray, BackgroundColor, SegmentationParams], np.ndarray]

GROWERS: Dict[ClassifierStrategy, RegionGrower] = {
    ClassifierStrategy.EDGE_FLOOD_FILL: grow_edge_flood_fill,
    ClassifierStrategy.HEURISTIC_SCORED: grow_heuristic_scored,
}


def grow_background(
    image: ImageBuffer,
    edges: np.ndarray,
    background: BackgroundColor,
    params: Optional[SegmentationParams] = None,
    strategy: ClassifierStrategy = ClassifierStrategy.EDGE_FLOOD_FILL,
) -> np.ndarray:
    """Boolean (H, W) background grid using the selected strategy."""
    params = params or SegmentationParams()
    grower = GROWERS[ClassifierStrategy(strategy)]
    return grower(image, edges, background, params)
