"""
High-level segmentation pipeline.

`segment` is the engine's single entry point and `process_image_bytes` the
one used by the HTTP API, the batch runner and the local script:
bytes in -> decode -> border colour -> edges -> region growth -> mask ->
cutout -> RGBA PNG bytes out.
"""

from __future__ import annotations

from dataclasses import dataclass
import logging
from pathlib import Path
from typing import Optional, Union

import numpy as np

from . import config
from .buffers import ImageBuffer, Mask
from .compositing import composite, encode_png, mask_from_background, maybe_dump_debug
from .errors import DimensionMismatchError, ProcessingFailure
from .preprocessing import load_image_from_bytes
from .segmentation import (
    BackgroundColor,
    ClassifierStrategy,
    detect_edges,
    estimate_background_color,
    grow_background,
)

logger = logging.getLogger(__name__)


@dataclass
class SegmentationResult:
    mask: Mask
    background: BackgroundColor
    edges: np.ndarray
    strategy: ClassifierStrategy


def _resolve_strategy(
    strategy: Optional[Union[str, ClassifierStrategy]], settings: config.Settings
) -> ClassifierStrategy:
    value = strategy or settings.classifier_strategy
    try:
        return ClassifierStrategy(str(getattr(value, "value", value)).lower())
    except ValueError as exc:
        raise ValueError("strategy must be one of edge_flood_fill | heuristic_scored") from exc


def run_segmentation(
    image: ImageBuffer,
    strategy: Optional[Union[str, ClassifierStrategy]] = None,
    params: Optional[config.SegmentationParams] = None,
) -> SegmentationResult:
    """
    Segment `image` and keep the per-run intermediates alongside the mask.

    Raises:
        ValueError: for an unknown strategy.
        ProcessingFailure: for any unexpected fault; no partial mask is returned.
    """
    settings = config.get_settings()
    resolved = _resolve_strategy(strategy, settings)
    params = params or config.params_from_settings(settings)

    logger.info(
        "Segmenting %dx%d image strategy=%s", image.width, image.height, resolved.value
    )
    try:
        background = estimate_background_color(image, params.border_sample_width)
        logger.debug("segmentation: background colour %s", tuple(background))

        edges = detect_edges(image, params.edge_threshold)
        logger.debug("segmentation: edge fraction=%.4f", float(np.mean(edges)))

        is_background = grow_background(image, edges, background, params, resolved)
        logger.debug("segmentation: background fraction=%.4f", float(np.mean(is_background)))

        mask = mask_from_background(is_background)
    except DimensionMismatchError:
        raise
    except Exception as exc:  # noqa: BLE001
        logger.exception("Segmentation failed: %s", exc)
        raise ProcessingFailure("Failed to process image. Please try again.") from exc

    if settings.debug:
        maybe_dump_debug(edges, mask, Path(settings.debug_output_dir))

    return SegmentationResult(mask=mask, background=background, edges=edges, strategy=resolved)


def segment(
    image: ImageBuffer,
    strategy: Optional[Union[str, ClassifierStrategy]] = None,
    params: Optional[config.SegmentationParams] = None,
) -> Mask:
    """Deterministic binary mask for `image`: 0 background, 255 subject."""
    return run_segmentation(image, strategy=strategy, params=params).mask


def process_image(
    image: ImageBuffer,
    strategy: Optional[Union[str, ClassifierStrategy]] = None,
) -> ImageBuffer:
    """Segment and composite in one call."""
    return composite(image, segment(image, strategy=strategy))


def process_image_bytes(
    image_bytes: bytes,
    strategy: Optional[Union[str, ClassifierStrategy]] = None,
) -> bytes:
    """
    Full pipeline from encoded image bytes to RGBA PNG bytes.

    Raises:
        ValueError: when input is invalid.
        ProcessingFailure: when segmentation fails.
    """
    image = load_image_from_bytes(image_bytes)
    cutout = process_image(image, strategy=strategy)
    return encode_png(cutout)
