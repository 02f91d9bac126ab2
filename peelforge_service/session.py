"""
Binding between an edited mask and the displayed cutout.

A `MaskSession` owns one Image/Mask pair for the length of an editing
session. The editor publishes into it after every stroke and the cutout is
regenerated from the new mask, so preview and mask never drift apart.
"""

from __future__ import annotations

import logging
from typing import List, Optional

from .buffers import ImageBuffer, Mask, check_same_size
from .compositing import composite, encode_png
from .config import get_settings
from .editor import BrushMode, ManualMaskEditor

logger = logging.getLogger(__name__)


class MaskSession:
    def __init__(self, image: ImageBuffer, mask: Mask):
        check_same_size(image, mask)
        self.image = image
        self.mask = mask
        self.cutout = composite(image, mask)
        self.revision = 0
        self._editors: List[ManualMaskEditor] = []

    def publish(self, mask: Mask) -> ImageBuffer:
        """Adopt `mask` and regenerate the cutout from it."""
        check_same_size(self.image, mask)
        self.mask = mask
        self.cutout = composite(self.image, mask)
        self.revision += 1
        return self.cutout

    def reset(self, mask: Mask) -> None:
        """
        Start over from a fresh segmentation mask.

        The values are written into the current mask in place, so editors
        already bound to this session keep drawing on the live mask. Their
        undo history predates the reset and is dropped.
        """
        check_same_size(self.image, mask)
        self.mask.values[...] = mask.values
        for editor in self._editors:
            editor.clear_history()
        self.publish(self.mask)
        logger.debug("session: reset at revision %d", self.revision)

    def cutout_png(self) -> bytes:
        return encode_png(self.cutout)

    def editor(self, brush_size: Optional[int] = None, mode: BrushMode = BrushMode.ERASE) -> ManualMaskEditor:
        """Build an editor over this session's mask, publishing back into it."""
        settings = get_settings()
        editor = ManualMaskEditor(
            self.mask,
            brush_size=brush_size if brush_size is not None else settings.default_brush_size,
            mode=mode,
            on_mask_update=self.publish,
            min_brush_size=settings.min_brush_size,
            max_brush_size=settings.max_brush_size,
        )
        self._editors.append(editor)
        return editor
