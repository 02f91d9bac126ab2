"""
Batch worker.

Runs the shared pipeline over local files one at a time. Queue and storage
concerns stay with the caller so this can be embedded into any worker
framework; each item is independent and a failure is reported per item.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Iterable, List, Optional

from .pipeline import process_image_bytes

logger = logging.getLogger(__name__)


@dataclass
class BatchItem:
    input_path: Path
    strategy: Optional[str] = None


@dataclass
class BatchResult:
    input_path: Path
    png_bytes: Optional[bytes] = None
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.error is None


def process_batch(items: Iterable[BatchItem]) -> List[BatchResult]:
    """
    Process a batch of images synchronously.

    Returns one result per item, in input order.
    """
    outputs: List[BatchResult] = []
    for item in items:
        path = Path(item.input_path)
        logger.info("Processing batch item path=%s strategy=%s", path, item.strategy)
        try:
            png_bytes = process_image_bytes(path.read_bytes(), strategy=item.strategy)
        except (OSError, ValueError, RuntimeError) as exc:
            logger.warning("Batch item %s failed: %s", path, exc)
            outputs.append(BatchResult(input_path=path, error=str(exc)))
            continue
        outputs.append(BatchResult(input_path=path, png_bytes=png_bytes))
    return outputs
