"""Exceptions raised by the segmentation and masking engine."""


class DimensionMismatchError(ValueError):
    """Image, mask or raw buffer sizes disagree."""


class ProcessingFailure(RuntimeError):
    """Unexpected internal fault during segmentation.

    Raised once, with the original error chained; the engine never retries
    and never returns a partial mask.
    """
