from __future__ import annotations

import logging

import numpy as np

from .binarize import binarize_and_erode
from .buffer import PixelBuffer
from .flood import flood_erase_background
from .fringe import remove_fringe

logger = logging.getLogger(__name__)

STAGES = (
    ("binarize", binarize_and_erode),
    ("defringe", remove_fringe),
    ("flood", flood_erase_background),
)


def opaque_count(buffer: PixelBuffer) -> int:
    buffer.validate()
    if buffer.is_empty:
        return 0
    return int(np.count_nonzero(buffer.pixels[..., 3]))


def refine(buffer: PixelBuffer) -> PixelBuffer:
    """
    Fixed linear refinement:
      1) binarize alpha + erode thin artifacts
      2) remove halo / green / blue fringe
      3) flood-erase background connected to the frame edge

    Mutates and returns `buffer`. The output alpha is strictly 0 or 255 and the
    dimensions never change. A 0-sized buffer is returned untouched; a buffer
    whose sample count does not match its size raises ShapeMismatchError before
    any pixel is touched.
    """
    buffer.validate()
    if buffer.is_empty:
        logger.debug("Empty %dx%d buffer, nothing to refine", buffer.width, buffer.height)
        return buffer

    for name, stage in STAGES:
        buffer = stage(buffer)
        if logger.isEnabledFor(logging.DEBUG):
            logger.debug("%s: %d opaque pixels", name, opaque_count(buffer))
    return buffer
