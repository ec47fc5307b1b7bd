from __future__ import annotations

import cv2
import numpy as np

from .buffer import PixelBuffer
from .config import ALPHA_THRESHOLD, ERODE_MIN_TRANSPARENT_NEIGHBORS

# Counts the 8 neighbours of each pixel, not the pixel itself.
_NEIGHBOR_KERNEL = np.array(
    [
        [1, 1, 1],
        [1, 0, 1],
        [1, 1, 1],
    ],
    dtype=np.float32,
)


def threshold_alpha(buffer: PixelBuffer) -> PixelBuffer:
    """
    Hard alpha cut: alpha < ALPHA_THRESHOLD -> (0,0,0,0), otherwise alpha = 255.

    Colour channels of surviving pixels are left untouched.
    """
    buffer.validate()
    if buffer.is_empty:
        return buffer

    px = buffer.pixels
    clear = px[..., 3] < ALPHA_THRESHOLD
    px[clear] = 0
    px[~clear, 3] = 255
    return buffer


def erode_alpha(buffer: PixelBuffer) -> PixelBuffer:
    """
    One erosion pass over a binary-alpha buffer.

    An interior opaque pixel with at least ERODE_MIN_TRANSPARENT_NEIGHBORS
    transparent 8-neighbours is cleared. Neighbour counts come from a snapshot
    taken before the pass, so clearing one pixel never influences another.
    Pixels on the image border are never eroded.
    """
    buffer.validate()
    h, w = buffer.height, buffer.width
    if h < 3 or w < 3:
        # no interior pixels
        return buffer

    px = buffer.pixels
    snapshot = px[..., 3].copy()
    transparent = (snapshot == 0).astype(np.uint8)
    counts = cv2.filter2D(transparent, -1, _NEIGHBOR_KERNEL, borderType=cv2.BORDER_CONSTANT)

    erode = (snapshot == 255) & (counts >= ERODE_MIN_TRANSPARENT_NEIGHBORS)
    erode[0, :] = False
    erode[-1, :] = False
    erode[:, 0] = False
    erode[:, -1] = False
    px[erode] = 0
    return buffer


def binarize_and_erode(buffer: PixelBuffer) -> PixelBuffer:
    """Stage 1: binarize alpha, then erode thin opaque artifacts."""
    return erode_alpha(threshold_alpha(buffer))
