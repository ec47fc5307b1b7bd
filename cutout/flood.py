from __future__ import annotations

from typing import Tuple

import cv2
import numpy as np

from .buffer import PixelBuffer, channel_stats
from .config import FLOOD_MAX_SATURATION, FLOOD_MIN_BRIGHTNESS, FLOOD_SEED_STRIDE


def edge_seeds(width: int, height: int, stride: int = FLOOD_SEED_STRIDE) -> Tuple[np.ndarray, np.ndarray]:
    """
    Seed coordinates (xs, ys) on the frame edge:
      - the four corners
      - every `stride`-th pixel of the top and bottom rows
      - every `stride`-th pixel of the left and right columns
    Duplicates (e.g. every seed of a 1x1 image) are harmless.
    """
    if width <= 0 or height <= 0:
        return np.empty(0, dtype=np.int64), np.empty(0, dtype=np.int64)

    right, bottom = width - 1, height - 1
    row = np.arange(0, width, stride)
    col = np.arange(0, height, stride)

    xs = np.concatenate([[0, right, 0, right], row, row, np.zeros_like(col), np.full_like(col, right)])
    ys = np.concatenate([[0, 0, bottom, bottom], np.zeros_like(row), np.full_like(row, bottom), col, col])
    return xs.astype(np.int64), ys.astype(np.int64)


def background_like(rgba: np.ndarray) -> np.ndarray:
    """Opaque pixels that read as backdrop: desaturated and bright."""
    cmax, _cmin, sat = channel_stats(rgba[..., :3])
    return (rgba[..., 3] != 0) & (sat < FLOOD_MAX_SATURATION) & (cmax / 255.0 > FLOOD_MIN_BRIGHTNESS)


def reachable_from_edge(passable: np.ndarray, xs: np.ndarray, ys: np.ndarray) -> np.ndarray:
    """
    Visited mask of a 4-connected flood through `passable` started at every seed.

    All seeds share one visited mask: a region reached from one seed is never
    walked again from another. Seeds on impassable pixels reach nothing.
    """
    visited = np.zeros(passable.shape, dtype=bool)
    if passable.size == 0:
        return visited

    # Flooding from a seed visits exactly the 4-connected passable region around it.
    _n, labels = cv2.connectedComponents(passable.astype(np.uint8), connectivity=4)
    seed_labels = labels[ys, xs]
    seed_labels = np.unique(seed_labels[passable[ys, xs]])
    if seed_labels.size:
        visited = np.isin(labels, seed_labels)
    return visited


def flood_erase_background(buffer: PixelBuffer) -> PixelBuffer:
    """
    Stage 3: erase background connected to the frame edge.

    Transparent pixels are walked through unchanged, background-like opaque
    pixels are erased and walked through, any other opaque pixel stops the
    flood in that direction and is kept. A subject only survives if no
    background-coloured path links it to the frame edge.
    """
    buffer.validate()
    if buffer.is_empty:
        return buffer

    px = buffer.pixels
    erasable = background_like(px)
    passable = (px[..., 3] == 0) | erasable

    xs, ys = edge_seeds(buffer.width, buffer.height)
    visited = reachable_from_edge(passable, xs, ys)
    px[visited & erasable] = 0
    return buffer
