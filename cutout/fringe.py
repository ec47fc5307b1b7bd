from __future__ import annotations

import numpy as np

from .buffer import PixelBuffer, channel_stats
from .config import HALO_MAX_SATURATION, HALO_MIN_VALUE, SPILL_MIN_EXCESS, SPILL_RATIO


def _spill_mask(dominant: np.ndarray, other_a: np.ndarray, other_b: np.ndarray) -> np.ndarray:
    """Pixels where `dominant` clearly outweighs both other channels."""
    excess = (dominant - np.maximum(other_a, other_b)) / 255.0
    return (
        (dominant > other_a * SPILL_RATIO)
        & (dominant > other_b * SPILL_RATIO)
        & (excess > SPILL_MIN_EXCESS)
    )


def fringe_mask(rgba: np.ndarray) -> np.ndarray:
    """
    Boolean (H, W) mask of visible pixels that look like background fringe:
      1) low-saturation highlight halo (near white / light gray)
      2) green-screen spill
      3) blue-screen spill
    Transparent pixels are never selected.
    """
    visible = rgba[..., 3] != 0
    rgb = rgba[..., :3]
    cmax, _cmin, sat = channel_stats(rgb)
    r = rgb[..., 0].astype(np.float64)
    g = rgb[..., 1].astype(np.float64)
    b = rgb[..., 2].astype(np.float64)

    halo = (sat < HALO_MAX_SATURATION) & (cmax > HALO_MIN_VALUE)
    green = _spill_mask(g, r, b)
    blue = _spill_mask(b, r, g)
    return visible & (halo | green | blue)


def remove_fringe(buffer: PixelBuffer) -> PixelBuffer:
    """Stage 2: clear halo and colour-spill pixels left around the subject."""
    buffer.validate()
    if buffer.is_empty:
        return buffer

    px = buffer.pixels
    px[fringe_mask(px)] = 0
    return buffer
