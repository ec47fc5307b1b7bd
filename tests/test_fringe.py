from __future__ import annotations

import numpy as np
import pytest

from cutout.buffer import PixelBuffer, ShapeMismatchError
from cutout.fringe import remove_fringe


def _row(*pixels) -> PixelBuffer:
    return PixelBuffer.from_array(np.array([list(pixels)], dtype=np.uint8))


def test_green_spill_removed_next_to_neutral_subject():
    buf = remove_fringe(_row((0, 255, 0, 255), (128, 128, 128, 255)))
    assert buf.pixel(0, 0) == (0, 0, 0, 0)
    assert buf.pixel(1, 0) == (128, 128, 128, 255)


@pytest.mark.parametrize(
    "rgb",
    [
        (230, 230, 230),  # light gray halo
        (250, 240, 235),  # warm near-white
        (255, 255, 255),
        (10, 20, 200),  # blue spill
        (30, 200, 40),  # green spill
    ],
)
def test_fringe_colours_cleared(rgb):
    buf = remove_fringe(_row((*rgb, 255)))
    assert buf.pixel(0, 0) == (0, 0, 0, 0)


@pytest.mark.parametrize(
    "rgb",
    [
        (200, 200, 200),  # gray but not brighter than 200
        (0, 0, 0),
        (220, 170, 140),  # skin tone
        (200, 20, 20),
        (150, 190, 100),  # green-ish but under the 1.3 ratio against red
        (40, 55, 40),  # green dominant but excess under 0.2
        (60, 60, 90),  # blue dominant but excess under 0.2
    ],
)
def test_subject_colours_kept(rgb):
    buf = remove_fringe(_row((*rgb, 255)))
    assert buf.pixel(0, 0) == (*rgb, 255)


def test_transparent_pixels_are_skipped():
    buf = remove_fringe(_row((0, 255, 0, 0), (255, 255, 255, 0)))
    assert buf.pixel(0, 0) == (0, 255, 0, 0)
    assert buf.pixel(1, 0) == (255, 255, 255, 0)


def test_shape_preserved_and_alpha_stays_binary():
    rng = np.random.default_rng(7)
    arr = rng.integers(0, 256, size=(9, 13, 4), dtype=np.uint8)
    arr[..., 3] = np.where(arr[..., 3] > 127, 255, 0)
    buf = remove_fringe(PixelBuffer.from_array(arr))
    assert (buf.width, buf.height) == (13, 9)
    assert np.isin(buf.pixels[..., 3], (0, 255)).all()


def test_shape_mismatch_raises():
    with pytest.raises(ShapeMismatchError):
        remove_fringe(PixelBuffer(width=3, height=1, samples=np.zeros(8, dtype=np.uint8)))
