from __future__ import annotations

import numpy as np
import pytest

from cutout import PixelBuffer, ShapeMismatchError, refine
from cutout.refine import opaque_count

RED = (200, 20, 20, 255)
FRINGE_WHITE = (250, 250, 250, 180)


def _scenario(size: int, block: slice) -> np.ndarray:
    arr = np.zeros((size, size, 4), dtype=np.uint8)
    arr[...] = FRINGE_WHITE
    arr[block, block] = RED
    return arr


def test_tiny_block_is_eroded_away():
    # Each pixel of a 2x2 block in a 4x4 frame has 5 transparent neighbours after
    # thresholding, so the erosion pass clears the whole block.
    buf = refine(PixelBuffer.from_array(_scenario(4, slice(1, 3))))
    assert (buf.width, buf.height) == (4, 4)
    assert (buf.pixels == 0).all()


def test_subject_core_survives_semi_transparent_background():
    buf = refine(PixelBuffer.from_array(_scenario(12, slice(3, 9))))

    px = buf.pixels
    core = np.zeros((12, 12), dtype=bool)
    core[4:8, 4:8] = True
    # outer ring of the block is eroded, the 4x4 core is untouched
    assert (px[core] == RED).all()
    assert (px[~core] == 0).all()


def test_opaque_backdrop_and_green_fringe_removed():
    arr = np.zeros((20, 20, 4), dtype=np.uint8)
    arr[...] = (250, 250, 250, 255)
    arr[5:15, 5:15] = (30, 200, 40, 255)
    arr[6:14, 6:14] = RED

    buf = refine(PixelBuffer.from_array(arr))
    px = buf.pixels
    subject = np.zeros((20, 20), dtype=bool)
    subject[6:14, 6:14] = True
    assert (px[subject] == RED).all()
    assert (px[~subject] == 0).all()


def test_output_alpha_is_binary_and_shape_preserved():
    rng = np.random.default_rng(11)
    for h, w in ((1, 1), (7, 3), (33, 21)):
        buf = refine(PixelBuffer.from_array(rng.integers(0, 256, size=(h, w, 4), dtype=np.uint8)))
        assert (buf.width, buf.height) == (w, h)
        assert buf.samples.size == w * h * 4
        assert np.isin(buf.pixels[..., 3], (0, 255)).all()
        # transparent pixels carry no colour
        assert (buf.pixels[buf.pixels[..., 3] == 0] == 0).all()


def test_refine_mutates_and_returns_same_buffer():
    buf = PixelBuffer.from_array(_scenario(12, slice(3, 9)))
    assert refine(buf) is buf
    assert opaque_count(buf) == 16


def test_empty_buffer_returned_unchanged():
    buf = PixelBuffer(width=5, height=0, samples=np.empty(0, dtype=np.uint8))
    assert refine(buf) is buf
    assert opaque_count(buf) == 0


def test_shape_mismatch_aborts_before_any_stage():
    samples = np.full(4 * 4 * 4 - 1, 123, dtype=np.uint8)
    buf = PixelBuffer(width=4, height=4, samples=samples)
    with pytest.raises(ShapeMismatchError):
        refine(buf)
    assert (buf.samples == 123).all()
