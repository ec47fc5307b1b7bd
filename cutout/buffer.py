from __future__ import annotations

from dataclasses import dataclass
from typing import NamedTuple

import numpy as np
from PIL import Image


class ShapeMismatchError(ValueError):
    """Sample count disagrees with width * height * 4."""


class Pixel(NamedTuple):
    r: int
    g: int
    b: int
    a: int


@dataclass
class PixelBuffer:
    """
    RGBA8 raster, top-left origin, samples interleaved r,g,b,a row by row.

    Refinement stages take a buffer, mutate `samples` in place and hand the same
    object on; callers should not keep using a buffer they handed to a stage.
    """

    width: int
    height: int
    samples: np.ndarray

    def __post_init__(self) -> None:
        self.samples = np.ascontiguousarray(self.samples, dtype=np.uint8).reshape(-1)

    @property
    def stride(self) -> int:
        return self.width * 4

    @property
    def is_empty(self) -> bool:
        return self.width == 0 or self.height == 0

    @property
    def pixels(self) -> np.ndarray:
        """(H, W, 4) view onto `samples` (writes go through)."""
        self.validate()
        return self.samples.reshape(self.height, self.width, 4)

    def validate(self) -> None:
        if self.width < 0 or self.height < 0:
            raise ShapeMismatchError(f"Invalid buffer size: {(self.width, self.height)}")
        expected = self.width * self.height * 4
        if self.samples.size != expected:
            raise ShapeMismatchError(
                f"Buffer has {self.samples.size} samples, expected {expected} "
                f"for {self.width}x{self.height} RGBA"
            )

    def pixel(self, x: int, y: int) -> Pixel:
        if not (0 <= x < self.width and 0 <= y < self.height):
            raise IndexError(f"Pixel {(x, y)} outside {self.width}x{self.height} buffer")
        i = (y * self.width + x) * 4
        r, g, b, a = (int(v) for v in self.samples[i : i + 4])
        return Pixel(r, g, b, a)

    def copy(self) -> PixelBuffer:
        return PixelBuffer(self.width, self.height, self.samples.copy())

    @classmethod
    def from_array(cls, rgba: np.ndarray) -> PixelBuffer:
        if rgba.ndim != 3 or rgba.shape[2] != 4:
            raise ValueError(f"Expected RGBA image (H,W,4), got shape={rgba.shape}")
        h, w = rgba.shape[:2]
        return cls(width=w, height=h, samples=rgba.copy())

    @classmethod
    def from_image(cls, img: Image.Image) -> PixelBuffer:
        if img.mode != "RGBA":
            img = img.convert("RGBA")
        return cls.from_array(np.array(img, dtype=np.uint8))

    def to_image(self) -> Image.Image:
        return Image.fromarray(self.pixels.copy())


def channel_stats(rgb: np.ndarray):
    """
    Per-pixel max, min and HSV-style saturation of an (..., 3) uint8 array.

    Saturation is (max - min) / max, and 0 where max == 0.
    """
    rgb_f = rgb.astype(np.float64)
    cmax = rgb_f.max(axis=-1)
    cmin = rgb_f.min(axis=-1)
    sat = np.divide(cmax - cmin, cmax, out=np.zeros_like(cmax), where=cmax > 0)
    return cmax, cmin, sat
