"""Binary-alpha cutout refinement for background-removal output."""
from cutout.buffer import Pixel, PixelBuffer, ShapeMismatchError
from cutout.refine import refine

__version__ = "0.1.0"
__all__ = [
    "Pixel",
    "PixelBuffer",
    "ShapeMismatchError",
    "refine",
]
