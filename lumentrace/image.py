"""
Image sinks that receive finished pixels from the renderer.
"""

from __future__ import annotations
from typing import Protocol, Tuple

import numpy as np


class ImageSink(Protocol):
    """Anything that accepts 8-bit RGB pixels by coordinate."""

    def set_pixel(self, x: int, y: int, rgb: Tuple[int, int, int]) -> None:
        ...


class ArraySink:
    """In-memory sink backed by a uint8 numpy buffer.

    Counts writes per pixel so callers can verify every pixel was written
    exactly once.
    """

    def __init__(self, width: int, height: int):
        self.width = width
        self.height = height
        self.pixels = np.zeros((height, width, 3), dtype=np.uint8)
        self.write_counts = np.zeros((height, width), dtype=np.int32)

    def set_pixel(self, x: int, y: int, rgb: Tuple[int, int, int]) -> None:
        assert 0 <= x < self.width, f"x={x} outside image of width {self.width}"
        assert 0 <= y < self.height, f"y={y} outside image of height {self.height}"
        self.pixels[y, x] = rgb
        self.write_counts[y, x] += 1

    def is_complete(self) -> bool:
        """True when every pixel has been written exactly once."""
        return bool(np.all(self.write_counts == 1))


def save_image(image: np.ndarray, filename: str) -> None:
    """Save an 8-bit RGB image to file.

    Args:
        image: uint8 array of shape (height, width, 3)
        filename: Output filename (extension determines format)
    """
    from PIL import Image as PILImage

    pil_image = PILImage.fromarray(np.ascontiguousarray(image, dtype=np.uint8), 'RGB')
    pil_image.save(filename)
