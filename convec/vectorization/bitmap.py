"""
Binarization of RGBA buffers for tracing.
"""

import numpy as np

from convec.shared.pixels import PixelBuffer, luminance

ALPHA_CUTOFF = 128


class BinaryBitmap:
    """Foreground/background bitmap, one byte per pixel (1 = ink)."""

    def __init__(self, width: int, height: int, data: np.ndarray):
        self.width = width
        self.height = height
        self.data = np.asarray(data, dtype=np.uint8).reshape(-1)
        self.data.flags.writeable = False

    def __repr__(self) -> str:
        return f"BinaryBitmap(width={self.width}, height={self.height}, ink={self.count()})"

    @property
    def grid(self) -> np.ndarray:
        """Read-only (height, width) view."""
        return self.data.reshape(self.height, self.width)

    def is_foreground(self, x: int, y: int) -> bool:
        if x < 0 or x >= self.width or y < 0 or y >= self.height:
            return False
        return self.data[y * self.width + x] == 1

    def count(self) -> int:
        """Number of foreground pixels."""
        return int(self.data.sum())

    def edge_mask(self) -> np.ndarray:
        """
        Foreground pixels with a background or out-of-image 8-neighbor.

        Returns:
            Flat boolean array of length width * height
        """
        grid = self.grid.astype(bool)
        padded = np.pad(grid, 1, mode="constant", constant_values=False)

        interior = np.ones_like(grid)
        for dy in (-1, 0, 1):
            for dx in (-1, 0, 1):
                if dx == 0 and dy == 0:
                    continue
                interior &= padded[1 + dy:1 + dy + self.height, 1 + dx:1 + dx + self.width]

        return (grid & ~interior).reshape(-1)


def binarize(buffer: PixelBuffer, threshold: int = 128) -> BinaryBitmap:
    """
    Threshold a buffer into a BinaryBitmap.

    A pixel is ink when it is at least half opaque and its luminance
    (0.299R + 0.587G + 0.114B) does not exceed ``threshold``.
    Transparent pixels are always background.
    """
    buffer.validate()
    gray = luminance(buffer.rgb)
    ink = (buffer.alpha >= ALPHA_CUTOFF) & (gray <= threshold)
    return BinaryBitmap(buffer.width, buffer.height, ink.astype(np.uint8))
