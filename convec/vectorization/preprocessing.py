"""
Image preprocessing applied before vectorization.
"""

import logging
from typing import Optional

import cv2
import numpy as np

from convec.shared.models import PreprocessOptions
from convec.shared.pixels import PixelBuffer

logger = logging.getLogger(__name__)


class ImagePreprocessor:
    """
    Cleans up a buffer before binarization.

    Operations (applied in this order, each optional):
    - Box blur over all four channels
    - Contrast stretch around mid-gray
    - Brightness offset
    """

    def process(
        self,
        buffer: PixelBuffer,
        options: Optional[PreprocessOptions] = None,
    ) -> PixelBuffer:
        """
        Apply the configured filters in place.

        Args:
            buffer: Buffer to modify
            options: Filter parameters; zero values are skipped

        Returns:
            The same buffer
        """
        options = options or PreprocessOptions()
        buffer.validate()

        if options.blur:
            self.blur(buffer, options.blur)

        if options.contrast:
            self.contrast(buffer, options.contrast)

        if options.brightness:
            self.brightness(buffer, options.brightness)

        return buffer

    def blur(self, buffer: PixelBuffer, radius: float) -> PixelBuffer:
        """
        Box blur with a (2 * floor(radius) + 1) square kernel.

        Only pixels inside the image contribute to each average.
        """
        kernel = int(radius) * 2 + 1
        if kernel <= 1:
            return buffer

        logger.debug(f"Box blur with kernel {kernel}")

        src = buffer.pixels.astype(np.float32)
        ones = np.ones((buffer.height, buffer.width), dtype=np.float32)

        sums = cv2.boxFilter(
            src, -1, (kernel, kernel), normalize=False, borderType=cv2.BORDER_CONSTANT
        )
        counts = cv2.boxFilter(
            ones, -1, (kernel, kernel), normalize=False, borderType=cv2.BORDER_CONSTANT
        )

        averaged = sums / counts[..., np.newaxis]
        buffer.pixels[...] = _to_bytes(averaged)
        return buffer

    def contrast(self, buffer: PixelBuffer, amount: float) -> PixelBuffer:
        """Scale RGB distance from 128 by 259(c+255) / (255(259-c))."""
        factor = (259 * (amount + 255)) / (255 * (259 - amount))
        rgb = buffer.rgb.astype(np.float64)
        buffer.rgb[...] = _to_bytes(factor * (rgb - 128) + 128)
        return buffer

    def brightness(self, buffer: PixelBuffer, amount: float) -> PixelBuffer:
        """Add a constant offset to RGB."""
        rgb = buffer.rgb.astype(np.float64)
        buffer.rgb[...] = _to_bytes(rgb + amount)
        return buffer


def _to_bytes(values: np.ndarray) -> np.ndarray:
    """Clamp to 0..255 and round half to even."""
    return np.rint(np.clip(values, 0, 255)).astype(np.uint8)
