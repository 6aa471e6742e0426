"""
Background replacement by alpha compositing.
"""

import logging
from typing import Sequence, Union

import cv2
import numpy as np

from convec.shared.pixels import PixelBuffer, parse_color

logger = logging.getLogger(__name__)

Replacement = Union[str, Sequence[int], PixelBuffer]


def replace_background(buffer: PixelBuffer, replacement: Replacement) -> PixelBuffer:
    """
    Composite a cut-out over a new background, in place.

    Args:
        buffer: Foreground buffer whose transparent pixels are the background
        replacement: Solid color (hex string or RGB sequence) or a
            PixelBuffer. Images of a different size are stretched to fit.

    Returns:
        The same buffer, holding the composited result
    """
    buffer.validate()
    background = _background_layer(buffer, replacement)

    fg = buffer.pixels.astype(np.float64) / 255.0
    bg = background.astype(np.float64) / 255.0

    fg_alpha = fg[..., 3:4]
    bg_alpha = bg[..., 3:4]

    # Porter-Duff source-over
    out_alpha = fg_alpha + bg_alpha * (1.0 - fg_alpha)
    safe_alpha = np.where(out_alpha > 0, out_alpha, 1.0)
    out_rgb = (fg[..., :3] * fg_alpha + bg[..., :3] * bg_alpha * (1.0 - fg_alpha)) / safe_alpha

    result = np.concatenate([out_rgb, out_alpha], axis=-1) * 255.0
    buffer.pixels[...] = np.clip(np.rint(result), 0, 255).astype(np.uint8)

    return buffer


def _background_layer(buffer: PixelBuffer, replacement: Replacement) -> np.ndarray:
    """Build an (H, W, 4) background array matching the buffer."""
    if isinstance(replacement, PixelBuffer):
        replacement.validate()
        layer = replacement.pixels

        if (replacement.width, replacement.height) != (buffer.width, buffer.height):
            logger.info(
                f"Resizing background from {replacement.width}x{replacement.height} "
                f"to {buffer.width}x{buffer.height}"
            )
            layer = cv2.resize(
                np.ascontiguousarray(layer),
                (buffer.width, buffer.height),
                interpolation=cv2.INTER_LINEAR,
            )
        return layer

    r, g, b = parse_color(replacement)
    layer = np.empty((buffer.height, buffer.width, 4), dtype=np.uint8)
    layer[...] = (r, g, b, 255)
    return layer
