"""
Per-pixel background classification.

Each strategy decides which pixels belong to the background and writes
that decision into the alpha channel of the buffer, in place.
"""

import logging
from typing import Sequence

import cv2
import numpy as np

from convec.shared.pixels import PixelBuffer, hue_distance, parse_color, rgb_to_hsl

logger = logging.getLogger(__name__)


class BackgroundClassifier:
    """
    Background removal strategies over RGBA pixel buffers.

    Strategies:
    - Per-channel color match (hard cutoff)
    - Euclidean color match (graduated alpha)
    - Chroma key (hue/saturation window)
    - Flood fill from a seed pixel
    - Edge-preserving match (alpha fades with background neighbor count)
    """

    def remove_by_color(
        self,
        buffer: PixelBuffer,
        target_color: Sequence[int] = (255, 255, 255),
        tolerance: float = 10,
    ) -> PixelBuffer:
        """
        Make pixels transparent when every channel is within tolerance.

        Args:
            buffer: Buffer to modify in place
            target_color: RGB color treated as background
            tolerance: Exclusive per-channel difference limit

        Returns:
            The same buffer
        """
        buffer.validate()
        mask = self._channel_match(buffer, target_color, tolerance)
        buffer.alpha[mask] = 0

        logger.debug(f"Color match cleared {int(mask.sum())} of {buffer.size} pixels")
        return buffer

    def fuzzy_removal(
        self,
        buffer: PixelBuffer,
        target_color: Sequence[int] = (255, 255, 255),
        tolerance: float = 30,
    ) -> PixelBuffer:
        """
        Fade pixels out according to their Euclidean distance to the target.

        Pixels closer than ``tolerance`` get ``alpha = distance / tolerance * 255``;
        pixels at or beyond the tolerance radius keep their alpha.
        """
        buffer.validate()
        target = np.array(parse_color(target_color), dtype=np.float64)

        diff = buffer.rgb.astype(np.float64) - target
        distance = np.sqrt((diff ** 2).sum(axis=-1))

        mask = distance < tolerance
        if tolerance > 0 and mask.any():
            faded = np.maximum(0.0, distance[mask] / tolerance * 255.0)
            buffer.alpha[mask] = np.clip(np.rint(faded), 0, 255).astype(np.uint8)

        logger.debug(f"Fuzzy match faded {int(mask.sum())} of {buffer.size} pixels")
        return buffer

    def chroma_key(
        self,
        buffer: PixelBuffer,
        target_hue: float = 120,
        hue_tolerance: float = 15,
        saturation_min: float = 0.3,
    ) -> PixelBuffer:
        """
        Remove pixels whose hue is near the key hue (green screen).

        Args:
            buffer: Buffer to modify in place
            target_hue: Key hue in degrees
            hue_tolerance: Exclusive circular hue distance in degrees
            saturation_min: Exclusive minimum HSL saturation

        Returns:
            The same buffer
        """
        buffer.validate()
        hue, saturation, _ = rgb_to_hsl(buffer.rgb)

        mask = (hue_distance(hue, target_hue) < hue_tolerance) & (saturation > saturation_min)
        buffer.alpha[mask] = 0

        logger.debug(f"Chroma key cleared {int(mask.sum())} of {buffer.size} pixels")
        return buffer

    def flood_fill(
        self,
        buffer: PixelBuffer,
        start_x: int = 0,
        start_y: int = 0,
        tolerance: float = 10,
    ) -> PixelBuffer:
        """
        Clear the 4-connected region around a seed pixel.

        A pixel joins the region when each channel is within ``tolerance``
        (inclusive) of the seed's color. A seed outside the image leaves
        the buffer untouched.
        """
        buffer.validate()

        if not buffer.in_bounds(start_x, start_y):
            logger.warning(
                f"Flood fill seed ({start_x}, {start_y}) outside "
                f"{buffer.width}x{buffer.height} image, nothing removed"
            )
            return buffer

        region = self._flood_region(buffer, int(start_x), int(start_y), tolerance)
        buffer.alpha[region] = 0

        logger.debug(f"Flood fill cleared {int(region.sum())} of {buffer.size} pixels")
        return buffer

    def edge_preserving(
        self,
        buffer: PixelBuffer,
        target_color: Sequence[int] = (255, 255, 255),
        tolerance: float = 15,
    ) -> PixelBuffer:
        """
        Remove background with anti-aliased edges.

        Pass 1 flags candidates by per-channel match. Pass 2 scales each
        candidate's alpha by how many of its 8 neighbors are candidates:
        fully surrounded pixels become transparent, edge pixels keep part of
        their opacity. Pixels on the image border are left untouched.
        """
        buffer.validate()
        candidates = self._channel_match(buffer, target_color, tolerance)

        if buffer.width < 3 or buffer.height < 3:
            return buffer

        neighbors = self._count_neighbors(candidates)

        inner = candidates[1:-1, 1:-1]
        counts = neighbors[inner]
        faded = np.where(counts < 8, np.floor(counts / 8 * 255), 0).astype(np.uint8)
        buffer.alpha[1:-1, 1:-1][inner] = faded

        logger.debug(f"Edge-preserving removal touched {int(inner.sum())} pixels")
        return buffer

    def _channel_match(
        self,
        buffer: PixelBuffer,
        target_color: Sequence[int],
        tolerance: float,
    ) -> np.ndarray:
        """Mask of pixels whose channels all differ by less than tolerance."""
        target = np.array(parse_color(target_color), dtype=np.int16)
        diff = np.abs(buffer.rgb.astype(np.int16) - target)
        return (diff < tolerance).all(axis=-1)

    def _flood_region(
        self,
        buffer: PixelBuffer,
        x: int,
        y: int,
        tolerance: float,
    ) -> np.ndarray:
        """Mask of the fixed-range 4-connected region containing (x, y)."""
        rgb = np.ascontiguousarray(buffer.rgb)
        mask = np.zeros((buffer.height + 2, buffer.width + 2), dtype=np.uint8)

        diff = (float(tolerance),) * 3
        flags = 4 | cv2.FLOODFILL_FIXED_RANGE | cv2.FLOODFILL_MASK_ONLY | (255 << 8)
        cv2.floodFill(rgb, mask, (x, y), (0, 0, 0), diff, diff, flags)

        return mask[1:-1, 1:-1] == 255

    def _count_neighbors(self, candidates: np.ndarray) -> np.ndarray:
        """Count candidate 8-neighbors for every interior pixel."""
        flags = candidates.astype(np.uint8)
        height, width = flags.shape
        counts = np.zeros((height - 2, width - 2), dtype=np.uint8)

        for dy in (-1, 0, 1):
            for dx in (-1, 0, 1):
                if dx == 0 and dy == 0:
                    continue
                counts += flags[1 + dy:height - 1 + dy, 1 + dx:width - 1 + dx]

        return counts
