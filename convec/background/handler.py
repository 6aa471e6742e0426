"""
Main handler for background removal.
"""

import logging
from typing import Any, Optional

from convec.background.classifier import BackgroundClassifier
from convec.background.compositor import Replacement, replace_background
from convec.shared.config import get_settings
from convec.shared.models import BatchItemResult, RemovalMethod, RemovalOptions
from convec.shared.pixels import PixelBuffer, parse_color

logger = logging.getLogger(__name__)


class BackgroundRemovalHandler:
    """
    Dispatches background removal requests to a classification strategy.

    Supports single buffers, ordered batches with per-item results, and
    removal followed by background replacement.
    """

    def __init__(self, settings: Optional[Any] = None):
        """Initialize background removal handler."""
        self.settings = settings or get_settings()
        self.classifier = BackgroundClassifier()

    def remove(
        self,
        buffer: PixelBuffer,
        options: Optional[RemovalOptions] = None,
    ) -> PixelBuffer:
        """
        Remove the background of one buffer in place.

        Args:
            buffer: Buffer to modify
            options: Method and its parameters

        Returns:
            The same buffer
        """
        options = options or RemovalOptions()
        method = RemovalMethod.parse(options.method)
        buffer.validate()

        logger.info(f"Removing background ({method.value}) from {buffer.width}x{buffer.height} image")

        tolerance = options.effective_tolerance

        if method == RemovalMethod.COLOR:
            return self.classifier.remove_by_color(buffer, options.target_color, tolerance)
        if method == RemovalMethod.FUZZY:
            return self.classifier.fuzzy_removal(buffer, options.target_color, tolerance)
        if method == RemovalMethod.CHROMA_KEY:
            return self.classifier.chroma_key(
                buffer,
                options.target_hue,
                options.hue_tolerance,
                options.saturation_min,
            )
        if method == RemovalMethod.FLOOD_FILL:
            return self.classifier.flood_fill(
                buffer,
                options.start_x,
                options.start_y,
                tolerance,
            )
        if method == RemovalMethod.EDGE_PRESERVING:
            return self.classifier.edge_preserving(buffer, options.target_color, tolerance)

        raise ValueError(f"Unknown method: {method}")

    def batch_remove(
        self,
        buffers: list[PixelBuffer],
        options: Optional[RemovalOptions] = None,
    ) -> list[BatchItemResult]:
        """
        Apply one removal method to each buffer independently.

        A failing item is reported in its result and does not stop the
        batch. Results are returned in input order.
        """
        options = options or RemovalOptions()
        RemovalMethod.parse(options.method)

        results = []
        for index, buffer in enumerate(buffers):
            try:
                result = self.remove(buffer, options)
                results.append(BatchItemResult(index=index, success=True, buffer=result))
            except (ValueError, TypeError) as e:
                logger.warning(f"Batch item {index} failed: {e}")
                results.append(BatchItemResult(index=index, success=False, error=str(e)))

        succeeded = sum(1 for r in results if r.success)
        logger.info(f"Batch removal: {succeeded}/{len(results)} succeeded")

        return results

    def remove_and_replace(
        self,
        buffer: PixelBuffer,
        replacement: Replacement,
        options: Optional[RemovalOptions] = None,
    ) -> PixelBuffer:
        """
        Remove the background, then composite over a replacement.

        Defaults to white color removal with tolerance 10.
        """
        if isinstance(replacement, PixelBuffer):
            replacement.validate()
        else:
            parse_color(replacement)

        self.remove(buffer, options)
        return replace_background(buffer, replacement)
