"""
Main handler for vectorization module.
"""

import logging
from typing import Any, Optional

from convec.shared.config import get_settings
from convec.shared.models import PreprocessOptions, VectorPathResult, VectorizationOptions
from convec.shared.pixels import PixelBuffer
from convec.vectorization.bitmap import binarize
from convec.vectorization.contour_tracer import Contour, ContourTracer, normalize_winding
from convec.vectorization.preprocessing import ImagePreprocessor
from convec.vectorization.smoother import PathSmoother
from convec.vectorization.svg_writer import SVGWriter

logger = logging.getLogger(__name__)


class VectorizationHandler:
    """
    Main vectorization handler.

    Converts RGBA buffers to vector paths:
    - Binarization by luminance and alpha
    - Boundary tracing and speckle filtering
    - Corner smoothing
    - SVG document or bare path data emission
    """

    def __init__(self, settings: Optional[Any] = None):
        """Initialize vectorization handler."""
        self.settings = settings or get_settings()
        self.preprocessor = ImagePreprocessor()

    def default_options(self) -> VectorizationOptions:
        """Options built from the configured defaults."""
        return VectorizationOptions(**self.settings.vectorization.model_dump())

    def extract_contours(
        self,
        buffer: PixelBuffer,
        options: Optional[VectorizationOptions] = None,
    ) -> list[Contour]:
        """
        Run binarization, tracing, filtering and smoothing.

        Args:
            buffer: Source image (not modified)
            options: Tracing options

        Returns:
            Contours in scan order of their start pixel
        """
        options = options or self.default_options()

        bitmap = binarize(buffer, options.threshold)
        logger.info(
            f"Vectorizing {buffer.width}x{buffer.height} image "
            f"({bitmap.count()} foreground pixels)"
        )

        contours = ContourTracer(turdsize=options.turdsize).trace(bitmap)

        smoother = PathSmoother(enabled=options.optcurve, tolerance=options.opttolerance)
        contours = [smoother.smooth(contour) for contour in contours]

        if options.normalize_winding:
            contours = normalize_winding(contours)

        logger.info(f"Traced {len(contours)} contours")
        return contours

    def vectorize(
        self,
        buffer: PixelBuffer,
        options: Optional[VectorizationOptions] = None,
    ) -> str:
        """Vectorize a buffer into a complete SVG document."""
        options = options or self.default_options()
        contours = self.extract_contours(buffer, options)

        writer = SVGWriter(scale=options.scale, fill_color=options.fill_color)
        return writer.document(contours, buffer.width, buffer.height)

    def generate_path_data(
        self,
        buffer: PixelBuffer,
        options: Optional[VectorizationOptions] = None,
    ) -> VectorPathResult:
        """Vectorize a buffer into bare path data plus its scaled size."""
        options = options or self.default_options()
        contours = self.extract_contours(buffer, options)

        writer = SVGWriter(scale=options.scale, fill_color=options.fill_color)
        return VectorPathResult(
            path_data=writer.path_data(contours),
            path_count=len(contours),
            width=buffer.width * options.scale,
            height=buffer.height * options.scale,
        )

    def vectorize_with_preprocessing(
        self,
        buffer: PixelBuffer,
        preprocess: Optional[PreprocessOptions] = None,
        options: Optional[VectorizationOptions] = None,
    ) -> str:
        """
        Filter the buffer in place, then vectorize it.

        Args:
            buffer: Source image, modified by the filters
            preprocess: Blur/contrast/brightness settings
            options: Tracing options

        Returns:
            SVG document
        """
        if preprocess and not preprocess.is_noop:
            self.preprocessor.process(buffer, preprocess)

        return self.vectorize(buffer, options)
