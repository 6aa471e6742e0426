"""
Vectorization module for Convec.

Converts raster images to SVG path geometry.
"""

from convec.vectorization.handler import VectorizationHandler
from convec.vectorization.bitmap import BinaryBitmap, binarize
from convec.vectorization.contour_tracer import ContourTracer
from convec.vectorization.smoother import PathSmoother
from convec.vectorization.svg_writer import SVGWriter
from convec.vectorization.preprocessing import ImagePreprocessor

__all__ = [
    "VectorizationHandler",
    "BinaryBitmap",
    "binarize",
    "ContourTracer",
    "PathSmoother",
    "SVGWriter",
    "ImagePreprocessor",
]
