"""
Shared utilities and models for Convec.
"""

from convec.shared.config import Settings, get_settings
from convec.shared.models import (
    RemovalMethod,
    RemovalOptions,
    VectorizationOptions,
    PreprocessOptions,
    BatchItemResult,
    VectorPathResult,
)
from convec.shared.pixels import PixelBuffer, parse_color

__all__ = [
    "Settings",
    "get_settings",
    "RemovalMethod",
    "RemovalOptions",
    "VectorizationOptions",
    "PreprocessOptions",
    "BatchItemResult",
    "VectorPathResult",
    "PixelBuffer",
    "parse_color",
]
