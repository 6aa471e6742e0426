"""
Background removal module for Convec.

Classifies pixels as background and makes them transparent or
replaces them.
"""

from convec.background.handler import BackgroundRemovalHandler
from convec.background.classifier import BackgroundClassifier
from convec.background.compositor import replace_background

__all__ = [
    "BackgroundRemovalHandler",
    "BackgroundClassifier",
    "replace_background",
]
