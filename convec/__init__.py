"""
Convec: background removal and raster-to-SVG vectorization.
"""

__version__ = "0.1.0"
