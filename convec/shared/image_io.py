"""
Image decode/encode boundary.

Turns uploaded image bytes into PixelBuffers and back. Everything past
this module works on raw RGBA buffers only.
"""

import base64
import io
import logging
from typing import Optional

import numpy as np
from PIL import Image, UnidentifiedImageError

from convec.shared.pixels import PixelBuffer

logger = logging.getLogger(__name__)

_PIL_FORMATS = {
    "png": "PNG",
    "jpeg": "JPEG",
    "jpg": "JPEG",
    "webp": "WEBP",
}

_MIME_TYPES = {
    "png": "image/png",
    "jpeg": "image/jpeg",
    "jpg": "image/jpeg",
    "webp": "image/webp",
}


def decode_image(data: bytes, max_size: Optional[int] = None) -> PixelBuffer:
    """
    Decode image bytes into an RGBA PixelBuffer.

    Images larger than ``max_size`` on either side are downscaled,
    keeping the aspect ratio.

    Args:
        data: Encoded image bytes (PNG, JPEG, WebP, ...)
        max_size: Optional maximum width/height

    Returns:
        Decoded PixelBuffer
    """
    try:
        img = Image.open(io.BytesIO(data))
        img.load()
    except (UnidentifiedImageError, Image.DecompressionBombError, OSError) as e:
        raise ValueError(f"Failed to load image: {e}") from e

    img = img.convert("RGBA")
    width, height = img.size

    if max_size and (width > max_size or height > max_size):
        ratio = min(max_size / width, max_size / height)
        new_size = (max(1, int(width * ratio)), max(1, int(height * ratio)))
        logger.info(f"Downscaling image from {img.size} to {new_size}")
        img = img.resize(new_size, Image.Resampling.LANCZOS)

    return PixelBuffer.from_array(np.array(img))


def encode_image(buffer: PixelBuffer, fmt: str = "png") -> bytes:
    """
    Encode a PixelBuffer as PNG, JPEG or WebP bytes.

    JPEG has no alpha channel, so transparent areas are flattened to
    their stored RGB values.
    """
    fmt = fmt.lower()
    if fmt not in _PIL_FORMATS:
        raise ValueError(f"Unsupported format: {fmt}")

    buffer.validate()
    img = Image.fromarray(np.ascontiguousarray(buffer.pixels))
    if _PIL_FORMATS[fmt] == "JPEG":
        img = img.convert("RGB")

    out = io.BytesIO()
    img.save(out, format=_PIL_FORMATS[fmt])
    return out.getvalue()


def to_data_url(buffer: PixelBuffer, fmt: str = "png") -> str:
    """Encode a buffer as a base64 data URL."""
    encoded = base64.b64encode(encode_image(buffer, fmt)).decode("utf-8")
    return f"data:{mime_type(fmt)};base64,{encoded}"


def mime_type(fmt: str) -> str:
    try:
        return _MIME_TYPES[fmt.lower()]
    except KeyError:
        raise ValueError(f"Unsupported format: {fmt}") from None
