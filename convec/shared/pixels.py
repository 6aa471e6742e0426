"""
Pixel buffer and color utilities shared by the background and
vectorization components.
"""

import json
import re
from typing import Any, Optional, Sequence, Union

import numpy as np

RGB = tuple[int, int, int]

_HEX_COLOR = re.compile(r"^#(?:[0-9a-fA-F]{3}|[0-9a-fA-F]{6})$")


class PixelBuffer:
    """
    RGBA image held as a flat byte array.

    Samples are interleaved red, green, blue, alpha, row-major and
    top-to-bottom. Operations mutate ``data`` in place; ``pixels`` is a
    ``(height, width, 4)`` view over the same memory.
    """

    CHANNELS = 4

    def __init__(self, width: int, height: int, data: Optional[Any] = None):
        self.width = int(width)
        self.height = int(height)

        if data is None:
            size = max(self.width, 0) * max(self.height, 0) * self.CHANNELS
            self.data = np.zeros(size, dtype=np.uint8)
        elif isinstance(data, (bytes, bytearray)):
            self.data = np.frombuffer(data, dtype=np.uint8).copy()
        else:
            self.data = np.asarray(data, dtype=np.uint8).reshape(-1)

    def __repr__(self) -> str:
        return f"PixelBuffer(width={self.width}, height={self.height})"

    @property
    def size(self) -> int:
        """Number of pixels."""
        return self.width * self.height

    @property
    def pixels(self) -> np.ndarray:
        """Writable (height, width, 4) view of the buffer."""
        return self.data.reshape(self.height, self.width, self.CHANNELS)

    @property
    def rgb(self) -> np.ndarray:
        """Writable (height, width, 3) view of the color channels."""
        return self.pixels[..., :3]

    @property
    def alpha(self) -> np.ndarray:
        """Writable (height, width) view of the alpha channel."""
        return self.pixels[..., 3]

    def validate(self) -> None:
        """Raise ValueError if dimensions and data length disagree."""
        if self.width <= 0 or self.height <= 0:
            raise ValueError(
                f"Invalid pixel buffer dimensions: {self.width}x{self.height}"
            )
        expected = self.width * self.height * self.CHANNELS
        if self.data.size != expected:
            raise ValueError(
                f"Pixel buffer holds {self.data.size} samples, expected {expected}"
            )

    def in_bounds(self, x: int, y: int) -> bool:
        """Check if a coordinate lies inside the image."""
        return 0 <= x < self.width and 0 <= y < self.height

    def get_pixel(self, x: int, y: int) -> tuple[int, int, int, int]:
        """Get the RGBA sample at a coordinate."""
        index = (y * self.width + x) * self.CHANNELS
        r, g, b, a = self.data[index:index + self.CHANNELS]
        return int(r), int(g), int(b), int(a)

    def copy(self) -> "PixelBuffer":
        """Return an independent copy."""
        return PixelBuffer(self.width, self.height, self.data.copy())

    def tobytes(self) -> bytes:
        return self.data.tobytes()

    @classmethod
    def from_array(cls, array: np.ndarray) -> "PixelBuffer":
        """
        Build a buffer from an image array.

        Accepts (H, W, 4) RGBA, (H, W, 3) RGB (made opaque) or (H, W)
        grayscale arrays.
        """
        array = np.asarray(array)

        if array.ndim == 2:
            array = np.stack([array, array, array], axis=-1)

        if array.ndim != 3 or array.shape[2] not in (3, 4):
            raise ValueError(f"Unsupported image array shape: {array.shape}")

        if array.shape[2] == 3:
            opaque = np.full(array.shape[:2] + (1,), 255, dtype=np.uint8)
            array = np.concatenate([array.astype(np.uint8), opaque], axis=-1)

        height, width = array.shape[:2]
        return cls(width, height, np.ascontiguousarray(array, dtype=np.uint8).copy())

    @classmethod
    def filled(
        cls,
        width: int,
        height: int,
        color: Sequence[int] = (255, 255, 255),
        alpha: int = 255,
    ) -> "PixelBuffer":
        """Create a buffer filled with a single color."""
        buffer = cls(width, height)
        buffer.pixels[...] = (*parse_color(color), alpha)
        return buffer


def parse_color(value: Union[str, Sequence[int]]) -> RGB:
    """
    Parse a color into an RGB tuple.

    Accepts ``#rrggbb``, ``#rgb``, a 3-item sequence, or a JSON array
    string like ``"[255, 255, 255]"``.
    """
    if isinstance(value, str):
        text = value.strip()

        if text.startswith("#"):
            if not _HEX_COLOR.match(text):
                raise ValueError(f"Invalid hex color: {value}")
            digits = text[1:]
            if len(digits) == 3:
                digits = "".join(c * 2 for c in digits)
            return (
                int(digits[0:2], 16),
                int(digits[2:4], 16),
                int(digits[4:6], 16),
            )

        try:
            value = json.loads(text)
        except json.JSONDecodeError as e:
            raise ValueError(f"Invalid color: {value}") from e

    try:
        components = [int(c) for c in value]
    except (TypeError, ValueError) as e:
        raise ValueError(f"Invalid color: {value}") from e

    if len(components) != 3 or any(c < 0 or c > 255 for c in components):
        raise ValueError(f"Color must have three components in 0..255: {value}")

    return components[0], components[1], components[2]


def rgb_to_hsl(rgb: np.ndarray) -> tuple[np.ndarray, np.ndarray, np.ndarray]:
    """
    Convert RGB samples to HSL.

    Args:
        rgb: Array of shape (..., 3) with 0..255 values

    Returns:
        Tuple of (hue in degrees [0, 360), saturation [0, 1], lightness [0, 1])
    """
    rgb = np.asarray(rgb, dtype=np.float64) / 255.0
    r, g, b = rgb[..., 0], rgb[..., 1], rgb[..., 2]

    maxc = rgb.max(axis=-1)
    minc = rgb.min(axis=-1)
    delta = maxc - minc
    lightness = (maxc + minc) / 2.0

    chromatic = delta > 0
    safe_delta = np.where(chromatic, delta, 1.0)

    denom = np.where(lightness > 0.5, 2.0 - maxc - minc, maxc + minc)
    saturation = np.where(chromatic, delta / np.where(denom == 0, 1.0, denom), 0.0)

    hue = np.where(
        maxc == r,
        (g - b) / safe_delta + np.where(g < b, 6.0, 0.0),
        np.where(
            maxc == g,
            (b - r) / safe_delta + 2.0,
            (r - g) / safe_delta + 4.0,
        ),
    )
    hue = np.where(chromatic, hue * 60.0, 0.0) % 360.0

    return hue, saturation, lightness


def luminance(rgb: np.ndarray) -> np.ndarray:
    """Rec. 601 luma of RGB samples, as floats."""
    rgb = np.asarray(rgb, dtype=np.float64)
    return 0.299 * rgb[..., 0] + 0.587 * rgb[..., 1] + 0.114 * rgb[..., 2]


def hue_distance(hue: np.ndarray, target: float) -> np.ndarray:
    """Circular distance in degrees between hues."""
    diff = np.abs(np.asarray(hue, dtype=np.float64) - target) % 360.0
    return np.minimum(diff, 360.0 - diff)
