"""
Core data models for Convec.

These models define the options accepted by the background removal
and vectorization components and the results they hand back.
"""

from enum import Enum
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from convec.shared.pixels import PixelBuffer, parse_color


# =============================================================================
# Enumerations
# =============================================================================

class RemovalMethod(str, Enum):
    """Background classification strategy."""

    COLOR = "color"
    FUZZY = "fuzzy"
    CHROMA_KEY = "chroma-key"
    FLOOD_FILL = "flood-fill"
    EDGE_PRESERVING = "edge-preserving"

    @classmethod
    def parse(cls, value: Any) -> "RemovalMethod":
        """Resolve a method name, raising ValueError for unknown names."""
        if isinstance(value, cls):
            return value
        try:
            return cls(value)
        except ValueError:
            raise ValueError(f"Unknown method: {value}") from None


# Per-method tolerance defaults
DEFAULT_TOLERANCES = {
    RemovalMethod.COLOR: 10.0,
    RemovalMethod.FUZZY: 30.0,
    RemovalMethod.FLOOD_FILL: 10.0,
    RemovalMethod.EDGE_PRESERVING: 15.0,
}


# =============================================================================
# Option Models
# =============================================================================

class RemovalOptions(BaseModel):
    """Options for background removal."""

    method: RemovalMethod = RemovalMethod.COLOR
    target_color: tuple[int, int, int] = (255, 255, 255)
    tolerance: Optional[float] = Field(default=None, ge=0)

    # Chroma key
    target_hue: float = Field(default=120.0, ge=0, lt=360)
    hue_tolerance: float = Field(default=15.0, ge=0, le=180)
    saturation_min: float = Field(default=0.3, ge=0, le=1)

    # Flood fill seed
    start_x: int = 0
    start_y: int = 0

    @field_validator("method", mode="before")
    @classmethod
    def _parse_method(cls, value: Any) -> RemovalMethod:
        return RemovalMethod.parse(value)

    @field_validator("target_color", mode="before")
    @classmethod
    def _parse_target_color(cls, value: Any) -> tuple[int, int, int]:
        return parse_color(value)

    @property
    def effective_tolerance(self) -> float:
        """Tolerance, falling back to the method's default."""
        if self.tolerance is not None:
            return self.tolerance
        return DEFAULT_TOLERANCES.get(self.method, 10.0)


class VectorizationOptions(BaseModel):
    """Options for bitmap tracing and SVG emission."""

    threshold: int = Field(default=128, ge=0, le=255)
    turdsize: int = Field(default=5, ge=0)
    optcurve: bool = True
    opttolerance: float = Field(default=1.0, ge=0)
    scale: float = Field(default=1.0, gt=0)
    fill_color: str = "#000000"
    normalize_winding: bool = False

    @field_validator("fill_color")
    @classmethod
    def _check_fill_color(cls, value: str) -> str:
        if not value or any(c in value for c in "<>\"'&"):
            raise ValueError(f"Invalid fill color: {value!r}")
        return value


class PreprocessOptions(BaseModel):
    """Filters applied to a buffer before vectorization."""

    blur: float = Field(default=0, ge=0, le=50)
    contrast: float = Field(default=0, ge=-255, le=255)
    brightness: float = Field(default=0, ge=-255, le=255)

    @property
    def is_noop(self) -> bool:
        return not (self.blur or self.contrast or self.brightness)


# =============================================================================
# Result Models
# =============================================================================

class BatchItemResult(BaseModel):
    """Outcome of one item in a batch removal."""

    index: int
    success: bool
    buffer: Optional[PixelBuffer] = None
    error: Optional[str] = None

    model_config = ConfigDict(arbitrary_types_allowed=True)


class VectorPathResult(BaseModel):
    """Bare SVG path data with the scaled output size."""

    path_data: str
    path_count: int
    width: float
    height: float


# =============================================================================
# API Models
# =============================================================================

class BatchItemResponse(BaseModel):
    """One entry of a batch removal response."""

    index: int
    success: bool
    filename: Optional[str] = None
    data: Optional[str] = None  # Base64-encoded image
    error: Optional[str] = None


class BatchResponse(BaseModel):
    processed: int
    results: list[BatchItemResponse]


class CompleteProcessResponse(BaseModel):
    """Response of the remove-then-vectorize pipeline."""

    success: bool = True
    processed_image: str  # Data URL of the cut-out
    svg: str
    path_count: int
    width: float
    height: float
