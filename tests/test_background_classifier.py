"""Tests for background classification strategies."""

import numpy as np
import pytest

from convec.background.classifier import BackgroundClassifier
from convec.shared.pixels import PixelBuffer


def make_line_image(width: int = 10, height: int = 10, line_x: int = 5) -> PixelBuffer:
    """White image with a black vertical line."""
    buffer = PixelBuffer.filled(width, height, (255, 255, 255))
    buffer.rgb[:, line_x] = (0, 0, 0)
    return buffer


def test_remove_by_color_clears_matching_image():
    """Test that an image entirely within tolerance becomes transparent."""
    buffer = PixelBuffer.filled(8, 6, (250, 252, 248))

    result = BackgroundClassifier().remove_by_color(buffer, (255, 255, 255), 10)

    assert result is buffer
    assert (buffer.alpha == 0).all()


def test_remove_by_color_tolerance_is_exclusive():
    """Test that a channel difference equal to tolerance is kept."""
    buffer = PixelBuffer.filled(2, 1, (245, 245, 245))
    buffer.rgb[0, 1] = (246, 255, 250)

    BackgroundClassifier().remove_by_color(buffer, (255, 255, 255), 10)

    assert buffer.alpha[0, 0] == 255
    assert buffer.alpha[0, 1] == 0


def test_remove_by_color_keeps_rgb():
    """Test that only alpha changes."""
    buffer = make_line_image()
    before = buffer.rgb.copy()

    BackgroundClassifier().remove_by_color(buffer)

    assert np.array_equal(buffer.rgb, before)
    assert buffer.alpha[0, 5] == 255
    assert buffer.alpha[0, 0] == 0


def test_fuzzy_removal_leaves_distant_pixels_unchanged():
    """Test that pixels at or beyond the tolerance radius keep their alpha."""
    buffer = PixelBuffer.filled(4, 4, (200, 200, 200), alpha=123)

    BackgroundClassifier().fuzzy_removal(buffer, (255, 255, 255), 30)

    assert (buffer.alpha == 123).all()


def test_fuzzy_removal_graduates_alpha():
    """Test alpha proportional to distance / tolerance."""
    buffer = PixelBuffer.filled(3, 1, (255, 255, 255))
    buffer.rgb[0, 1] = (255, 255, 245)  # distance 10
    buffer.rgb[0, 2] = (0, 0, 0)

    BackgroundClassifier().fuzzy_removal(buffer, (255, 255, 255), 30)

    assert buffer.alpha[0, 0] == 0
    assert buffer.alpha[0, 1] == 85
    assert buffer.alpha[0, 2] == 255


def test_chroma_key_removes_green():
    """Test green screen removal keeps other hues and grays."""
    buffer = PixelBuffer.filled(4, 1, (0, 255, 0))
    buffer.rgb[0, 1] = (255, 0, 0)
    buffer.rgb[0, 2] = (128, 128, 128)
    buffer.rgb[0, 3] = (40, 200, 60)

    BackgroundClassifier().chroma_key(buffer, 120, 15, 0.3)

    assert list(buffer.alpha[0]) == [0, 255, 255, 0]


def test_chroma_key_hue_wraps_around():
    """Test that hue distance is circular."""
    buffer = PixelBuffer.filled(1, 1, (255, 0, 21))  # hue ~355

    BackgroundClassifier().chroma_key(buffer, target_hue=0, hue_tolerance=15)

    assert buffer.alpha[0, 0] == 0


def test_flood_fill_clears_connected_region_only():
    """Test that the fill stops at the line and skips the far side."""
    buffer = make_line_image()

    BackgroundClassifier().flood_fill(buffer, 0, 0, 10)

    assert (buffer.alpha[:, :5] == 0).all()
    assert (buffer.alpha[:, 5:] == 255).all()


def test_flood_fill_uses_seed_color():
    """Test that the region is defined by the seed pixel's color."""
    buffer = make_line_image()

    BackgroundClassifier().flood_fill(buffer, 5, 3, 10)

    assert (buffer.alpha[:, 5] == 0).all()
    assert (buffer.alpha[:, :5] == 255).all()
    assert (buffer.alpha[:, 6:] == 255).all()


def test_flood_fill_tolerance_is_inclusive():
    """Test that a channel difference equal to tolerance joins the region."""
    buffer = PixelBuffer.filled(3, 1, (255, 255, 255))
    buffer.rgb[0, 1] = (245, 245, 245)

    BackgroundClassifier().flood_fill(buffer, 0, 0, 10)

    assert (buffer.alpha == 0).all()


@pytest.mark.parametrize("seed", [(-1, 0), (0, -1), (10, 0), (0, 10)])
def test_flood_fill_seed_outside_is_noop(seed):
    """Test that an out-of-bounds seed leaves the buffer untouched."""
    buffer = make_line_image()
    before = buffer.data.copy()

    BackgroundClassifier().flood_fill(buffer, *seed)

    assert np.array_equal(buffer.data, before)


def test_edge_preserving_clears_surrounded_pixels():
    """Test that interior pixels with 8 background neighbors become transparent."""
    buffer = PixelBuffer.filled(5, 5, (255, 255, 255))

    BackgroundClassifier().edge_preserving(buffer, (255, 255, 255), 15)

    assert (buffer.alpha[1:-1, 1:-1] == 0).all()
    # Border pixels are skipped
    assert (buffer.alpha[0, :] == 255).all()
    assert (buffer.alpha[:, 0] == 255).all()


def test_edge_preserving_fades_edges():
    """Test partial alpha next to a foreground pixel."""
    buffer = PixelBuffer.filled(5, 5, (255, 255, 255))
    buffer.rgb[2, 2] = (0, 0, 0)

    BackgroundClassifier().edge_preserving(buffer, (255, 255, 255), 15)

    # 7 of 8 neighbors are background: floor(7 / 8 * 255)
    assert buffer.alpha[1, 1] == 223
    assert buffer.alpha[1, 2] == 223
    assert buffer.alpha[2, 2] == 255


def test_invalid_buffer_raises_before_mutation():
    """Test that invalid buffers are rejected."""
    with pytest.raises(ValueError):
        BackgroundClassifier().remove_by_color(PixelBuffer(0, 3))


def test_removal_is_deterministic():
    """Test that repeated runs produce identical bytes."""
    first = make_line_image()
    second = make_line_image()

    BackgroundClassifier().edge_preserving(first)
    BackgroundClassifier().edge_preserving(second)

    assert first.tobytes() == second.tobytes()
