"""
Unit tests for stl_snapshot.imaging.crop.

Tests:
- RgbaImage buffer validation
- Non-transparent content bounds
- Cropping and padding
"""

import numpy as np
import pytest

from stl_snapshot.errors import ImageContainerTooSmallError, ZeroAreaImageError
from stl_snapshot.imaging.crop import (
    ContentCropper,
    PixelBounds,
    RgbaImage,
    crop,
    non_transparent_bounds,
)


def image_with_pixels(width, height, points, color=(10, 20, 30, 255)):
    pixels = np.zeros((height, width, 4), dtype=np.uint8)
    for x, y in points:
        pixels[y, x] = color
    return RgbaImage(width, height, pixels)


class TestRgbaImage:
    """Tests for RgbaImage."""

    def test_from_bytes(self):
        image = RgbaImage(2, 1, bytes([1, 2, 3, 4, 5, 6, 7, 8]))
        assert image.as_array().shape == (1, 2, 4)
        assert image.as_array()[0, 1].tolist() == [5, 6, 7, 8]

    def test_buffer_too_small(self):
        with pytest.raises(ImageContainerTooSmallError) as exc_info:
            RgbaImage(10, 10, bytes(399))
        assert exc_info.value.expected_len == 400
        assert exc_info.value.actual_len == 399

    def test_buffer_too_large(self):
        with pytest.raises(ImageContainerTooSmallError):
            RgbaImage(2, 2, bytes(17))

    def test_blank_is_transparent(self):
        image = RgbaImage.blank(3, 2)
        assert image.alpha.shape == (2, 3)
        assert not image.alpha.any()

    def test_tobytes_row_major(self):
        image = image_with_pixels(2, 2, [(1, 0)])
        data = image.tobytes()
        assert len(data) == 16
        assert data[4:8] == bytes([10, 20, 30, 255])


class TestBounds:
    """Tests for non_transparent_bounds."""

    def test_single_pixel(self):
        bounds = non_transparent_bounds(image_with_pixels(10, 10, [(3, 4)]))
        assert bounds == PixelBounds(min_x=3, min_y=4, max_x=3, max_y=4)
        assert bounds.min == (3, 4)
        assert bounds.max == (3, 4)

    def test_spread_pixels(self):
        bounds = non_transparent_bounds(image_with_pixels(10, 8, [(1, 6), (7, 2)]))
        assert (bounds.min, bounds.max) == ((1, 2), (7, 6))
        assert (bounds.width, bounds.height) == (7, 5)

    def test_all_transparent(self):
        assert non_transparent_bounds(RgbaImage.blank(5, 5)) is None

    def test_color_without_alpha_is_transparent(self):
        """Only the alpha channel decides what counts as content."""
        image = image_with_pixels(4, 4, [(2, 2)], color=(255, 255, 255, 0))
        assert non_transparent_bounds(image) is None

    def test_faint_alpha_counts(self):
        image = image_with_pixels(4, 4, [(0, 3)], color=(0, 0, 0, 1))
        assert non_transparent_bounds(image) == PixelBounds(0, 3, 0, 3)


class TestCrop:
    """Tests for crop and ContentCropper."""

    def test_single_pixel_crop(self):
        cropped = crop(image_with_pixels(10, 10, [(3, 4)]))
        assert (cropped.width, cropped.height) == (1, 1)
        assert cropped.as_array()[0, 0].tolist() == [10, 20, 30, 255]

    def test_crop_keeps_content(self):
        image = image_with_pixels(10, 10, [(2, 3), (5, 7)])
        cropped = crop(image)
        assert (cropped.width, cropped.height) == (4, 5)
        assert cropped.as_array()[0, 0, 3] == 255
        assert cropped.as_array()[4, 3, 3] == 255

    def test_crop_all_transparent(self):
        with pytest.raises(ZeroAreaImageError):
            crop(RgbaImage.blank(4, 4))

    def test_full_image_unchanged(self):
        pixels = np.full((3, 5, 4), 255, dtype=np.uint8)
        cropped = crop(RgbaImage(5, 3, pixels))
        np.testing.assert_array_equal(cropped.as_array(), pixels)

    def test_cropper_padding(self):
        cropped = ContentCropper(padding=2).crop(image_with_pixels(10, 10, [(5, 5)]))
        assert (cropped.width, cropped.height) == (5, 5)

    def test_cropper_padding_clamped(self):
        cropper = ContentCropper(padding=3)
        bounds = cropper.bounds(image_with_pixels(6, 6, [(0, 5)]))
        assert bounds == PixelBounds(min_x=0, min_y=2, max_x=3, max_y=5)

    def test_cropper_blank(self):
        with pytest.raises(ZeroAreaImageError):
            ContentCropper().crop(RgbaImage.blank(4, 4))

    def test_cropper_rejects_negative_padding(self):
        with pytest.raises(ValueError):
            ContentCropper(padding=-1)
