"""
Unit tests for stl_snapshot.io.image_sink.
"""

import numpy as np
import pytest
from PIL import Image

from stl_snapshot.errors import ImageSinkError
from stl_snapshot.imaging.crop import RgbaImage
from stl_snapshot.io.image_sink import save_image, to_pil


@pytest.fixture
def small_image():
    pixels = np.zeros((4, 6, 4), dtype=np.uint8)
    pixels[1:3, 2:5] = (255, 0, 0, 255)
    return RgbaImage(6, 4, pixels)


class TestSaveImage:
    """Tests for save_image."""

    def test_to_pil_mode(self, small_image):
        pil_image = to_pil(small_image)
        assert pil_image.mode == "RGBA"
        assert pil_image.size == (6, 4)

    def test_png_keeps_pixels(self, small_image, tmp_path):
        path = save_image(small_image, tmp_path / "out.png")
        with Image.open(path) as loaded:
            assert loaded.format == "PNG"
            np.testing.assert_array_equal(np.asarray(loaded), small_image.as_array())

    def test_no_extension_defaults_to_png(self, small_image, tmp_path):
        path = save_image(small_image, tmp_path / "snapshot")
        with Image.open(path) as loaded:
            assert loaded.format == "PNG"

    def test_jpeg_flattened(self, small_image, tmp_path):
        path = save_image(small_image, tmp_path / "out.jpg")
        with Image.open(path) as loaded:
            assert loaded.format == "JPEG"
            assert loaded.mode == "RGB"
            # Transparent corner ends up white
            assert all(c > 240 for c in loaded.getpixel((0, 0)))

    def test_explicit_format(self, small_image, tmp_path):
        path = save_image(small_image, tmp_path / "out.dat", image_format="png")
        with Image.open(path) as loaded:
            assert loaded.format == "PNG"

    def test_missing_directory(self, small_image, tmp_path):
        with pytest.raises(ImageSinkError) as exc_info:
            save_image(small_image, tmp_path / "nope" / "out.png")
        assert exc_info.value.path.endswith("out.png")
