"""
Cropping rendered images down to their non-transparent content.

A pixel counts as content when its alpha channel is nonzero. Bounds are
inclusive pixel coordinates, x to the right and y down.
"""

import logging
from dataclasses import dataclass
from typing import Optional, Union

import numpy as np
from numpy.typing import NDArray

from stl_snapshot.errors import ImageContainerTooSmallError, ZeroAreaImageError

logger = logging.getLogger(__name__)


class RgbaImage:
    """RGBA8 pixel buffer with declared dimensions.

    Args:
        width: Image width in pixels
        height: Image height in pixels
        pixels: Row-major RGBA bytes, ``width * height * 4`` long; bytes,
            bytearray or any uint8 array (flat or (height, width, 4))

    Raises:
        ImageContainerTooSmallError: if the buffer length does not match
    """

    def __init__(self, width: int, height: int,
                 pixels: Union[bytes, bytearray, memoryview, NDArray[np.uint8]]):
        if width < 0 or height < 0:
            raise ValueError(f"Image dimensions must be non-negative, got {width}x{height}")
        if isinstance(pixels, (bytes, bytearray, memoryview)):
            flat = np.frombuffer(bytes(pixels), dtype=np.uint8)
        else:
            flat = np.asarray(pixels, dtype=np.uint8).reshape(-1)

        if flat.size != width * height * 4:
            raise ImageContainerTooSmallError(width, height, int(flat.size))

        self.width = width
        self.height = height
        self._pixels = flat.reshape(height, width, 4)

    @classmethod
    def blank(cls, width: int, height: int) -> 'RgbaImage':
        """Fully transparent image."""
        return cls(width, height, np.zeros(width * height * 4, dtype=np.uint8))

    def as_array(self) -> NDArray[np.uint8]:
        """Pixels as a (height, width, 4) array."""
        return self._pixels

    def tobytes(self) -> bytes:
        return self._pixels.tobytes()

    @property
    def alpha(self) -> NDArray[np.uint8]:
        return self._pixels[:, :, 3]

    def __repr__(self) -> str:
        return f"RgbaImage({self.width}x{self.height})"


@dataclass(frozen=True)
class PixelBounds:
    """Inclusive pixel rectangle [min_x, max_x] x [min_y, max_y]."""
    min_x: int
    min_y: int
    max_x: int
    max_y: int

    @property
    def width(self) -> int:
        return self.max_x - self.min_x + 1

    @property
    def height(self) -> int:
        return self.max_y - self.min_y + 1

    @property
    def min(self):
        return self.min_x, self.min_y

    @property
    def max(self):
        return self.max_x, self.max_y


def non_transparent_bounds(image: RgbaImage) -> Optional[PixelBounds]:
    """Tight bounding rectangle of all pixels with nonzero alpha.

    Returns:
        PixelBounds, or None if every pixel is fully transparent
    """
    opaque = image.alpha != 0
    rows = np.flatnonzero(opaque.any(axis=1))
    if rows.size == 0:
        return None
    cols = np.flatnonzero(opaque.any(axis=0))
    return PixelBounds(
        min_x=int(cols[0]), min_y=int(rows[0]),
        max_x=int(cols[-1]), max_y=int(rows[-1]),
    )


def crop(image: RgbaImage, bounds: Optional[PixelBounds] = None) -> RgbaImage:
    """Cut ``image`` down to ``bounds`` (its content bounds by default).

    Raises:
        ZeroAreaImageError: if the image has no non-transparent pixel
    """
    if bounds is None:
        bounds = non_transparent_bounds(image)
        if bounds is None:
            raise ZeroAreaImageError()

    region = image.as_array()[bounds.min_y:bounds.max_y + 1, bounds.min_x:bounds.max_x + 1]
    return RgbaImage(bounds.width, bounds.height, np.ascontiguousarray(region))


class ContentCropper:
    """Crops rendered images to their visible content, with optional padding.

    Args:
        padding: Transparent pixels kept around the content on each side,
            clamped to the image edges
    """

    def __init__(self, padding: int = 0):
        if padding < 0:
            raise ValueError(f"padding must be non-negative, got {padding}")
        self.padding = padding

    def bounds(self, image: RgbaImage) -> Optional[PixelBounds]:
        bounds = non_transparent_bounds(image)
        if bounds is None or not self.padding:
            return bounds
        return PixelBounds(
            min_x=max(bounds.min_x - self.padding, 0),
            min_y=max(bounds.min_y - self.padding, 0),
            max_x=min(bounds.max_x + self.padding, image.width - 1),
            max_y=min(bounds.max_y + self.padding, image.height - 1),
        )

    def crop(self, image: RgbaImage) -> RgbaImage:
        bounds = self.bounds(image)
        if bounds is None:
            logger.error("Nothing to crop: %dx%d image is fully transparent",
                         image.width, image.height)
            raise ZeroAreaImageError()

        cropped = crop(image, bounds)
        logger.info("Cropped %dx%d -> %dx%d at (%d, %d)",
                    image.width, image.height, cropped.width, cropped.height,
                    bounds.min_x, bounds.min_y)
        return cropped
