"""Post-render image handling."""

from stl_snapshot.imaging.crop import (
    ContentCropper,
    PixelBounds,
    RgbaImage,
    crop,
    non_transparent_bounds,
)

__all__ = [
    "ContentCropper",
    "PixelBounds",
    "RgbaImage",
    "crop",
    "non_transparent_bounds",
]
