"""
Image sink: persist the final RGBA buffer with Pillow.

The output format follows the file extension (PNG when there is none).
"""

import logging
from pathlib import Path
from typing import Optional, Union

from PIL import Image

from stl_snapshot.errors import ImageSinkError
from stl_snapshot.imaging.crop import RgbaImage

logger = logging.getLogger(__name__)

# Formats without an alpha channel get the image flattened onto white
_OPAQUE_FORMATS = {"JPEG", "BMP"}


def to_pil(image: RgbaImage) -> Image.Image:
    return Image.fromarray(image.as_array())


def save_image(image: RgbaImage, path: Union[str, Path],
               image_format: Optional[str] = None) -> Path:
    """Write ``image`` to ``path``.

    Args:
        image: Final (possibly cropped) image
        path: Output path; parent directories must exist
        image_format: Pillow format name, inferred from the extension if None

    Returns:
        The path written

    Raises:
        ImageSinkError: if Pillow cannot encode or write the file
    """
    path = Path(path)
    if image_format is None:
        image_format = Image.registered_extensions().get(path.suffix.lower(), "PNG")
    image_format = image_format.upper()

    pil_image = to_pil(image)
    if image_format in _OPAQUE_FORMATS:
        background = Image.new("RGB", pil_image.size, (255, 255, 255))
        background.paste(pil_image, mask=pil_image.getchannel("A"))
        pil_image = background

    try:
        pil_image.save(path, format=image_format)
    except (OSError, ValueError, KeyError) as exc:
        raise ImageSinkError(f"Cannot write image {str(path)!r}: {exc}", path=str(path)) from exc

    logger.info("Image saved: %s (%dx%d, %s)", path, image.width, image.height, image_format)
    return path
