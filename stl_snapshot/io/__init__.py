"""Surface-triangle source (STL) and image sink adapters."""

from stl_snapshot.io.image_sink import save_image
from stl_snapshot.io.stl_loader import STLFormat, SurfaceTriangles, detect_stl_format, load_stl

__all__ = [
    "STLFormat",
    "SurfaceTriangles",
    "detect_stl_format",
    "load_stl",
    "save_image",
]
