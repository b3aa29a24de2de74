"""
Error types raised by the stl_snapshot pipeline.

Every failure aborts the current snapshot; nothing is retried. Lookups that
simply have no answer (an empty bounding box, a fully transparent image)
return None instead of raising.
"""

from typing import Optional


class SnapshotError(Exception):
    """Base class for all stl_snapshot failures."""


class ParseError(SnapshotError):
    """Malformed surface-triangle stream (truncated record, non-finite value)."""

    def __init__(self, message: str, source: Optional[str] = None):
        super().__init__(message)
        self.source = source


class EmptyMeshError(SnapshotError):
    """Bounding computation requested on a mesh with zero vertices."""

    def __init__(self, message: str = "Mesh is empty."):
        super().__init__(message)


class ZeroAreaImageError(SnapshotError):
    """Crop requested but every pixel is fully transparent."""

    def __init__(self, message: str = "Image has an area of zero."):
        super().__init__(message)


class ImageContainerTooSmallError(SnapshotError):
    """Pixel buffer length does not match the declared width x height."""

    def __init__(self, width: int, height: int, actual_len: int):
        self.width = width
        self.height = height
        self.expected_len = width * height * 4
        self.actual_len = actual_len
        super().__init__(
            f"The container for the image data does not match {width}x{height} RGBA: "
            f"expected {self.expected_len} bytes, got {actual_len}."
        )


class RenderFailureError(SnapshotError):
    """Opaque failure surfaced from the external renderer."""


class ImageSinkError(SnapshotError):
    """The final image could not be written."""

    def __init__(self, message: str, path: Optional[str] = None):
        super().__init__(message)
        self.path = path
