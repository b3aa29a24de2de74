"""
Surface-triangle source backed by STL files.

Supports:
- Binary STL (autodetected)
- ASCII STL (autodetected)

Single responsibility: read the file and return the raw triangle soup with
the facet normals exactly as stored. No vertex welding happens here.
"""

import logging
import os
import struct
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Optional, Tuple, Union

import numpy as np
from numpy.typing import NDArray
from stl import Mode, mesh

from stl_snapshot.errors import ParseError

logger = logging.getLogger(__name__)

PathLike = Union[str, Path]

BINARY_HEADER_SIZE = 80
BINARY_COUNT_SIZE = 4
BINARY_RECORD_SIZE = 50  # normal + 3 vertices (12 float32) + attribute count (uint16)


class STLFormat(Enum):
    """STL file format type."""
    BINARY = "binary"
    ASCII = "ascii"
    UNKNOWN = "unknown"


@dataclass
class SurfaceTriangles:
    """Triangle soup read from an STL source.

    Attributes:
        vectors: (M, 3, 3) float64 vertex positions per triangle
        normals: (M, 3) float64 facet normal per triangle
        format: Detected file format
        solid_name: Name from the ``solid`` line or header, if any
    """
    vectors: NDArray[np.float64]
    normals: NDArray[np.float64]
    format: STLFormat = STLFormat.UNKNOWN
    solid_name: Optional[str] = None

    def __len__(self) -> int:
        return len(self.vectors)


def detect_stl_format(filepath: PathLike) -> Tuple[STLFormat, Optional[str]]:
    """Detect STL file format (binary vs ASCII).

    ASCII STL files start with the 'solid' keyword followed by facets. Binary
    files have an 80-byte header that may also start with 'solid', so the
    first kilobyte is checked for ASCII keywords too.

    Returns:
        Tuple of (format, solid_name or None)

    Raises:
        ParseError: if the file cannot be read
    """
    try:
        with open(filepath, 'rb') as f:
            head = f.read(1024)
    except FileNotFoundError as exc:
        raise ParseError(f"File not found: {str(filepath)!r}", source=str(filepath)) from exc
    except OSError as exc:
        raise ParseError(f"Cannot read file {str(filepath)!r}: {exc}",
                         source=str(filepath)) from exc

    try:
        text = head.decode('ascii')
    except UnicodeDecodeError:
        text = None

    if text is not None:
        stripped = text.strip()
        lowered = stripped.lower()
        if lowered.startswith('solid') and (
                'facet' in lowered or 'endsolid' in lowered or len(head) < 84):
            solid_name = stripped[5:].split('\n')[0].strip() or None
            return STLFormat.ASCII, solid_name

    if len(head) < 84:
        return STLFormat.UNKNOWN, None

    header = head[:80].split(b'\x00')[0].decode('ascii', errors='ignore').strip()
    solid_name = None
    if header.startswith('solid'):
        solid_name = header[5:].strip() or None
    return STLFormat.BINARY, solid_name


def _check_binary_size(filepath: PathLike, file_size: int) -> None:
    """Reject binary files holding fewer records than the header announces.

    numpy-stl silently returns the records it could read in that case.
    """
    with open(filepath, 'rb') as f:
        f.seek(BINARY_HEADER_SIZE)
        count_bytes = f.read(BINARY_COUNT_SIZE)
    (count,) = struct.unpack('<I', count_bytes)

    expected = BINARY_HEADER_SIZE + BINARY_COUNT_SIZE + count * BINARY_RECORD_SIZE
    if file_size < expected:
        raise ParseError(
            f"STL file {str(filepath)!r} is truncated: header announces {count} "
            f"triangles ({expected} bytes), file has {file_size} bytes",
            source=str(filepath),
        )
    if file_size > expected:
        logger.warning("STL file %s has %d trailing bytes after %d triangles",
                       filepath, file_size - expected, count)


def load_stl(filepath: PathLike) -> SurfaceTriangles:
    """Read an STL file into a triangle soup.

    Facet normals are taken from the file as stored; they are not
    recomputed from the winding.

    Args:
        filepath: Path to a binary or ASCII STL file

    Returns:
        SurfaceTriangles with float64 arrays

    Raises:
        ParseError: if the file is missing, truncated, malformed or holds
            non-finite values
    """
    stl_format, solid_name = detect_stl_format(filepath)
    file_size = os.path.getsize(filepath)

    logger.info("Loading STL: %s (format: %s, size: %.1f KB)",
                filepath, stl_format.value, file_size / 1024)
    if stl_format is STLFormat.UNKNOWN:
        raise ParseError(f"Not an STL file: {str(filepath)!r}", source=str(filepath))
    if stl_format is STLFormat.BINARY:
        _check_binary_size(filepath, file_size)

    # Pin the reader to the detected format; in automatic mode numpy-stl
    # retries a broken ASCII file as binary and reports nonsense counts.
    mode = Mode.ASCII if stl_format is STLFormat.ASCII else Mode.BINARY
    try:
        stl_mesh = mesh.Mesh.from_file(str(filepath), calculate_normals=False, mode=mode)
    except Exception as exc:
        if stl_format is STLFormat.ASCII:
            message = f"ASCII STL parse failed for {str(filepath)!r}: {exc}"
        else:
            message = f"Cannot parse binary STL file {str(filepath)!r}: {exc}"
        raise ParseError(message, source=str(filepath)) from exc

    vectors = np.asarray(stl_mesh.vectors, dtype=np.float64).reshape(-1, 3, 3)
    normals = np.asarray(stl_mesh.normals, dtype=np.float64).reshape(-1, 3)

    finite = np.isfinite(vectors).all(axis=(1, 2)) & np.isfinite(normals).all(axis=1)
    if not finite.all():
        bad = int(np.argmin(finite))
        raise ParseError(
            f"STL file {str(filepath)!r}: triangle {bad} has a non-finite value",
            source=str(filepath),
        )

    if len(vectors) == 0:
        logger.warning("STL file %s contains no triangles", filepath)
    else:
        logger.info("Loaded %d triangles", len(vectors))

    return SurfaceTriangles(
        vectors=vectors,
        normals=normals,
        format=stl_format,
        solid_name=solid_name,
    )
