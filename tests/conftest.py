"""
Pytest configuration and fixtures for stl_snapshot.

Provides:
- STL file fixtures generated with numpy-stl (binary, ASCII, empty, broken)
- Small in-memory triangle soups
- A point-splatting fake renderer for pipeline tests
"""

from pathlib import Path

import numpy as np
import pytest
from stl import mesh as stl_mesh

from stl_snapshot.imaging.crop import RgbaImage


# ============================================================================
# In-memory geometry
# ============================================================================

def cube_triangles(size: float = 10.0, offset=(0.0, 0.0, 0.0)):
    """Return (vectors, normals) of an axis-aligned cube with outward normals."""
    hs = size / 2
    o = np.asarray(offset, dtype=np.float64)
    corners = np.array([
        [-hs, -hs, -hs], [+hs, -hs, -hs], [+hs, +hs, -hs], [-hs, +hs, -hs],  # bottom
        [-hs, -hs, +hs], [+hs, -hs, +hs], [+hs, +hs, +hs], [-hs, +hs, +hs],  # top
    ]) + o
    faces = [
        [0, 2, 1], [0, 3, 2],  # -z
        [4, 5, 6], [4, 6, 7],  # +z
        [0, 1, 5], [0, 5, 4],  # -y
        [2, 3, 7], [2, 7, 6],  # +y
        [0, 4, 7], [0, 7, 3],  # -x
        [1, 2, 6], [1, 6, 5],  # +x
    ]
    vectors = np.array([[corners[i] for i in f] for f in faces])
    normals = np.cross(vectors[:, 1] - vectors[:, 0], vectors[:, 2] - vectors[:, 0])
    normals /= np.linalg.norm(normals, axis=1, keepdims=True)
    return vectors, normals


def box_triangles(dims, offset=(0.0, 0.0, 0.0)):
    """Cube triangles scaled to a box of the given (dx, dy, dz)."""
    vectors, normals = cube_triangles(size=2.0)
    half = np.asarray(dims, dtype=np.float64) / 2.0
    vectors = vectors * half + np.asarray(offset, dtype=np.float64)
    return vectors, normals


@pytest.fixture
def single_triangle():
    """One triangle (0,0,0), (1,0,0), (0,1,0) with normal +Z."""
    vectors = np.array([[[0.0, 0.0, 0.0], [1.0, 0.0, 0.0], [0.0, 1.0, 0.0]]])
    normals = np.array([[0.0, 0.0, 1.0]])
    return vectors, normals


@pytest.fixture
def cube_soup():
    """10 mm cube centered at (5, 5, 5)."""
    return cube_triangles(size=10.0, offset=(5.0, 5.0, 5.0))


# ============================================================================
# STL file fixtures
# ============================================================================

def write_stl(path: Path, vectors, normals=None) -> Path:
    m = stl_mesh.Mesh(np.zeros(len(vectors), dtype=stl_mesh.Mesh.dtype))
    m.vectors[:] = vectors
    if normals is not None:
        m.normals[:] = normals
    m.save(str(path), update_normals=normals is None)
    return path


@pytest.fixture
def cube_stl_path(tmp_path: Path) -> Path:
    """Binary cube STL (12 triangles) with stored facet normals."""
    vectors, normals = cube_triangles(size=10.0)
    return write_stl(tmp_path / "cube.stl", vectors, normals)


@pytest.fixture
def ascii_stl_path(tmp_path: Path) -> Path:
    """ASCII cube STL named 'cube'."""
    vectors, normals = cube_triangles(size=10.0)
    path = tmp_path / "ascii_cube.stl"
    with open(path, 'w') as f:
        f.write("solid cube\n")
        for tri, n in zip(vectors, normals):
            f.write(f"  facet normal {n[0]} {n[1]} {n[2]}\n")
            f.write("    outer loop\n")
            for v in tri:
                f.write(f"      vertex {v[0]} {v[1]} {v[2]}\n")
            f.write("    endloop\n")
            f.write("  endfacet\n")
        f.write("endsolid cube\n")
    return path


@pytest.fixture
def empty_stl_path(tmp_path: Path) -> Path:
    """Binary STL with zero triangles."""
    path = tmp_path / "empty.stl"
    m = stl_mesh.Mesh(np.zeros(0, dtype=stl_mesh.Mesh.dtype))
    m.save(str(path))
    return path


@pytest.fixture
def truncated_stl_path(cube_stl_path: Path, tmp_path: Path) -> Path:
    """Binary STL whose triangle count promises more records than present."""
    data = cube_stl_path.read_bytes()
    path = tmp_path / "truncated.stl"
    path.write_bytes(data[:84 + 50 * 5 + 20])
    return path


# ============================================================================
# Fake renderer
# ============================================================================

class SplatRenderer:
    """Projects every vertex with the request camera and paints it opaque.

    Good enough to check that framing keeps the whole mesh on screen.
    """

    def __init__(self):
        self.requests = []
        self.outside = 0

    def render(self, request):
        self.requests.append(request)
        w, h = request.width, request.height
        pixels = np.zeros((h, w, 4), dtype=np.uint8)

        positions = request.buffers.vertices[:, :3].astype(np.float64)
        homogeneous = np.hstack([positions, np.ones((len(positions), 1))])
        clip = homogeneous @ request.camera.view_projection_matrix().T
        ndc = clip[:, :3] / clip[:, 3:4]

        inside = np.all(np.abs(ndc[:, :2]) <= 1.0 + 1e-9, axis=1)
        self.outside = int((~inside).sum())

        xs = np.clip(((ndc[:, 0] + 1) / 2 * (w - 1)).round().astype(int), 0, w - 1)
        ys = np.clip(((1 - ndc[:, 1]) / 2 * (h - 1)).round().astype(int), 0, h - 1)
        pixels[ys[inside], xs[inside]] = (200, 200, 200, 255)
        return RgbaImage(w, h, pixels)


class FailingRenderer:
    def render(self, request):
        raise RuntimeError("no adapter to a physical graphics device")


class WrongSizeRenderer:
    def render(self, request):
        return RgbaImage.blank(request.width + 1, request.height)


class BlankRenderer:
    def render(self, request):
        return RgbaImage.blank(request.width, request.height)


@pytest.fixture
def splat_renderer() -> SplatRenderer:
    return SplatRenderer()


@pytest.fixture
def failing_renderer() -> FailingRenderer:
    return FailingRenderer()


@pytest.fixture
def wrong_size_renderer() -> WrongSizeRenderer:
    return WrongSizeRenderer()


@pytest.fixture
def blank_renderer() -> BlankRenderer:
    return BlankRenderer()


@pytest.fixture
def make_box():
    """Factory: make_box(dims, offset=(0, 0, 0)) -> (vectors, normals)."""
    return box_triangles


@pytest.fixture
def stl_writer():
    """Factory: stl_writer(path, vectors, normals=None) -> path of a binary STL."""
    return write_stl
