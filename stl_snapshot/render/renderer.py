"""
Boundary to the external renderer.

The renderer is an injected service: it receives flattened mesh buffers plus
camera and light parameters and returns one RGBA8 image. Nothing here touches
GPU resources.
"""

import logging
from dataclasses import dataclass
from typing import Protocol

import numpy as np
from numpy.typing import NDArray

from stl_snapshot.errors import ImageContainerTooSmallError, RenderFailureError
from stl_snapshot.framing.camera import Camera, PointLight
from stl_snapshot.geometry.mesh import Mesh
from stl_snapshot.imaging.crop import RgbaImage

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class MeshBuffers:
    """Mesh data laid out for upload.

    Attributes:
        vertices: (N, 6) float32 rows of (px, py, pz, nx, ny, nz)
        indices: (3M,) uint32 triangle list
    """
    vertices: NDArray[np.float32]
    indices: NDArray[np.uint32]

    @classmethod
    def from_mesh(cls, mesh: Mesh) -> 'MeshBuffers':
        """Interleave positions with normals; missing normals become zero."""
        normals = mesh.normals if mesh.normals is not None else np.zeros_like(mesh.positions)
        vertices = np.hstack([mesh.positions, normals]).astype(np.float32)
        indices = mesh.triangle_vertex_indices.reshape(-1).astype(np.uint32)
        return cls(vertices=vertices, indices=indices)

    @property
    def n_vertices(self) -> int:
        return len(self.vertices)

    @property
    def n_indices(self) -> int:
        return len(self.indices)


@dataclass(frozen=True)
class RenderRequest:
    """Everything a renderer needs to produce one frame."""
    buffers: MeshBuffers
    camera: Camera
    light: PointLight
    width: int
    height: int


class Renderer(Protocol):
    """Produces a width x height RGBA8 image for a request."""

    def render(self, request: RenderRequest) -> RgbaImage:
        ...


def run_renderer(renderer: Renderer, request: RenderRequest) -> RgbaImage:
    """Call the renderer once and check what comes back.

    Raises:
        RenderFailureError: if the renderer raises
        ImageContainerTooSmallError: if the image size differs from the request
    """
    logger.debug("Rendering %dx%d, %d vertices", request.width, request.height,
                 request.buffers.n_vertices)
    try:
        image = renderer.render(request)
    except Exception as exc:
        raise RenderFailureError(f"Renderer failed: {exc}") from exc

    if (image.width, image.height) != (request.width, request.height):
        raise ImageContainerTooSmallError(
            request.width, request.height, image.width * image.height * 4)
    return image
