"""
Bounding volume used for auto-framing.

Provides:
- Axis-aligned extents of a mesh (x/y/z min and max)
- Bounding sphere radius around a reference origin
- Recentering helpers (center, center_to_origin, shift)

The volume is a snapshot of the mesh positions at the time it is computed;
it is not updated when the mesh is transformed later.
"""

import logging
from dataclasses import dataclass, replace
from typing import Dict, Optional

import numpy as np
from numpy.typing import ArrayLike, NDArray

from stl_snapshot.errors import EmptyMeshError
from stl_snapshot.geometry.mesh import Mesh

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class BoundingVolume:
    """Axis-aligned bounds plus a bounding-sphere radius.

    Attributes:
        x_min, x_max, y_min, y_max, z_min, z_max: box extents
        radius: max distance from the reference origin to any vertex
    """
    x_min: float
    x_max: float
    y_min: float
    y_max: float
    z_min: float
    z_max: float
    radius: float

    @classmethod
    def from_mesh(cls, mesh: Mesh, origin: Optional[ArrayLike] = None) -> 'BoundingVolume':
        """Compute the volume from the mesh's current positions.

        Args:
            mesh: Mesh to bound
            origin: Reference point for the sphere radius (default world origin)

        Raises:
            EmptyMeshError: if the mesh has no vertices
        """
        bbox = mesh.bounding_box()
        if bbox is None:
            raise EmptyMeshError()
        bbox_min, bbox_max = bbox

        ref = np.zeros(3) if origin is None else np.asarray(origin, dtype=np.float64)
        radius = float(np.max(np.linalg.norm(mesh.positions - ref, axis=1)))

        volume = cls(
            x_min=float(bbox_min[0]), x_max=float(bbox_max[0]),
            y_min=float(bbox_min[1]), y_max=float(bbox_max[1]),
            z_min=float(bbox_min[2]), z_max=float(bbox_max[2]),
            radius=radius,
        )
        logger.debug(
            "Bounding volume: %.4g x %.4g x %.4g, radius %.4g",
            volume.dx, volume.dy, volume.dz, radius,
        )
        return volume

    @property
    def dx(self) -> float:
        return self.x_max - self.x_min

    @property
    def dy(self) -> float:
        return self.y_max - self.y_min

    @property
    def dz(self) -> float:
        return self.z_max - self.z_min

    @property
    def dimensions(self) -> NDArray[np.float64]:
        return np.array([self.dx, self.dy, self.dz])

    @property
    def min_point(self) -> NDArray[np.float64]:
        return np.array([self.x_min, self.y_min, self.z_min])

    @property
    def max_point(self) -> NDArray[np.float64]:
        return np.array([self.x_max, self.y_max, self.z_max])

    @property
    def center(self) -> NDArray[np.float64]:
        return self.min_point + self.dimensions / 2.0

    def center_to_origin(self) -> NDArray[np.float64]:
        """Translation that moves the box center onto the origin."""
        return np.zeros(3) - self.center

    def shift(self, offset: ArrayLike) -> 'BoundingVolume':
        """Return the box translated by ``offset``.

        The radius is kept as is; recompute from the mesh when the sphere
        must be measured around the new origin.
        """
        ox, oy, oz = (float(v) for v in np.asarray(offset, dtype=np.float64).reshape(3))
        return replace(
            self,
            x_min=self.x_min + ox, x_max=self.x_max + ox,
            y_min=self.y_min + oy, y_max=self.y_max + oy,
            z_min=self.z_min + oz, z_max=self.z_max + oz,
        )

    def cross_section_areas(self) -> Dict[str, float]:
        """Box cross-section area seen when looking down each axis."""
        return {
            "x": self.dy * self.dz,
            "y": self.dx * self.dz,
            "z": self.dx * self.dy,
        }
