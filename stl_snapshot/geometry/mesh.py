"""
In-memory triangle mesh and its builder.

A Mesh is built once from raw surface triangles and is immutable afterwards,
apart from :meth:`Mesh.transform`, which rewrites positions (and unit
normals/tangents) in place. STL-derived meshes are flat: every triangle owns
three fresh vertices and no coincident positions are welded.
"""

import logging
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import List, Optional, Tuple, Union

import numpy as np
from numpy.typing import ArrayLike, NDArray

from stl_snapshot.errors import ParseError
from stl_snapshot.geometry import transform as tf

logger = logging.getLogger(__name__)

# UVs reported for every triangle of a mesh without texture coordinates
DEFAULT_TRIANGLE_UVS = np.array([[0.0, 0.0], [1.0, 0.0], [1.0, 1.0]])


class NormalPolicy(Enum):
    """How Mesh.transform treats normals and tangents.

    DIRECT reproduces the classic behaviour: vectors go through the same
    linear part as positions and are re-normalized. Under non-uniform scale
    or shear this desynchronizes normals from the geometry.
    INVERSE_TRANSPOSE uses the normal matrix instead and stays correct.
    """
    DIRECT = "direct"
    INVERSE_TRANSPOSE = "inverse_transpose"


def _readonly(array: NDArray) -> NDArray:
    array = np.array(array, copy=True, order="C")
    array.flags.writeable = False
    return array


def _attribute(name: str, values: Optional[ArrayLike], n_vertices: int,
               width: int) -> Optional[NDArray[np.float64]]:
    if values is None:
        return None
    arr = np.asarray(values, dtype=np.float64)
    if arr.shape != (n_vertices, width):
        raise ValueError(
            f"{name} must have shape ({n_vertices}, {width}), got {arr.shape}"
        )
    return arr


@dataclass(frozen=True)
class Triangle:
    """A view of one triangle inside a mesh."""
    mesh: 'Mesh'
    index_in_mesh: int

    @property
    def vertex_indices(self) -> Tuple[int, int, int]:
        i1, i2, i3 = self.mesh.triangle_vertex_indices[self.index_in_mesh]
        return int(i1), int(i2), int(i3)

    def world_space_vertices(self) -> NDArray[np.float64]:
        """Positions of the three vertices, shape (3, 3)."""
        return self.mesh.positions[list(self.vertex_indices)]

    def uv_vertices(self) -> NDArray[np.float64]:
        """UVs of the three vertices, shape (3, 2).

        Meshes without UVs report (0, 0), (1, 0), (1, 1).
        """
        if self.mesh.uvs is None:
            return DEFAULT_TRIANGLE_UVS.copy()
        return self.mesh.uvs[list(self.vertex_indices)]


class Mesh:
    """Triangulated surface with parallel per-vertex attribute arrays.

    Attributes:
        positions: (N, 3) world-space vertex positions
        normals: (N, 3) per-vertex normals, or None
        uvs: (N, 2) texture coordinates, or None
        tangents: (N, 3) per-vertex tangents, or None
        triangle_vertex_indices: (M, 3) indices into the vertex arrays

    Meshes are produced by :class:`MeshBuilder`; the arrays are read-only.
    """

    def __init__(
        self,
        positions: NDArray[np.float64],
        triangle_vertex_indices: NDArray[np.int64],
        normals: Optional[NDArray[np.float64]] = None,
        uvs: Optional[NDArray[np.float64]] = None,
        tangents: Optional[NDArray[np.float64]] = None,
    ):
        self._positions = _readonly(positions)
        self._indices = _readonly(triangle_vertex_indices)
        self._normals = None if normals is None else _readonly(normals)
        self._uvs = None if uvs is None else _readonly(uvs)
        self._tangents = None if tangents is None else _readonly(tangents)

    @property
    def positions(self) -> NDArray[np.float64]:
        return self._positions

    @property
    def normals(self) -> Optional[NDArray[np.float64]]:
        return self._normals

    @property
    def uvs(self) -> Optional[NDArray[np.float64]]:
        return self._uvs

    @property
    def tangents(self) -> Optional[NDArray[np.float64]]:
        return self._tangents

    @property
    def triangle_vertex_indices(self) -> NDArray[np.int64]:
        return self._indices

    @property
    def n_vertices(self) -> int:
        return len(self._positions)

    @property
    def n_triangles(self) -> int:
        return len(self._indices)

    @property
    def is_empty(self) -> bool:
        return self.n_vertices == 0

    def __repr__(self) -> str:
        return f"Mesh(n_vertices={self.n_vertices}, n_triangles={self.n_triangles})"

    def triangle_at(self, index: int) -> Triangle:
        if not 0 <= index < self.n_triangles:
            raise IndexError(f"Triangle index {index} out of range ({self.n_triangles})")
        return Triangle(self, index)

    def triangles(self) -> List[Triangle]:
        return [Triangle(self, i) for i in range(self.n_triangles)]

    def transform(
        self,
        matrix: ArrayLike,
        normal_policy: NormalPolicy = NormalPolicy.DIRECT,
    ) -> None:
        """Apply a 4x4 transform to every vertex in place.

        Positions use the homogeneous point transform. Normals and tangents
        are transformed according to ``normal_policy`` and re-normalized.
        """
        m = tf.as_matrix4(matrix)
        self._positions = _readonly(tf.transform_points(m, self._positions))

        vector_matrix = m
        if normal_policy is NormalPolicy.INVERSE_TRANSPOSE:
            vector_matrix = tf.normal_matrix(m)

        if self._normals is not None:
            normals = tf.transform_vectors(vector_matrix, self._normals)
            self._normals = _readonly(tf.normalize_rows(normals))
        if self._tangents is not None:
            # Tangents lie in the surface, so they follow the direct transform.
            tangents = tf.transform_vectors(m, self._tangents)
            self._tangents = _readonly(tf.normalize_rows(tangents))

    def bounding_box(self) -> Optional[Tuple[NDArray[np.float64], NDArray[np.float64]]]:
        """Min and max corners of the axis-aligned bounding box, or None if empty."""
        if self.is_empty:
            return None
        return self._positions.min(axis=0), self._positions.max(axis=0)

    def bounding_box_center(self) -> Optional[NDArray[np.float64]]:
        bbox = self.bounding_box()
        if bbox is None:
            return None
        bbox_min, bbox_max = bbox
        return bbox_min + (bbox_max - bbox_min) / 2.0

    def center_to_origin(self) -> Optional[NDArray[np.float64]]:
        """Vector from the bounding box center to the world origin."""
        center = self.bounding_box_center()
        if center is None:
            return None
        return np.zeros(3) - center

    def recenter(self) -> Optional[NDArray[np.float64]]:
        """Translate the mesh so its bounding box is centered on the origin.

        Returns:
            The translation applied, or None for an empty mesh.
        """
        offset = self.center_to_origin()
        if offset is None:
            return None
        self.transform(tf.translation(offset))
        logger.debug("Recentered mesh by (%.4g, %.4g, %.4g)", *offset)
        return offset


@dataclass
class MeshOptions:
    """Optional vertex attributes and placement for MeshBuilder.

    Attributes:
        normals: (N, 3) per-vertex normals, default none
        uvs: (N, 2) texture coordinates, default none
        tangents: (N, 3) per-vertex tangents, default none
        object_to_world: 4x4 transform applied to positions at build time
    """
    normals: Optional[ArrayLike] = None
    uvs: Optional[ArrayLike] = None
    tangents: Optional[ArrayLike] = None
    object_to_world: ArrayLike = field(default_factory=tf.identity)


class MeshBuilder:
    """Holds object-space vertex data until :meth:`build` produces a Mesh.

    Args:
        positions: (N, 3) object-space positions
        triangle_vertex_indices: (M, 3) integer indices, each < N
        options: optional attributes and object-to-world transform

    Raises:
        ValueError: if shapes or indices are inconsistent
    """

    def __init__(
        self,
        positions: ArrayLike,
        triangle_vertex_indices: ArrayLike,
        options: Optional[MeshOptions] = None,
    ):
        options = options or MeshOptions()

        pos = np.asarray(positions, dtype=np.float64)
        if pos.size == 0:
            pos = pos.reshape(0, 3)
        if pos.ndim != 2 or pos.shape[1] != 3:
            raise ValueError(f"positions must have shape (N, 3), got {pos.shape}")
        n_vertices = len(pos)

        idx = np.asarray(triangle_vertex_indices)
        if idx.size == 0:
            idx = idx.reshape(0, 3).astype(np.int64)
        if idx.ndim != 2 or idx.shape[1] != 3:
            raise ValueError(
                f"triangle_vertex_indices must have shape (M, 3), got {idx.shape}"
            )
        if not np.issubdtype(idx.dtype, np.integer):
            raise ValueError(f"triangle_vertex_indices must be integers, got {idx.dtype}")
        if idx.size and (idx.min() < 0 or idx.max() >= n_vertices):
            raise ValueError(
                f"triangle vertex index out of range [0, {n_vertices})"
            )

        self._positions: Optional[NDArray[np.float64]] = pos
        self._indices = idx.astype(np.int64)
        self._normals = _attribute("normals", options.normals, n_vertices, 3)
        self._uvs = _attribute("uvs", options.uvs, n_vertices, 2)
        self._tangents = _attribute("tangents", options.tangents, n_vertices, 3)
        self._object_to_world = tf.as_matrix4(options.object_to_world)

    @property
    def n_vertices(self) -> int:
        return 0 if self._positions is None else len(self._positions)

    @property
    def n_triangles(self) -> int:
        return len(self._indices)

    @classmethod
    def from_surface(
        cls,
        vectors: ArrayLike,
        normals: ArrayLike,
        object_to_world: Optional[ArrayLike] = None,
    ) -> 'MeshBuilder':
        """Build a flat mesh from STL-style surface triangles.

        Triangle i contributes vertices 3i, 3i+1, 3i+2; its facet normal is
        copied to all three. Coincident positions are not welded.

        Args:
            vectors: (M, 3, 3) vertex positions per triangle
            normals: (M, 3) facet normal per triangle
            object_to_world: optional 4x4 transform applied at build time

        Raises:
            ParseError: if the triangle data is malformed or non-finite
        """
        try:
            tri = np.asarray(vectors, dtype=np.float64)
            facet_normals = np.asarray(normals, dtype=np.float64)
        except (TypeError, ValueError) as exc:
            raise ParseError(f"Malformed surface triangles: {exc}") from exc

        if tri.size == 0 and facet_normals.size == 0:
            tri = tri.reshape(0, 3, 3)
            facet_normals = facet_normals.reshape(0, 3)
        if tri.ndim != 3 or tri.shape[1:] != (3, 3):
            raise ParseError(f"Expected triangles of shape (M, 3, 3), got {tri.shape}")
        if facet_normals.shape != (len(tri), 3):
            raise ParseError(
                f"Expected {len(tri)} facet normals of shape (M, 3), got {facet_normals.shape}"
            )

        finite = np.isfinite(tri).all(axis=(1, 2)) & np.isfinite(facet_normals).all(axis=1)
        if not finite.all():
            bad = int(np.argmin(finite))
            raise ParseError(f"Triangle {bad} has a non-finite coordinate or normal")

        n_triangles = len(tri)
        positions = tri.reshape(n_triangles * 3, 3)
        vertex_normals = np.repeat(facet_normals, 3, axis=0)
        indices = np.arange(n_triangles * 3, dtype=np.int64).reshape(n_triangles, 3)

        options = MeshOptions(normals=vertex_normals)
        if object_to_world is not None:
            options.object_to_world = object_to_world

        logger.debug("Surface converted: %d triangles -> %d vertices",
                     n_triangles, len(positions))
        return cls(positions, indices, options)

    @classmethod
    def from_stl(cls, filepath: Union[str, Path],
                 object_to_world: Optional[ArrayLike] = None) -> 'MeshBuilder':
        """Load an STL file and convert it with :meth:`from_surface`.

        Raises:
            ParseError: if the file is missing or malformed
        """
        from stl_snapshot.io.stl_loader import load_stl

        surface = load_stl(filepath)
        return cls.from_surface(surface.vectors, surface.normals, object_to_world)

    def build(self) -> Mesh:
        """Produce the Mesh; positions are moved into world space.

        Normals, tangents and UVs pass through untouched. The builder hands
        its buffers over and cannot be built twice.
        """
        if self._positions is None:
            raise RuntimeError("MeshBuilder.build() was already called")

        positions = tf.transform_points(self._object_to_world, self._positions)
        mesh = Mesh(
            positions=positions,
            triangle_vertex_indices=self._indices,
            normals=self._normals,
            uvs=self._uvs,
            tangents=self._tangents,
        )

        self._positions = None
        self._normals = self._uvs = self._tangents = None
        return mesh
