"""Mesh data model, transforms and bounding volumes."""

from stl_snapshot.geometry.bounding import BoundingVolume
from stl_snapshot.geometry.mesh import (
    DEFAULT_TRIANGLE_UVS,
    Mesh,
    MeshBuilder,
    MeshOptions,
    NormalPolicy,
    Triangle,
)

__all__ = [
    "BoundingVolume",
    "DEFAULT_TRIANGLE_UVS",
    "Mesh",
    "MeshBuilder",
    "MeshOptions",
    "NormalPolicy",
    "Triangle",
]
