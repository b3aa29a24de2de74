"""
Unit tests for stl_snapshot.geometry.bounding.

Tests:
- Axis-aligned extents and bounding sphere radius
- Empty mesh handling
- Center, center_to_origin and shift
"""

import math

import numpy as np
import pytest

from stl_snapshot.errors import EmptyMeshError
from stl_snapshot.geometry.bounding import BoundingVolume
from stl_snapshot.geometry.mesh import MeshBuilder


class TestFromMesh:
    """Tests for BoundingVolume.from_mesh."""

    def test_single_triangle(self, single_triangle):
        mesh = MeshBuilder.from_surface(*single_triangle).build()
        volume = BoundingVolume.from_mesh(mesh)

        assert (volume.x_min, volume.x_max) == (0.0, 1.0)
        assert (volume.y_min, volume.y_max) == (0.0, 1.0)
        assert (volume.z_min, volume.z_max) == (0.0, 0.0)
        assert volume.radius == pytest.approx(1.0)

    def test_empty_mesh_raises(self):
        mesh = MeshBuilder.from_surface(np.zeros((0, 3, 3)), np.zeros((0, 3))).build()
        with pytest.raises(EmptyMeshError):
            BoundingVolume.from_mesh(mesh)

    def test_min_not_greater_than_max(self, make_box):
        mesh = MeshBuilder.from_surface(*make_box((1.0, 2.0, 3.0), offset=(-7.0, 3.0, 0.5))).build()
        volume = BoundingVolume.from_mesh(mesh)
        assert volume.x_min <= volume.x_max
        assert volume.y_min <= volume.y_max
        assert volume.z_min <= volume.z_max

    def test_cube_radius_is_half_diagonal(self, make_box):
        mesh = MeshBuilder.from_surface(*make_box((2.0, 2.0, 2.0))).build()
        volume = BoundingVolume.from_mesh(mesh)
        assert volume.radius == pytest.approx(math.sqrt(3.0))

    def test_radius_around_custom_origin(self, single_triangle):
        mesh = MeshBuilder.from_surface(*single_triangle).build()
        volume = BoundingVolume.from_mesh(mesh, origin=(1.0, 0.0, 0.0))
        assert volume.radius == pytest.approx(math.sqrt(2.0))

    def test_not_synchronized_with_mesh(self, single_triangle):
        """A later mesh transform does not update an existing volume."""
        from stl_snapshot.geometry import transform as tf

        mesh = MeshBuilder.from_surface(*single_triangle).build()
        volume = BoundingVolume.from_mesh(mesh)
        mesh.transform(tf.translation([10.0, 0.0, 0.0]))

        assert volume.x_min == 0.0
        assert BoundingVolume.from_mesh(mesh).x_min == pytest.approx(10.0)


class TestDerived:
    """Tests for derived quantities."""

    @pytest.fixture
    def volume(self):
        return BoundingVolume(x_min=0.0, x_max=10.0, y_min=0.0, y_max=20.0,
                              z_min=0.0, z_max=30.0, radius=5.0)

    def test_dimensions(self, volume):
        assert (volume.dx, volume.dy, volume.dz) == (10.0, 20.0, 30.0)
        np.testing.assert_array_equal(volume.dimensions, [10.0, 20.0, 30.0])

    def test_center(self, volume):
        np.testing.assert_array_equal(volume.center, [5.0, 10.0, 15.0])

    def test_center_to_origin(self, volume):
        np.testing.assert_array_equal(volume.center_to_origin(), [-5.0, -10.0, -15.0])

    def test_shift_recenters(self, volume):
        shifted = volume.shift(volume.center_to_origin())
        np.testing.assert_array_equal(shifted.min_point, -shifted.max_point)
        assert shifted.radius == volume.radius
        assert volume.x_min == 0.0  # original untouched

    def test_cross_section_areas(self, volume):
        assert volume.cross_section_areas() == {"x": 600.0, "y": 300.0, "z": 200.0}
