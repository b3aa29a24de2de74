"""
Unit tests for stl_snapshot.framing.rotation.

Tests:
- Rotation3D constructors and application
- Composition and inversion
- Spherical direction helper
"""

import numpy as np
import pytest

from stl_snapshot.framing.rotation import Rotation3D, spherical_direction, spherical_rotation


class TestRotation3D:
    """Tests for Rotation3D class."""

    def test_identity(self):
        rot = Rotation3D.identity()
        assert np.allclose(rot.matrix, np.eye(3))
        assert rot.is_identity()

    def test_from_axis_angle_z_90(self):
        """Test 90 degree rotation around Z axis."""
        rot = Rotation3D.from_axis_angle(np.array([0, 0, 1]), np.pi/2)

        result = rot.apply(np.array([1, 0, 0]))
        assert np.allclose(result, [0, 1, 0], atol=1e-10)

        result = rot.apply(np.array([0, 1, 0]))
        assert np.allclose(result, [-1, 0, 0], atol=1e-10)

    def test_around_x(self):
        rot = Rotation3D.around_x(np.pi/2)
        result = rot.apply(np.array([0, 1, 0]))
        assert np.allclose(result, [0, 0, 1], atol=1e-10)

    def test_around_y(self):
        """+Y rotation tips +Z toward +X."""
        rot = Rotation3D.around_y(np.pi/2)
        result = rot.apply(np.array([0, 0, 1]))
        assert np.allclose(result, [1, 0, 0], atol=1e-10)

    def test_apply_multiple_points(self):
        rot = Rotation3D.around_z(np.pi)
        points = np.array([[1.0, 0.0, 0.0], [0.0, 2.0, 0.0]])
        result = rot.apply(points)
        assert result.shape == (2, 3)
        assert np.allclose(result, [[-1, 0, 0], [0, -2, 0]], atol=1e-10)

    def test_compose_order(self):
        """(a @ b) applies b first."""
        a = Rotation3D.around_z(np.pi/2)
        b = Rotation3D.around_y(np.pi/2)
        result = (a @ b).apply(np.array([0.0, 0.0, 1.0]))
        assert np.allclose(result, [0, 1, 0], atol=1e-10)

    def test_inverse(self):
        rot = Rotation3D.from_axis_angle(np.array([1.0, 2.0, 3.0]), 0.8)
        assert (rot @ rot.inverse()).is_identity()

    def test_as_matrix4(self):
        m = Rotation3D.around_x(0.3).as_matrix4()
        assert m.shape == (4, 4)
        assert np.allclose(m[3], [0, 0, 0, 1])

    def test_bad_shape(self):
        with pytest.raises(ValueError):
            Rotation3D(np.eye(4))


class TestSphericalDirection:
    """Tests for spherical_direction."""

    def test_theta_zero_is_plus_z(self):
        for phi in (0.0, 0.5, np.pi, 4.0):
            assert np.allclose(spherical_direction(0.0, phi), [0, 0, 1], atol=1e-10)

    def test_equator(self):
        assert np.allclose(spherical_direction(np.pi/2, 0.0), [1, 0, 0], atol=1e-10)
        assert np.allclose(spherical_direction(np.pi/2, np.pi/2), [0, 1, 0], atol=1e-10)

    def test_matches_textbook_formula(self):
        theta, phi = 0.9, 2.1
        expected = [np.sin(theta) * np.cos(phi), np.sin(theta) * np.sin(phi), np.cos(theta)]
        assert np.allclose(spherical_direction(theta, phi), expected, atol=1e-10)

    def test_rotation_is_proper(self):
        rot = spherical_rotation(1.1, -0.4)
        assert np.isclose(np.linalg.det(rot.matrix), 1.0)
