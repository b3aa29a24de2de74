"""
Rotations used to place the camera and the light on a sphere.

Angles follow the physics convention: the polar angle theta is measured
from +Z, the azimuth phi in the XY plane from +X. A direction (theta, phi)
is reached from +Z by tilting about Y by theta, then turning about Z by phi.
"""

import math
from dataclasses import dataclass

import numpy as np
from numpy.typing import ArrayLike, NDArray

_UNIT_Z = np.array([0.0, 0.0, 1.0])


def _elementary(axis: int, angle_rad: float) -> NDArray[np.float64]:
    """Right-handed rotation matrix about a coordinate axis (0=X, 1=Y, 2=Z)."""
    c, s = math.cos(angle_rad), math.sin(angle_rad)
    i, j = [k for k in range(3) if k != axis]
    m = np.eye(3)
    m[i, i] = m[j, j] = c
    m[i, j] = -s
    m[j, i] = s
    if axis == 1:
        # Y is the middle axis: (z, x) is its positive pair, not (x, z)
        m[i, j], m[j, i] = m[j, i], m[i, j]
    return m


@dataclass
class Rotation3D:
    """Proper rotation stored as a 3x3 matrix acting on column vectors."""
    matrix: NDArray[np.float64]

    def __post_init__(self):
        self.matrix = np.asarray(self.matrix, dtype=np.float64)
        if self.matrix.shape != (3, 3):
            raise ValueError(f"Rotation matrix must be 3x3, got {self.matrix.shape}")

    @classmethod
    def identity(cls) -> 'Rotation3D':
        return cls(np.eye(3))

    @classmethod
    def from_axis_angle(cls, axis: ArrayLike, angle_rad: float) -> 'Rotation3D':
        """Rotation by ``angle_rad`` about an arbitrary (non-zero) axis."""
        k = np.asarray(axis, dtype=np.float64)
        k = k / np.linalg.norm(k)
        cross = np.array([
            [0.0, -k[2], k[1]],
            [k[2], 0.0, -k[0]],
            [-k[1], k[0], 0.0],
        ])
        return cls(np.eye(3) + math.sin(angle_rad) * cross
                   + (1.0 - math.cos(angle_rad)) * (cross @ cross))

    @classmethod
    def around_x(cls, angle_rad: float) -> 'Rotation3D':
        return cls(_elementary(0, angle_rad))

    @classmethod
    def around_y(cls, angle_rad: float) -> 'Rotation3D':
        return cls(_elementary(1, angle_rad))

    @classmethod
    def around_z(cls, angle_rad: float) -> 'Rotation3D':
        return cls(_elementary(2, angle_rad))

    def apply(self, vectors: ArrayLike) -> NDArray[np.float64]:
        """Rotate one 3-vector or an (N, 3) array."""
        v = np.asarray(vectors, dtype=np.float64)
        return v @ self.matrix.T

    def compose(self, other: 'Rotation3D') -> 'Rotation3D':
        """Rotation applying ``other`` first, then ``self``."""
        return Rotation3D(self.matrix @ other.matrix)

    def __matmul__(self, other: 'Rotation3D') -> 'Rotation3D':
        return self.compose(other)

    def inverse(self) -> 'Rotation3D':
        return Rotation3D(self.matrix.T)

    def as_matrix4(self) -> NDArray[np.float64]:
        m = np.eye(4)
        m[:3, :3] = self.matrix
        return m

    def is_identity(self, tol: float = 1e-9) -> bool:
        return bool(np.allclose(self.matrix, np.eye(3), atol=tol))


def spherical_rotation(theta_rad: float, phi_rad: float) -> Rotation3D:
    """Rz(phi) * Ry(theta): carries +Z onto the (theta, phi) direction."""
    return Rotation3D.around_z(phi_rad) @ Rotation3D.around_y(theta_rad)


def spherical_direction(theta_rad: float, phi_rad: float) -> NDArray[np.float64]:
    """Unit vector for polar angle theta and azimuth phi."""
    return spherical_rotation(theta_rad, phi_rad).apply(_UNIT_Z)
