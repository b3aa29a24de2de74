"""
4x4 affine transform helpers.

Matrices use the column-vector convention: a point p is transformed as
``M @ [x, y, z, 1]``. Arrays of points are (N, 3).
"""

import numpy as np
from numpy.typing import ArrayLike, NDArray


def as_matrix4(matrix: ArrayLike) -> NDArray[np.float64]:
    """Validate and convert to a (4, 4) float64 matrix."""
    m = np.asarray(matrix, dtype=np.float64)
    if m.shape != (4, 4):
        raise ValueError(f"Transform matrix must be 4x4, got {m.shape}")
    return m


def identity() -> NDArray[np.float64]:
    return np.eye(4)


def translation(offset: ArrayLike) -> NDArray[np.float64]:
    """Matrix translating by a 3D offset."""
    offset = np.asarray(offset, dtype=np.float64).reshape(3)
    m = np.eye(4)
    m[:3, 3] = offset
    return m


def uniform_scale(factor: float) -> NDArray[np.float64]:
    m = np.eye(4)
    m[0, 0] = m[1, 1] = m[2, 2] = factor
    return m


def rotation_x(angle_rad: float) -> NDArray[np.float64]:
    """Right-handed rotation around the X axis."""
    c, s = np.cos(angle_rad), np.sin(angle_rad)
    m = np.eye(4)
    m[1, 1], m[1, 2] = c, -s
    m[2, 1], m[2, 2] = s, c
    return m


def transform_points(matrix: ArrayLike, points: ArrayLike) -> NDArray[np.float64]:
    """Apply a homogeneous transform to points (w = 1, divided by result w)."""
    m = as_matrix4(matrix)
    pts = np.asarray(points, dtype=np.float64).reshape(-1, 3)
    homogeneous = np.hstack([pts, np.ones((len(pts), 1))]) @ m.T
    w = homogeneous[:, 3:4]
    # Affine matrices keep w == 1; only projective ones need the divide.
    if not np.all(w == 1.0):
        homogeneous = homogeneous / w
    return homogeneous[:, :3]


def transform_vectors(matrix: ArrayLike, vectors: ArrayLike) -> NDArray[np.float64]:
    """Apply the linear part of a transform to direction vectors (w = 0)."""
    m = as_matrix4(matrix)
    vecs = np.asarray(vectors, dtype=np.float64).reshape(-1, 3)
    return vecs @ m[:3, :3].T


def normal_matrix(matrix: ArrayLike) -> NDArray[np.float64]:
    """Inverse-transpose of the upper 3x3 block, embedded in a 4x4 matrix."""
    m = as_matrix4(matrix)
    result = np.eye(4)
    result[:3, :3] = np.linalg.inv(m[:3, :3]).T
    return result


def normalize_rows(vectors: NDArray[np.float64]) -> NDArray[np.float64]:
    """Scale each row to unit length; zero rows stay zero."""
    norms = np.linalg.norm(vectors, axis=1, keepdims=True)
    norms = np.where(norms < 1e-12, 1.0, norms)
    return vectors / norms
