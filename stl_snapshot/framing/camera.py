"""
Camera and light placement that frames a mesh for a single still render.

Two strategies are supported:

- SPHERICAL (default): camera and light sit on a sphere around the origin
  whose radius keeps the mesh's whole bounding sphere inside the frustum,
  at independent polar/azimuthal angles.
- AXIS_SNAPPED: the camera travels along the axis with the largest box
  cross-section. Only suitable for axis-aligned parts.

Both expect the mesh to be recentered on the origin before the bounding
volume is computed.
"""

import logging
import math
from dataclasses import dataclass, field
from enum import Enum
from typing import Optional, Tuple

import numpy as np
from numpy.typing import NDArray

from stl_snapshot.framing.axis import AXIS_EXTENT, Axis, largest_cross_section_axis, visible_size
from stl_snapshot.framing.rotation import spherical_rotation
from stl_snapshot.geometry.bounding import BoundingVolume

logger = logging.getLogger(__name__)

DEFAULT_FOVY_DEG = 45.0
DEFAULT_ZNEAR = 0.1
DEFAULT_ZFAR = 1000.0
DEFAULT_LIGHT_COLOR = (0.7, 0.7, 0.7)


class PlacementStrategy(Enum):
    """How the camera position is derived from the bounding volume."""
    SPHERICAL = "spherical"
    AXIS_SNAPPED = "axis_snapped"


@dataclass(frozen=True)
class SphericalAngles:
    """Polar angle from +Z and azimuth from +X, in degrees."""
    theta_deg: float
    phi_deg: float


DEFAULT_CAMERA_ANGLES = SphericalAngles(theta_deg=90.0, phi_deg=0.0)
DEFAULT_LIGHT_ANGLES = SphericalAngles(theta_deg=0.0, phi_deg=0.0)


def _normalize(v: NDArray[np.float64]) -> NDArray[np.float64]:
    return v / np.linalg.norm(v)


@dataclass
class Camera:
    """Perspective camera looking at a target.

    Attributes:
        position: Eye position
        target: Look-at point (the origin for framed meshes)
        up: Up direction used to orient the view
        fovy_deg: Vertical field of view in degrees
        aspect: Width / height of the output image
        znear, zfar: Clip plane distances
    """
    position: NDArray[np.float64]
    aspect: float
    fovy_deg: float = DEFAULT_FOVY_DEG
    target: NDArray[np.float64] = field(default_factory=lambda: np.zeros(3))
    up: NDArray[np.float64] = field(default_factory=lambda: np.array([0.0, 1.0, 0.0]))
    znear: float = DEFAULT_ZNEAR
    zfar: float = DEFAULT_ZFAR

    def __post_init__(self):
        self.position = np.asarray(self.position, dtype=np.float64).reshape(3)
        self.target = np.asarray(self.target, dtype=np.float64).reshape(3)
        self.up = np.asarray(self.up, dtype=np.float64).reshape(3)

    def view_matrix(self) -> NDArray[np.float64]:
        """Right-handed look-at matrix (world -> camera).

        Raises:
            ValueError: if the camera sits on its target
        """
        offset = self.target - self.position
        if np.linalg.norm(offset) < 1e-12:
            raise ValueError("Camera position coincides with its target")
        forward = _normalize(offset)
        side = np.cross(forward, self.up)
        if np.linalg.norm(side) < 1e-9:
            # Looking straight along the up vector; any perpendicular will do.
            side = np.cross(forward, np.array([0.0, 0.0, 1.0]))
        side = _normalize(side)
        true_up = np.cross(side, forward)

        m = np.eye(4)
        m[0, :3] = side
        m[1, :3] = true_up
        m[2, :3] = -forward
        m[:3, 3] = -m[:3, :3] @ self.position
        return m

    def projection_matrix(self) -> NDArray[np.float64]:
        """OpenGL-style perspective projection."""
        f = 1.0 / math.tan(math.radians(self.fovy_deg) / 2.0)
        near, far = self.znear, self.zfar
        return np.array([
            [f / self.aspect, 0.0, 0.0, 0.0],
            [0.0, f, 0.0, 0.0],
            [0.0, 0.0, (far + near) / (near - far), 2.0 * far * near / (near - far)],
            [0.0, 0.0, -1.0, 0.0],
        ])

    def view_projection_matrix(self) -> NDArray[np.float64]:
        return self.projection_matrix() @ self.view_matrix()


@dataclass
class PointLight:
    """Point light with an RGB color in [0, 1]."""
    position: NDArray[np.float64]
    color: Tuple[float, float, float] = DEFAULT_LIGHT_COLOR

    def __post_init__(self):
        self.position = np.asarray(self.position, dtype=np.float64).reshape(3)


def _validate_fovy(fovy_deg: float) -> None:
    if not 0.0 < fovy_deg < 180.0:
        raise ValueError(f"Vertical field of view must be in (0, 180) degrees, got {fovy_deg}")


def camera_distance(radius: float, fovy_deg: float) -> float:
    """Distance at which a sphere of ``radius`` exactly fills the field of view."""
    _validate_fovy(fovy_deg)
    return radius / math.sin(math.radians(fovy_deg) / 2.0)


def horizontal_fov_deg(fovy_deg: float, aspect: float) -> float:
    """Horizontal field of view matching a vertical one at ``aspect``."""
    half = math.radians(fovy_deg) / 2.0
    return math.degrees(2.0 * math.atan(aspect * math.tan(half)))


def spherical_position(theta_deg: float, phi_deg: float, distance: float) -> NDArray[np.float64]:
    """Rz(phi) * Ry(theta) * (0, 0, distance)."""
    rotation = spherical_rotation(math.radians(theta_deg), math.radians(phi_deg))
    return rotation.apply(np.array([0.0, 0.0, distance]))


def axis_snapped_camera_position(
    volume: BoundingVolume,
    aspect: float,
    fovy_deg: float,
    axis: Axis,
) -> NDArray[np.float64]:
    """Position on ``axis`` from which the box cross-section fills the view.

    The cross-section is fitted by height when the viewport is relatively
    wider than the section, otherwise by width scaled through the aspect.
    """
    _validate_fovy(fovy_deg)
    visible_width, visible_height = visible_size(volume, axis)

    theta = math.radians(90.0 - fovy_deg / 2.0)
    # aspect >= w / h, written without dividing by a possibly zero height
    if aspect * visible_height >= visible_width:
        target_height = visible_height
    else:
        target_height = visible_width / aspect
    camera_to_box = math.sin(theta) * target_height

    position = np.zeros(3)
    position[axis.value] = camera_to_box + AXIS_EXTENT[axis](volume)
    return position


def axis_snapped_light_position(volume: BoundingVolume, axis: Axis) -> NDArray[np.float64]:
    """Light above and in front of the part for the given look-down axis."""
    if axis is Axis.X:
        return np.array([volume.dx, volume.dy, 0.0])
    if axis is Axis.Y:
        return np.array([0.0, volume.dy, -volume.dz])
    return np.array([0.0, volume.dy, volume.dz])


@dataclass(frozen=True)
class Framing:
    """Result of auto-framing: where to put the camera and the light."""
    camera: Camera
    light: PointLight
    strategy: PlacementStrategy
    distance: float
    axis: Optional[Axis] = None


class AutoFramer:
    """Computes camera and light placement for a recentered bounding volume.

    Args:
        fovy_deg: Vertical field of view in degrees, in (0, 180)
        aspect: Output width / height, > 0
        strategy: Placement strategy (spherical by default)
        camera_angles: Camera polar/azimuthal angles for spherical placement
        light_angles: Light polar/azimuthal angles for spherical placement
        include_y_axis: Allow Y as the look-down axis for axis-snapped placement
        light_color: RGB color of the point light
    """

    def __init__(
        self,
        aspect: float,
        fovy_deg: float = DEFAULT_FOVY_DEG,
        strategy: PlacementStrategy = PlacementStrategy.SPHERICAL,
        camera_angles: SphericalAngles = DEFAULT_CAMERA_ANGLES,
        light_angles: SphericalAngles = DEFAULT_LIGHT_ANGLES,
        include_y_axis: bool = False,
        light_color: Tuple[float, float, float] = DEFAULT_LIGHT_COLOR,
    ):
        _validate_fovy(fovy_deg)
        if not aspect > 0:
            raise ValueError(f"Aspect ratio must be positive, got {aspect}")
        self.aspect = aspect
        self.fovy_deg = fovy_deg
        self.strategy = strategy
        self.camera_angles = camera_angles
        self.light_angles = light_angles
        self.include_y_axis = include_y_axis
        self.light_color = tuple(light_color)

    def frame(self, volume: BoundingVolume) -> Framing:
        """Place camera and light for ``volume``.

        Raises:
            ValueError: if every vertex sits on the origin (zero radius), which
                leaves no distance to back the camera away by
        """
        if not volume.radius > 0:
            raise ValueError(
                "Cannot frame a mesh whose vertices all coincide with the origin "
                f"(bounding radius {volume.radius})"
            )
        if self.strategy is PlacementStrategy.AXIS_SNAPPED:
            framing = self._frame_axis_snapped(volume)
        else:
            framing = self._frame_spherical(volume)

        logger.info(
            "Framed mesh: strategy=%s, camera=(%.4g, %.4g, %.4g), distance=%.4g",
            framing.strategy.value, *framing.camera.position, framing.distance,
        )
        return framing

    def _camera(self, position: NDArray[np.float64], far_extent: float) -> Camera:
        return Camera(
            position=position,
            aspect=self.aspect,
            fovy_deg=self.fovy_deg,
            zfar=max(DEFAULT_ZFAR, far_extent),
        )

    def _frame_spherical(self, volume: BoundingVolume) -> Framing:
        # The narrower of the two fields of view bounds the sphere: for
        # aspect >= 1 that is fovy itself, giving radius / sin(fovy / 2); portrait
        # outputs use the horizontal fov so the sphere also fits sideways.
        fov = min(self.fovy_deg, horizontal_fov_deg(self.fovy_deg, self.aspect))
        distance = camera_distance(volume.radius, fov)

        camera_position = spherical_position(
            self.camera_angles.theta_deg, self.camera_angles.phi_deg, distance)
        light_position = spherical_position(
            self.light_angles.theta_deg, self.light_angles.phi_deg, distance)

        return Framing(
            camera=self._camera(camera_position, distance + volume.radius),
            light=PointLight(light_position, self.light_color),
            strategy=PlacementStrategy.SPHERICAL,
            distance=distance,
        )

    def _frame_axis_snapped(self, volume: BoundingVolume) -> Framing:
        axis = largest_cross_section_axis(volume, include_y=self.include_y_axis)
        camera_position = axis_snapped_camera_position(
            volume, self.aspect, self.fovy_deg, axis)
        distance = float(np.linalg.norm(camera_position))

        return Framing(
            camera=self._camera(camera_position, distance + AXIS_EXTENT[axis](volume)),
            light=PointLight(axis_snapped_light_position(volume, axis), self.light_color),
            strategy=PlacementStrategy.AXIS_SNAPPED,
            distance=distance,
            axis=axis,
        )
