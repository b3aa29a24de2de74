"""Auto-framing: look-down axis selection, camera and light placement."""

from stl_snapshot.framing.axis import Axis, largest_cross_section_axis, visible_size
from stl_snapshot.framing.camera import (
    AutoFramer,
    Camera,
    Framing,
    PlacementStrategy,
    PointLight,
    SphericalAngles,
    axis_snapped_camera_position,
    axis_snapped_light_position,
    camera_distance,
    spherical_position,
)
from stl_snapshot.framing.rotation import Rotation3D, spherical_direction

__all__ = [
    "AutoFramer",
    "Axis",
    "Camera",
    "Framing",
    "PlacementStrategy",
    "PointLight",
    "Rotation3D",
    "SphericalAngles",
    "axis_snapped_camera_position",
    "axis_snapped_light_position",
    "camera_distance",
    "largest_cross_section_axis",
    "spherical_direction",
    "spherical_position",
    "visible_size",
]
