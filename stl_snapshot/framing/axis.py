"""
Look-down axis selection for axis-snapped framing.

Each axis maps to the pair of box extents visible when looking along it, so
the placement formulas are written once against that table.
"""

import logging
from enum import Enum
from typing import Callable, Dict, Tuple

from stl_snapshot.geometry.bounding import BoundingVolume

logger = logging.getLogger(__name__)


class Axis(Enum):
    """Standard coordinate axes."""
    X = 0
    Y = 1
    Z = 2


# (visible width, visible height) of the box cross-section per look-down axis
VISIBLE_EXTENTS: Dict[Axis, Tuple[Callable[[BoundingVolume], float],
                                  Callable[[BoundingVolume], float]]] = {
    Axis.X: (lambda v: v.dz, lambda v: v.dy),
    Axis.Y: (lambda v: v.dx, lambda v: v.dz),
    Axis.Z: (lambda v: v.dx, lambda v: v.dy),
}

# Box extent along each axis
AXIS_EXTENT: Dict[Axis, Callable[[BoundingVolume], float]] = {
    Axis.X: lambda v: v.dx,
    Axis.Y: lambda v: v.dy,
    Axis.Z: lambda v: v.dz,
}


def visible_size(volume: BoundingVolume, axis: Axis) -> Tuple[float, float]:
    """Width and height of the box cross-section seen along ``axis``."""
    width, height = VISIBLE_EXTENTS[axis]
    return width(volume), height(volume)


def largest_cross_section_axis(volume: BoundingVolume, include_y: bool = False) -> Axis:
    """Axis along which the box shows its largest cross-section.

    Ties go to Z, then X. Y is only a candidate when ``include_y`` is set,
    and must then be strictly larger than both other areas.

    Args:
        volume: Bounding volume of the (recentered) mesh
        include_y: Consider looking down the Y axis

    Returns:
        Selected Axis
    """
    areas = volume.cross_section_areas()

    if include_y and areas["y"] > areas["x"] and areas["y"] > areas["z"]:
        axis = Axis.Y
    elif areas["x"] > areas["z"]:
        axis = Axis.X
    else:
        axis = Axis.Z

    logger.debug(
        "Look-down axis %s (areas x=%.4g y=%.4g z=%.4g, include_y=%s)",
        axis.name, areas["x"], areas["y"], areas["z"], include_y,
    )
    return axis
