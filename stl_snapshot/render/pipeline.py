"""
Snapshot pipeline: STL triangles in, framed and cropped RGBA image out.

Steps:
  1. Load the surface triangles and build a flat mesh.
  2. Optionally rotate Z-up data into the renderer's Y-up frame.
  3. Recenter the mesh on the origin and compute its bounding volume.
  4. Place camera and light.
  5. Render through the injected renderer.
  6. Optionally crop to the non-transparent content and save.

Any failure aborts the whole snapshot; no partial result is returned.
"""

import logging
import math
from dataclasses import dataclass
from pathlib import Path
from typing import Optional, Tuple, Union

import numpy as np
from numpy.typing import NDArray

from stl_snapshot.errors import EmptyMeshError
from stl_snapshot.framing.camera import (
    DEFAULT_CAMERA_ANGLES,
    DEFAULT_FOVY_DEG,
    DEFAULT_LIGHT_ANGLES,
    DEFAULT_LIGHT_COLOR,
    AutoFramer,
    Framing,
    PlacementStrategy,
    SphericalAngles,
)
from stl_snapshot.geometry import transform as tf
from stl_snapshot.geometry.bounding import BoundingVolume
from stl_snapshot.geometry.mesh import Mesh, MeshBuilder, NormalPolicy
from stl_snapshot.imaging.crop import ContentCropper, RgbaImage
from stl_snapshot.io.image_sink import save_image
from stl_snapshot.io.stl_loader import SurfaceTriangles
from stl_snapshot.logging_config import LogContext, log_timing
from stl_snapshot.project_config import ProjectConfig
from stl_snapshot.render.renderer import MeshBuffers, Renderer, RenderRequest, run_renderer

logger = logging.getLogger(__name__)

MeshSource = Union[str, Path, SurfaceTriangles, MeshBuilder, Mesh]


@dataclass(frozen=True)
class SnapshotSettings:
    """Parameters of a single snapshot."""
    width: int
    height: int
    fovy_deg: float = DEFAULT_FOVY_DEG
    camera_angles: SphericalAngles = DEFAULT_CAMERA_ANGLES
    light_angles: SphericalAngles = DEFAULT_LIGHT_ANGLES
    strategy: PlacementStrategy = PlacementStrategy.SPHERICAL
    include_y_axis: bool = False
    light_color: Tuple[float, float, float] = DEFAULT_LIGHT_COLOR
    crop: bool = False
    crop_padding: int = 0
    z_up: bool = False
    normal_policy: NormalPolicy = NormalPolicy.DIRECT

    def __post_init__(self):
        if self.width <= 0 or self.height <= 0:
            raise ValueError(f"Image size must be positive, got {self.width}x{self.height}")

    @property
    def aspect(self) -> float:
        return self.width / self.height

    @classmethod
    def from_config(cls, config: ProjectConfig) -> 'SnapshotSettings':
        """Translate a ProjectConfig into settings.

        Raises:
            ValueError: for unknown strategy or normal policy names
        """
        return cls(
            width=int(config.render.width),
            height=int(config.render.height),
            fovy_deg=float(config.render.fovy_deg),
            camera_angles=SphericalAngles(config.camera.theta_deg, config.camera.phi_deg),
            light_angles=SphericalAngles(config.light.theta_deg, config.light.phi_deg),
            strategy=PlacementStrategy(config.camera.strategy),
            include_y_axis=bool(config.framing.include_y_axis),
            light_color=tuple(config.render.light_color),
            crop=bool(config.render.crop),
            crop_padding=int(config.render.crop_padding),
            z_up=bool(config.framing.z_up),
            normal_policy=NormalPolicy(config.framing.normal_policy),
        )

    def auto_framer(self) -> AutoFramer:
        return AutoFramer(
            aspect=self.aspect,
            fovy_deg=self.fovy_deg,
            strategy=self.strategy,
            camera_angles=self.camera_angles,
            light_angles=self.light_angles,
            include_y_axis=self.include_y_axis,
            light_color=self.light_color,
        )


@dataclass(frozen=True)
class SnapshotResult:
    """What a successful snapshot produced."""
    image: RgbaImage
    mesh: Mesh
    volume: BoundingVolume
    framing: Framing
    translation: NDArray[np.float64]
    output_path: Optional[Path] = None


def build_mesh(source: MeshSource) -> Mesh:
    """Turn any supported source into a Mesh (a Mesh is returned as is)."""
    if isinstance(source, Mesh):
        return source
    if isinstance(source, MeshBuilder):
        return source.build()
    if isinstance(source, SurfaceTriangles):
        return MeshBuilder.from_surface(source.vectors, source.normals).build()
    return MeshBuilder.from_stl(source).build()


def prepare_mesh(mesh: Mesh, settings: SnapshotSettings) -> NDArray[np.float64]:
    """Orient and recenter ``mesh`` in place for framing.

    Returns:
        The recentering translation

    Raises:
        EmptyMeshError: if the mesh has no vertices
    """
    if mesh.is_empty:
        raise EmptyMeshError()
    if settings.z_up:
        # STL data is Z-up; the renderer looks down -Z with +Y up.
        mesh.transform(tf.rotation_x(-math.pi / 2), settings.normal_policy)
    return mesh.recenter()


def take_snapshot(
    source: MeshSource,
    renderer: Renderer,
    settings: SnapshotSettings,
    output_path: Optional[Union[str, Path]] = None,
) -> SnapshotResult:
    """Frame, render and optionally crop and save one still of a mesh.

    Args:
        source: STL path, surface triangles, builder or mesh (meshes are
            transformed in place)
        renderer: External renderer producing the RGBA frame
        settings: Snapshot parameters
        output_path: Where to save the final image; nothing is written if None

    Raises:
        ParseError, EmptyMeshError, RenderFailureError,
        ImageContainerTooSmallError, ZeroAreaImageError, ImageSinkError
    """
    source_name = str(source) if isinstance(source, (str, Path)) else type(source).__name__

    with LogContext(source=source_name):
        with log_timing(logger, "Building mesh", level=logging.INFO) as info:
            mesh = build_mesh(source)
            info["n_triangles"] = mesh.n_triangles

        with log_timing(logger, "Framing mesh"):
            translation = prepare_mesh(mesh, settings)
            volume = BoundingVolume.from_mesh(mesh)
            framing = settings.auto_framer().frame(volume)

        request = RenderRequest(
            buffers=MeshBuffers.from_mesh(mesh),
            camera=framing.camera,
            light=framing.light,
            width=settings.width,
            height=settings.height,
        )
        with log_timing(logger, "Rendering", level=logging.INFO,
                        width=settings.width, height=settings.height):
            image = run_renderer(renderer, request)

        if settings.crop:
            image = ContentCropper(padding=settings.crop_padding).crop(image)

        written = None
        if output_path is not None:
            written = save_image(image, output_path)

    return SnapshotResult(
        image=image,
        mesh=mesh,
        volume=volume,
        framing=framing,
        translation=translation,
        output_path=written,
    )
