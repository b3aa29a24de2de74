"""Renderer boundary and the end-to-end snapshot pipeline."""

from stl_snapshot.render.pipeline import (
    SnapshotResult,
    SnapshotSettings,
    build_mesh,
    prepare_mesh,
    take_snapshot,
)
from stl_snapshot.render.renderer import MeshBuffers, Renderer, RenderRequest, run_renderer

__all__ = [
    "MeshBuffers",
    "RenderRequest",
    "Renderer",
    "SnapshotResult",
    "SnapshotSettings",
    "build_mesh",
    "prepare_mesh",
    "run_renderer",
    "take_snapshot",
]
