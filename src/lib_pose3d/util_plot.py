"""Headless rendering of skeleton scenes with matplotlib."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional

import numpy as np
from matplotlib.artist import Artist
from matplotlib.figure import Figure
from mpl_toolkits.mplot3d.art3d import Poly3DCollection

from .scene import Scene
from .tessellate import scene_bounds, tessellate_scene

logger = logging.getLogger(__name__)


@dataclass
class SceneVisualsMatplotlib:
    """Artists added to an axes for one scene."""

    collections: List[Artist]


def _to_plot_coords(points: np.ndarray) -> np.ndarray:
    # scene (x, y up, z) -> plot (X=x, Y=z, Z=y)
    return points[..., [0, 2, 1]]


def draw_scene_matplotlib(
    scene: Scene, *, ax, subdivisions: int = 48
) -> SceneVisualsMatplotlib:
    """Add a ``Poly3DCollection`` per drawn node of ``scene`` to a 3D axes."""

    soups = tessellate_scene(scene, subdivisions)
    collections: List[Artist] = []
    for soup in soups:
        poly = Poly3DCollection(
            _to_plot_coords(soup.triangles), facecolors=soup.colors, linewidths=0.0
        )
        ax.add_collection3d(poly)
        collections.append(poly)

    center, radius = scene_bounds(soups)
    center = _to_plot_coords(center)
    ax.set_xlim(center[0] - radius, center[0] + radius)
    ax.set_ylim(center[1] - radius, center[1] + radius)
    ax.set_zlim(center[2] - radius, center[2] + radius)
    return SceneVisualsMatplotlib(collections=collections)


def dispose_scene_visuals_matplotlib(visuals: Optional[SceneVisualsMatplotlib]) -> None:
    if visuals is None:
        return
    for artist in visuals.collections:
        artist.remove()
    visuals.collections.clear()


class MatplotlibSnapshotSurface:
    """Render surface that draws each new scene into a figure.

    With ``output_path`` set, every scene is also written to that file.
    """

    def __init__(
        self,
        output_path: Optional[Path | str] = None,
        *,
        size_px: int = 800,
        elevation: float = 15.0,
        azimuth: float = -90.0,
        subdivisions: int = 48,
    ) -> None:
        dpi = 100
        self.figure = Figure(figsize=(size_px / dpi, size_px / dpi), dpi=dpi)
        self.ax = self.figure.add_subplot(111, projection="3d")
        self.ax.set_box_aspect((1, 1, 1))
        self.ax.view_init(elev=elevation, azim=azimuth)
        self.ax.set_xlabel("x")
        self.ax.set_ylabel("z (depth)")
        self.ax.set_zlabel("y")
        self.output_path = Path(output_path) if output_path is not None else None
        self.visuals: Optional[SceneVisualsMatplotlib] = None
        self._subdivisions = subdivisions

    def set_scene(self, scene: Scene) -> None:
        dispose_scene_visuals_matplotlib(self.visuals)
        self.visuals = draw_scene_matplotlib(
            scene, ax=self.ax, subdivisions=self._subdivisions
        )
        if self.output_path is not None:
            self.figure.savefig(self.output_path)
            logger.info("Wrote scene snapshot to %s", self.output_path)


__all__ = [
    "SceneVisualsMatplotlib",
    "draw_scene_matplotlib",
    "dispose_scene_visuals_matplotlib",
    "MatplotlibSnapshotSurface",
]
