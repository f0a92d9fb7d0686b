"""Flatten a scene graph into world-space colored triangles."""

from __future__ import annotations

from dataclasses import dataclass
from typing import List

import numpy as np

from .scene import Plane, Scene, SceneNode
from .transforms import transform_points


@dataclass
class TriangleSoup:
    """Triangles of one node.

    triangles: (T, 3, 3) world-space vertex positions.
    colors: (T, 4) RGBA per triangle in ``[0, 1]``.
    """

    node: SceneNode
    triangles: np.ndarray
    colors: np.ndarray


def _sample_texture(texture: np.ndarray, uv: np.ndarray) -> np.ndarray:
    """Pick texels at (T, 2) uv coordinates, v pointing up the image."""

    height, width = texture.shape[:2]
    cols = np.clip((uv[:, 0] * width).astype(int), 0, width - 1)
    rows = np.clip(((1.0 - uv[:, 1]) * height).astype(int), 0, height - 1)
    texels = np.asarray(texture[rows, cols], dtype=np.float64)
    if texels.ndim == 1:
        texels = np.repeat(texels[:, None], 3, axis=1)
    if texture.dtype == np.uint8:
        texels = texels / 255.0
    if texels.shape[1] == 3:
        texels = np.hstack([texels, np.ones((texels.shape[0], 1))])
    return texels[:, :4]


def tessellate_node(node: SceneNode, subdivisions: int = 1) -> TriangleSoup | None:
    """World-space triangles for ``node``, or ``None`` if nothing is drawn."""

    if node.geometry is None or not node.is_visible():
        return None

    geometry = node.geometry
    is_textured = isinstance(geometry, Plane) and geometry.material.texture is not None
    vertices, faces = geometry.mesh(subdivisions if is_textured else 1)
    if faces.size == 0:
        return None

    alpha = node.effective_opacity()
    if is_textured:
        centroids = vertices[faces].mean(axis=1)
        uv = np.column_stack(
            [
                (centroids[:, 0] + geometry.width / 2.0) / geometry.width,
                (centroids[:, 1] + geometry.height / 2.0) / geometry.height,
            ]
        )
        colors = _sample_texture(geometry.material.texture, uv)
    else:
        colors = np.tile(np.asarray(geometry.material.color, dtype=np.float64), (len(faces), 1))
    colors[:, 3] *= alpha

    world = transform_points(node.world_transform(), vertices)
    return TriangleSoup(node=node, triangles=world[faces], colors=colors)


def tessellate_scene(scene: Scene, subdivisions: int = 1) -> List[TriangleSoup]:
    soups = []
    for node in scene.iter_nodes():
        soup = tessellate_node(node, subdivisions)
        if soup is not None:
            soups.append(soup)
    return soups


def scene_bounds(soups: List[TriangleSoup]) -> tuple[np.ndarray, float]:
    """Center and radius of everything drawn; unit sphere at the origin if empty."""

    if not soups:
        return np.zeros(3), 1.0
    points = np.concatenate([soup.triangles.reshape(-1, 3) for soup in soups])
    lo = points.min(axis=0)
    hi = points.max(axis=0)
    center = (lo + hi) / 2.0
    radius = float(np.linalg.norm(hi - lo) / 2.0) or 1.0
    return center, radius


__all__ = ["TriangleSoup", "tessellate_node", "tessellate_scene", "scene_bounds"]
