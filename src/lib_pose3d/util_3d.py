"""Utilities for rendering skeleton scenes with pyglet."""

from __future__ import annotations

import math
import threading
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, cast

import numpy as np
import pyglet
from pyglet import gl, graphics, window
from pyglet.math import Mat4, Vec3

from .scene import Scene
from .tessellate import TriangleSoup, scene_bounds, tessellate_scene
from .transforms import safe_inverse


@dataclass
class SceneVisuals:
    """Container returned by :func:`create_scene_batch`.

    batch: The pyglet batch that owns the vertex lists.
    entries: Mapping of node names to the vertex lists created for rendering.
        Nodes with no geometry are omitted.
    soups: The triangles the vertex lists were built from.
    """

    batch: "pyglet.graphics.Batch"
    entries: Dict[str, Any]
    soups: List[TriangleSoup] = field(default_factory=list)


def create_scene_batch(
    scene: Scene,
    *,
    batch: Optional["pyglet.graphics.Batch"] = None,
    group: Optional["pyglet.graphics.Group"] = None,
    subdivisions: int = 96,
) -> SceneVisuals:
    """Create pyglet vertex lists for every visible node of ``scene``.

    Callers draw the result through ``visuals.batch.draw()``.
    """

    working_batch = batch or pyglet.graphics.Batch()
    shader = pyglet.graphics.get_default_shader()
    entries: Dict[str, Any] = {}
    soups = tessellate_scene(scene, subdivisions)

    for index, soup in enumerate(soups):
        vertex_count = soup.triangles.shape[0] * 3
        positions = soup.triangles.reshape(-1).astype(np.float32).tolist()
        colors = np.repeat(soup.colors, 3, axis=0).reshape(-1).astype(np.float32).tolist()
        key = soup.node.name or f"node_{index}"
        entries[key] = shader.vertex_list(
            vertex_count,
            gl.GL_TRIANGLES,
            batch=working_batch,
            group=cast(Any, group),
            position=("f", positions),
            colors=("f", colors),
        )

    return SceneVisuals(batch=working_batch, entries=entries, soups=soups)


def dispose_scene_visuals(visuals: SceneVisuals) -> None:
    for vertex_list in visuals.entries.values():
        vertex_list.delete()
    visuals.entries.clear()
    visuals.soups.clear()


def _to_mat4(matrix: np.ndarray) -> Mat4:
    # Mat4 is column-major.
    return Mat4(*np.asarray(matrix, dtype=np.float64).T.reshape(-1).tolist())


class PygletSceneSurface:
    """Render surface backed by a pyglet window.

    :meth:`set_scene` may be called from any thread; the scene is swapped in
    on the pyglet thread at the next clock tick. When the scene carries a
    camera node the view is taken from it, otherwise the view orbits the
    skeleton with the mouse.
    """

    def __init__(
        self,
        *,
        width: int = 960,
        height: int = 720,
        caption: str = "Skeleton Scene",
        subdivisions: int = 96,
        update_rate: float = 30.0,
    ) -> None:
        self.window = window.Window(
            width=width, height=height, caption=caption, resizable=True
        )
        self.batch = graphics.Batch()
        self.visuals: Optional[SceneVisuals] = None
        self._subdivisions = subdivisions
        self._pending: Optional[Scene] = None
        self._pending_lock = threading.Lock()
        self._scene: Optional[Scene] = None
        self._yaw = 0.0
        self._pitch = 0.15
        self._distance = 4.0
        self._target = Vec3(0.0, 0.0, 0.0)
        self.key_handlers: Dict[int, Any] = {}

        self._register_handlers()
        pyglet.clock.schedule_interval(self._update, 1.0 / update_rate)

    def set_scene(self, scene: Scene) -> None:
        with self._pending_lock:
            self._pending = scene

    def _update(self, dt: float) -> None:
        with self._pending_lock:
            scene, self._pending = self._pending, None
        if scene is None:
            return
        if self.visuals:
            dispose_scene_visuals(self.visuals)
        self.visuals = create_scene_batch(
            scene, batch=self.batch, subdivisions=self._subdivisions
        )
        self._scene = scene
        center, radius = scene_bounds(self.visuals.soups)
        self._target = Vec3(*center.tolist())
        self._distance = max(radius * 2.5, 1.0)

    def _view_matrix(self) -> Mat4:
        camera = self._scene.camera_node() if self._scene is not None else None
        if camera is not None:
            return _to_mat4(safe_inverse(camera.world_transform()))
        eye = Vec3(
            self._target.x + self._distance * math.cos(self._pitch) * math.sin(self._yaw),
            self._target.y + self._distance * math.sin(self._pitch),
            self._target.z + self._distance * math.cos(self._pitch) * math.cos(self._yaw),
        )
        return Mat4.look_at(eye, self._target, Vec3(0.0, 1.0, 0.0))

    def _register_handlers(self) -> None:
        @self.window.event
        def on_draw() -> None:
            self.window.clear()
            gl.glEnable(gl.GL_DEPTH_TEST)
            gl.glEnable(gl.GL_BLEND)
            gl.glBlendFunc(gl.GL_SRC_ALPHA, gl.GL_ONE_MINUS_SRC_ALPHA)
            self.window.projection = Mat4.perspective_projection(
                aspect=self.window.width / max(self.window.height, 1),
                z_near=0.01,
                z_far=100.0,
                fov=60.0,
            )
            self.window.view = self._view_matrix()
            if self.visuals:
                self.visuals.batch.draw()

        @self.window.event
        def on_mouse_drag(x: int, y: int, dx: int, dy: int, buttons: int, modifiers: int) -> None:
            self._yaw -= dx * 0.01
            self._pitch = max(-1.5, min(1.5, self._pitch - dy * 0.01))

        @self.window.event
        def on_mouse_scroll(x: int, y: int, scroll_x: float, scroll_y: float) -> None:
            self._distance = max(0.2, self._distance * (0.9 ** scroll_y))

        @self.window.event
        def on_key_press(symbol: int, modifiers: int) -> None:
            if symbol in (window.key.ESCAPE, window.key.Q):
                pyglet.app.exit()
                return
            handler = self.key_handlers.get(symbol)
            if handler is not None:
                handler()

    def close(self) -> None:
        pyglet.clock.unschedule(self._update)
        if self.visuals:
            dispose_scene_visuals(self.visuals)
            self.visuals = None
        self.window.close()


__all__ = [
    "SceneVisuals",
    "create_scene_batch",
    "dispose_scene_visuals",
    "PygletSceneSurface",
]
