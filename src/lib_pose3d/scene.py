"""A small retained-mode scene graph consumed by the render surfaces."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Iterator, List, Optional, Protocol, Tuple

import numpy as np

from .transforms import (
    Matrix4,
    Vector3,
    euler_angles,
    euler_rotation,
    identity,
    safe_inverse,
    translation_vector,
)

RGBA = Tuple[float, float, float, float]

DEFAULT_COLOR: RGBA = (1.0, 1.0, 1.0, 1.0)
GRAY: RGBA = (0.557, 0.557, 0.576, 1.0)
BLACK: RGBA = (0.0, 0.0, 0.0, 1.0)


@dataclass
class Material:
    """Surface appearance: a flat RGBA color or an RGB(A) image texture."""

    color: RGBA = DEFAULT_COLOR
    texture: Optional[np.ndarray] = None
    double_sided: bool = False


class Geometry:
    """Base class for node shapes. Meshes are centered on the node origin."""

    material: Material

    def mesh(self, subdivisions: int = 1) -> Tuple[np.ndarray, np.ndarray]:
        """Return ``(vertices (N, 3), faces (M, 3))`` in node-local space."""
        raise NotImplementedError


@dataclass
class Box(Geometry):
    width: float
    height: float
    length: float
    chamfer_radius: float = 0.0
    material: Material = field(default_factory=Material)

    def mesh(self, subdivisions: int = 1) -> Tuple[np.ndarray, np.ndarray]:
        hx, hy, hz = self.width / 2.0, self.height / 2.0, self.length / 2.0
        vertices = np.array(
            [
                [-hx, -hy, -hz],
                [hx, -hy, -hz],
                [hx, hy, -hz],
                [-hx, hy, -hz],
                [-hx, -hy, hz],
                [hx, -hy, hz],
                [hx, hy, hz],
                [-hx, hy, hz],
            ],
            dtype=np.float64,
        )
        faces = np.array(
            [
                [0, 2, 1], [0, 3, 2],  # back
                [4, 5, 6], [4, 6, 7],  # front
                [0, 1, 5], [0, 5, 4],  # bottom
                [3, 7, 6], [3, 6, 2],  # top
                [0, 4, 7], [0, 7, 3],  # left
                [1, 2, 6], [1, 6, 5],  # right
            ],
            dtype=np.int32,
        )
        return vertices, faces


@dataclass
class Plane(Geometry):
    """A flat rectangle in the local XY plane facing +Z."""

    width: float
    height: float
    material: Material = field(default_factory=Material)

    def mesh(self, subdivisions: int = 1) -> Tuple[np.ndarray, np.ndarray]:
        n = max(int(subdivisions), 1)
        xs = np.linspace(-self.width / 2.0, self.width / 2.0, n + 1)
        ys = np.linspace(-self.height / 2.0, self.height / 2.0, n + 1)
        grid_x, grid_y = np.meshgrid(xs, ys)
        vertices = np.column_stack(
            [grid_x.ravel(), grid_y.ravel(), np.zeros(grid_x.size)]
        ).astype(np.float64)

        faces: List[Tuple[int, int, int]] = []
        for row in range(n):
            for col in range(n):
                a = row * (n + 1) + col
                b = a + 1
                c = a + (n + 1)
                d = c + 1
                faces.append((a, b, d))
                faces.append((a, d, c))
        return vertices, np.array(faces, dtype=np.int32)


@dataclass
class Pyramid(Geometry):
    """Square-based pyramid, base on ``y = 0`` and apex at ``+height``."""

    width: float
    height: float
    length: float
    material: Material = field(default_factory=Material)

    def mesh(self, subdivisions: int = 1) -> Tuple[np.ndarray, np.ndarray]:
        hx, hz = self.width / 2.0, self.length / 2.0
        vertices = np.array(
            [
                [-hx, 0.0, -hz],
                [hx, 0.0, -hz],
                [hx, 0.0, hz],
                [-hx, 0.0, hz],
                [0.0, self.height, 0.0],
            ],
            dtype=np.float64,
        )
        faces = np.array(
            [[0, 1, 2], [0, 2, 3], [0, 4, 1], [1, 4, 2], [2, 4, 3], [3, 4, 0]],
            dtype=np.int32,
        )
        return vertices, faces


@dataclass
class Camera:
    """Point of view attached to a node."""

    field_of_view: float = 60.0
    z_near: float = 0.01
    z_far: float = 100.0


class SceneNode:
    """A node with a local transform, an optional shape and child nodes.

    The world transform is ``parent_world @ transform @ inverse(pivot)``.
    """

    def __init__(
        self,
        geometry: Optional[Geometry] = None,
        *,
        name: str = "",
        position: Optional[Vector3] = None,
    ) -> None:
        self.name = name
        self.geometry = geometry
        self.transform: Matrix4 = identity()
        self.pivot: Matrix4 = identity()
        self.opacity = 1.0
        self.hidden = False
        self.camera: Optional[Camera] = None
        self.parent: Optional[SceneNode] = None
        self.children: List[SceneNode] = []
        if position is not None:
            self.position = position

    def __repr__(self) -> str:
        shape = type(self.geometry).__name__ if self.geometry is not None else None
        return f"SceneNode(name={self.name!r}, geometry={shape}, position={self.position})"

    @property
    def position(self) -> Vector3:
        return translation_vector(self.transform)

    @position.setter
    def position(self, value: Vector3) -> None:
        self.transform[:3, 3] = np.asarray(value, dtype=np.float64)[:3]

    @property
    def euler_angles(self) -> Vector3:
        return euler_angles(self.transform)

    @euler_angles.setter
    def euler_angles(self, value: Vector3) -> None:
        pitch, yaw, roll = (float(v) for v in value)
        self.transform[:3, :3] = euler_rotation(pitch, yaw, roll)[:3, :3]

    def add_child(self, child: "SceneNode") -> "SceneNode":
        if child.parent is not None:
            child.parent.children.remove(child)
        child.parent = self
        self.children.append(child)
        return child

    def world_transform(self) -> Matrix4:
        local = self.transform @ safe_inverse(self.pivot)
        if self.parent is None:
            return local
        return self.parent.world_transform() @ local

    def effective_opacity(self) -> float:
        opacity = self.opacity
        node = self.parent
        while node is not None:
            opacity *= node.opacity
            node = node.parent
        return opacity

    def is_visible(self) -> bool:
        node: Optional[SceneNode] = self
        while node is not None:
            if node.hidden:
                return False
            node = node.parent
        return True

    def iter_nodes(self) -> Iterator["SceneNode"]:
        yield self
        for child in self.children:
            yield from child.iter_nodes()


class Scene:
    """A scene graph rooted at :attr:`root_node`."""

    def __init__(self) -> None:
        self.root_node = SceneNode(name="root")

    def iter_nodes(self) -> Iterator[SceneNode]:
        return self.root_node.iter_nodes()

    def find(self, name: str) -> Optional[SceneNode]:
        for node in self.iter_nodes():
            if node.name == name:
                return node
        return None

    def camera_node(self) -> Optional[SceneNode]:
        for node in self.iter_nodes():
            if node.camera is not None:
                return node
        return None


class RenderSurface(Protocol):
    def set_scene(self, scene: Scene) -> None:
        """Replace the displayed scene with ``scene`` in one step."""
        ...


class InMemorySurface:
    """Render surface that only keeps the most recent scene."""

    def __init__(self) -> None:
        self.scene: Optional[Scene] = None
        self.replacements = 0

    def set_scene(self, scene: Scene) -> None:
        self.scene = scene
        self.replacements += 1


__all__ = [
    "RGBA",
    "GRAY",
    "BLACK",
    "Material",
    "Geometry",
    "Box",
    "Plane",
    "Pyramid",
    "Camera",
    "SceneNode",
    "Scene",
    "RenderSurface",
    "InMemorySurface",
]
