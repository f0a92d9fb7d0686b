"""Assemble the full skeleton scene for one observation."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional, Tuple, Union

import numpy as np

from .config import RenderConfig
from .data import BONE_ORDER, JointName, Observation
from .image import load_oriented_image
from .renderer import (
    BoneSegment,
    CameraMode,
    JointNodeMap,
    apply_head_box,
    build_camera_node,
    build_image_plane,
    build_joint_nodes,
    compute_root_offset,
    connect_node_to_parent,
    estimate_scale,
    resize_image_plane,
)
from .scene import RenderSurface, Scene, SceneNode

logger = logging.getLogger(__name__)

ImageSource = Union[str, Path, np.ndarray]


@dataclass
class ComposedScene:
    """A freshly built scene plus the pieces it was built from.

    attributes:
            scene: the scene graph handed to the render surface.
            joint_nodes: node per detected joint (bones reuse their joint's node).
            bones: connected bones in traversal order.
            image_node: the image plane, or ``None`` without a source image.
            image_size: effective (width, height) of the plane after scaling.
            scale: proportion between skeleton and image distances.
            root_offset: root joint position on the plane relative to its center.
            camera_node: camera or camera indicator node.
            head_node: the box that replaced the head bone, if drawn.
    """

    scene: Scene
    joint_nodes: JointNodeMap = field(default_factory=dict)
    bones: List[BoneSegment] = field(default_factory=list)
    image_node: Optional[SceneNode] = None
    image_size: Optional[Tuple[float, float]] = None
    scale: float = 1.0
    root_offset: Tuple[float, float] = (0.0, 0.0)
    camera_node: Optional[SceneNode] = None
    head_node: Optional[SceneNode] = None


def _resolve_image(source: ImageSource) -> Optional[np.ndarray]:
    if isinstance(source, np.ndarray):
        return source
    return load_oriented_image(source)


def compose_scene(
    observation: Optional[Observation],
    image_source: Optional[ImageSource] = None,
    *,
    camera_mode: CameraMode = CameraMode.INDICATOR,
    config: RenderConfig = RenderConfig(),
) -> ComposedScene:
    """Build a new scene for ``observation``.

    Without an observation the scene is empty. Without an image source the
    image plane is left out; an image that fails to load yields an
    untextured plane.
    """

    scene = Scene()
    if observation is None:
        logger.debug("No observation; composing an empty scene.")
        return ComposedScene(scene=scene)

    result = ComposedScene(scene=scene)
    plane_size = config.image_node_size

    if image_source is not None:
        image = _resolve_image(image_source)
        result.image_node, plane_size = build_image_plane(image, observation, config)
        scene.root_node.add_child(result.image_node)

    joint_nodes = build_joint_nodes(observation, config)
    joint_a, joint_b = config.reference_joints
    result.scale = estimate_scale(
        observation,
        joint_nodes,
        plane_size,
        joint_a,
        joint_b,
        epsilon=config.scale_epsilon,
    )
    plane_size = (plane_size[0] * result.scale, plane_size[1] * result.scale)

    result.root_offset = compute_root_offset(observation, plane_size)
    if result.image_node is not None:
        resize_image_plane(result.image_node, plane_size)
        position = result.image_node.position
        result.image_node.position = (
            position[0] - result.root_offset[0],
            position[1] - result.root_offset[1],
            position[2],
        )
        result.image_size = plane_size

    body_anchor = SceneNode(name="body_anchor", position=np.zeros(3))
    scene.root_node.add_child(body_anchor)
    for node in joint_nodes.values():
        body_anchor.add_child(node)
    result.joint_nodes = joint_nodes

    result.head_node = apply_head_box(joint_nodes, config)

    for joint in BONE_ORDER:
        bone = connect_node_to_parent(joint, observation, joint_nodes, config)
        if bone is not None:
            result.bones.append(bone)

    result.camera_node = build_camera_node(observation, camera_mode, config)
    scene.root_node.add_child(result.camera_node)

    logger.debug(
        "Composed scene: %d joints, %d bones, scale %.3f.",
        len(joint_nodes),
        len(result.bones),
        result.scale,
    )
    return result


class SkeletonSceneController:
    """Rebuilds the scene from the current observation and swaps it in.

    ``source`` is anything with ``observation`` and ``file_path`` attributes,
    normally a :class:`~lib_pose3d.session.DetectionSession`. When it has a
    ``snapshot()`` method both values are read through it in one step.
    """

    def __init__(
        self,
        source,
        surface: RenderSurface,
        config: RenderConfig = RenderConfig(),
    ) -> None:
        self.source = source
        self.surface = surface
        self.config = config
        self.show_camera = False

    @property
    def camera_mode(self) -> CameraMode:
        return CameraMode.LITERAL if self.show_camera else CameraMode.INDICATOR

    def toggle_camera_mode(self) -> ComposedScene:
        self.show_camera = not self.show_camera
        logger.info("Camera mode: %s", self.camera_mode.value)
        return self.update_scene()

    def _current_source(self):
        snapshot = getattr(self.source, "snapshot", None)
        if snapshot is not None:
            return snapshot()
        return self.source.observation, self.source.file_path

    def update_scene(self) -> ComposedScene:
        observation, file_path = self._current_source()
        composed = compose_scene(
            observation,
            file_path,
            camera_mode=self.camera_mode,
            config=self.config,
        )
        self.surface.set_scene(composed.scene)
        return composed


__all__ = ["ComposedScene", "compose_scene", "SkeletonSceneController"]
