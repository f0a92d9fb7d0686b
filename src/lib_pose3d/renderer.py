"""Scene nodes built from a :class:`~lib_pose3d.data.Observation`.

The image plane is sized by relating the distance between two known joints in
3D to the distance between their projections in the photo, then shifted so
the root joint lines up with its location in the picture.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from enum import Enum
from typing import Dict, Mapping, Optional, Tuple

import numpy as np

from .config import RenderConfig
from .data import JointName, Observation
from .errors import MissingJointError
from .image import image_size
from .scene import BLACK, GRAY, Box, Camera, Material, Plane, Pyramid, SceneNode
from .transforms import Matrix4, Vector3, rotation_only, rotation_x, safe_inverse

logger = logging.getLogger(__name__)

JointNodeMap = Dict[JointName, SceneNode]
Size = Tuple[float, float]

# Bone boxes are modelled along +y; pitch turns them onto the detector's axis.
BONE_PITCH = math.pi / 2


class CameraMode(str, Enum):
    LITERAL = "literal"
    INDICATOR = "indicator"


@dataclass(frozen=True, eq=False)
class BoneTransform:
    midpoint: Vector3
    length: float
    orientation: Vector3


@dataclass(frozen=True, eq=False)
class BoneSegment:
    """A bone drawn between ``joint`` and ``parent``."""

    joint: JointName
    parent: JointName
    node: SceneNode
    transform: BoneTransform


# ---------------------------------------------------------------------------
# Proportion estimator


def estimate_scale(
    observation: Observation,
    joint_nodes: Mapping[JointName, SceneNode],
    plane_size: Size,
    joint_a: JointName = JointName.CENTER_SHOULDER,
    joint_b: JointName = JointName.SPINE,
    *,
    epsilon: float = 1e-6,
) -> float:
    """Ratio between the skeleton's and the photo's distance of two joints.

    The node positions are divided by the plane width and height so the 3D
    distance is expressed relative to the plane. Returns 1.0 when either
    joint is missing or the image-space distance is too small to divide by.
    """

    node_a = joint_nodes.get(joint_a)
    node_b = joint_nodes.get(joint_b)
    if node_a is None or node_b is None:
        logger.debug("Reference joints %s/%s missing; keeping scale 1.0.", joint_a, joint_b)
        return 1.0

    width, height = plane_size
    pos_a = node_a.position
    pos_b = node_b.position
    distance_3d = math.hypot(
        pos_a[0] / width - pos_b[0] / width,
        pos_a[1] / height - pos_b[1] / height,
    )

    try:
        ax, ay = observation.point_in_image(joint_a)
        bx, by = observation.point_in_image(joint_b)
    except MissingJointError as exc:
        logger.warning("Unable to return point: %s.", exc)
        return 1.0

    distance_2d = math.hypot(ax - bx, ay - by)
    if not math.isfinite(distance_2d) or distance_2d < epsilon:
        logger.warning(
            "Image distance between %s and %s is degenerate (%g); keeping scale 1.0.",
            joint_a,
            joint_b,
            distance_2d,
        )
        return 1.0

    scale = distance_3d / distance_2d
    if not math.isfinite(scale) or scale <= epsilon:
        logger.warning("Scale %g would collapse the image plane; keeping scale 1.0.", scale)
        return 1.0
    return scale


def compute_root_offset(observation: Observation, plane_size: Size) -> Tuple[float, float]:
    """Position of the root joint on the image plane, relative to its center."""

    try:
        x, y = observation.point_in_image(JointName.ROOT)
    except MissingJointError as exc:
        logger.warning("Unable to return point: %s.", exc)
        return 0.0, 0.0

    width, height = plane_size
    # 画像スケールに変換してから中心を原点に戻す
    x_shift = x * width - width / 2.0
    y_shift = y * height - height / 2.0
    return x_shift, y_shift


# ---------------------------------------------------------------------------
# Image plane


def create_image_node(
    image: Optional[np.ndarray], size: Size, alpha: float
) -> SceneNode:
    """Plane of ``size`` at the origin, textured with ``image`` when given."""

    width, height = size
    material = Material(texture=image, double_sided=True)
    node = SceneNode(Plane(width=width, height=height, material=material), name="image")
    node.opacity = alpha
    return node


def build_image_plane(
    image: Optional[np.ndarray],
    observation: Observation,
    config: RenderConfig = RenderConfig(),
) -> Tuple[SceneNode, Size]:
    """Image plane facing the camera, plus the size it was built with.

    The width follows the photo's aspect ratio at the configured height. The
    plane takes the inverse of the camera's rotation, without its translation,
    so it faces the viewer the way the camera saw the subject. Without an
    image the plane keeps the configured size and has no texture.
    """

    base_width, base_height = config.image_node_size
    size: Size = (base_width, base_height)
    if image is not None:
        width_px, height_px = image_size(image)
        if width_px > 0 and height_px > 0:
            size = (base_height * width_px / height_px, base_height)
        else:
            logger.warning("Image has zero dimensions; drawing the plane untextured.")
            image = None
    else:
        logger.warning("No image loaded; drawing the plane untextured.")

    node = create_image_node(image, size, config.input_image_alpha)
    node.transform = safe_inverse(rotation_only(observation.camera_origin_matrix))
    return node, size


def resize_image_plane(node: SceneNode, size: Size) -> None:
    """Swap the plane geometry for one of ``size``, keeping its material."""

    material = node.geometry.material if node.geometry is not None else Material()
    material.double_sided = True
    node.geometry = Plane(width=size[0], height=size[1], material=material)


# ---------------------------------------------------------------------------
# Skeleton nodes


def _marker_geometry(config: RenderConfig) -> Box:
    size = config.joint_marker_size
    return Box(size, size, size, chamfer_radius=config.joint_marker_chamfer)


def build_joint_nodes(
    observation: Observation, config: RenderConfig = RenderConfig()
) -> JointNodeMap:
    """One cube marker per detected joint, placed at the joint's position."""

    nodes: JointNodeMap = {}
    for joint in observation.available_joint_names:
        try:
            position = observation.recognized_point(joint).translation
        except MissingJointError as exc:
            logger.warning("Unable to return point: %s.", exc)
            continue
        if not np.all(np.isfinite(position)):
            logger.warning("Joint %s has a non-finite position; skipping.", joint)
            continue
        nodes[joint] = SceneNode(_marker_geometry(config), name=joint.value, position=position)
    logger.debug("Created %d joint nodes.", len(nodes))
    return nodes


# ---------------------------------------------------------------------------
# Bones


def local_angle_to_parent(translation: Vector3) -> Vector3:
    """Euler angles ``(pitch, yaw, roll)`` for a bone from its local translation.

    pitch is fixed at pi/2, ``yaw = acos(t.z / |t|)`` and
    ``roll = atan2(t.y, t.x)``. These follow the detector's joint frame and
    are not derived from the bone's endpoints.
    """

    t = np.asarray(translation, dtype=np.float64)
    norm = float(np.linalg.norm(t))
    if norm > 0.0:
        yaw = math.acos(max(-1.0, min(1.0, t[2] / norm)))
    else:
        yaw = 0.0
    roll = math.atan2(t[1], t[0])
    return np.array([BONE_PITCH, yaw, roll], dtype=np.float64)


def calculate_local_angle_to_parent(observation: Observation, joint: JointName) -> Vector3:
    """Bone orientation of ``joint``; zeros when the joint was not detected."""

    try:
        point = observation.recognized_point(joint)
    except MissingJointError as exc:
        logger.warning("Unable to return point: %s.", exc)
        return np.zeros(3, dtype=np.float64)
    return local_angle_to_parent(point.local_translation)


def compute_bone_transform(
    child_position: Vector3,
    parent_position: Vector3,
    local_translation: Optional[Vector3] = None,
    *,
    epsilon: float = 1e-5,
) -> BoneTransform:
    """Midpoint, length and orientation of the bone from child to parent.

    Without ``local_translation`` the orientation is all zeros.
    """

    child = np.asarray(child_position, dtype=np.float64)
    parent = np.asarray(parent_position, dtype=np.float64)
    length = max(float(np.linalg.norm(parent - child)), epsilon)
    midpoint = (parent + child) / 2.0
    if local_translation is None:
        orientation = np.zeros(3, dtype=np.float64)
    else:
        orientation = local_angle_to_parent(local_translation)
    return BoneTransform(midpoint=midpoint, length=length, orientation=orientation)


def update_line_node(
    node: SceneNode, transform: BoneTransform, config: RenderConfig = RenderConfig()
) -> None:
    """Turn ``node`` into a thin box spanning the bone described by ``transform``."""

    node.geometry = Box(
        width=config.bone_width,
        height=transform.length,
        length=config.bone_width,
        chamfer_radius=config.joint_marker_chamfer,
        material=Material(color=GRAY),
    )
    node.position = transform.midpoint
    node.euler_angles = transform.orientation


def connect_node_to_parent(
    joint: JointName,
    observation: Observation,
    joint_nodes: Mapping[JointName, SceneNode],
    config: RenderConfig = RenderConfig(),
) -> Optional[BoneSegment]:
    """Draw the bone from ``joint`` to its parent using the current node positions.

    Returns ``None`` for the root or when either end was not detected.
    """

    parent = observation.parent_joint_name(joint)
    if parent is None:
        return None
    node = joint_nodes.get(joint)
    parent_node = joint_nodes.get(parent)
    if node is None or parent_node is None:
        logger.debug("Skipping bone %s -> %s: joint not detected.", joint, parent)
        return None

    transform = compute_bone_transform(
        node.position, parent_node.position, epsilon=config.length_epsilon
    )
    transform = BoneTransform(
        midpoint=transform.midpoint,
        length=transform.length,
        orientation=calculate_local_angle_to_parent(observation, joint),
    )
    update_line_node(node, transform, config)
    return BoneSegment(joint=joint, parent=parent, node=node, transform=transform)


def apply_head_box(
    joint_nodes: Mapping[JointName, SceneNode], config: RenderConfig = RenderConfig()
) -> Optional[SceneNode]:
    """Replace the head bone with one box from shoulder center to top of head.

    The ``centerHead`` node receives the box and the ``topHead`` marker is
    hidden. Nothing changes unless all three joints were detected.
    """

    top_head = joint_nodes.get(JointName.TOP_HEAD)
    center_head = joint_nodes.get(JointName.CENTER_HEAD)
    center_shoulder = joint_nodes.get(JointName.CENTER_SHOULDER)
    if top_head is None or center_head is None or center_shoulder is None:
        return None

    head_height = float(top_head.position[1] - center_shoulder.position[1])
    if head_height < config.length_epsilon:
        logger.warning("Head height %g is degenerate; clamping.", head_height)
        head_height = config.length_epsilon
    center_head.geometry = Box(
        width=config.head_width,
        height=head_height,
        length=config.head_width,
        chamfer_radius=config.head_chamfer,
        material=Material(color=GRAY),
    )
    top_head.hidden = True
    return center_head


# ---------------------------------------------------------------------------
# Camera


def camera_representation_pivot_transform(observation: Observation) -> Matrix4:
    # The pyramid's apex points down by default; rotate it back by 90 degrees.
    return rotation_x(-math.pi / 2) @ observation.camera_origin_matrix


def create_camera_node(observation: Observation) -> SceneNode:
    node = SceneNode(name="camera")
    node.camera = Camera()
    node.pivot = observation.camera_origin_matrix.copy()
    return node


def create_camera_pyramid_node(
    observation: Observation, config: RenderConfig = RenderConfig()
) -> SceneNode:
    width, height, length = config.camera_pyramid_size
    pyramid = Pyramid(width=width, height=height, length=length, material=Material(color=BLACK))
    node = SceneNode(pyramid, name="camera_indicator", position=np.zeros(3))
    node.opacity = config.camera_node_alpha
    node.pivot = camera_representation_pivot_transform(observation)
    return node


def build_camera_node(
    observation: Observation,
    mode: CameraMode = CameraMode.INDICATOR,
    config: RenderConfig = RenderConfig(),
) -> SceneNode:
    if CameraMode(mode) is CameraMode.LITERAL:
        return create_camera_node(observation)
    return create_camera_pyramid_node(observation, config)


__all__ = [
    "JointNodeMap",
    "CameraMode",
    "BoneTransform",
    "BoneSegment",
    "estimate_scale",
    "compute_root_offset",
    "create_image_node",
    "build_image_plane",
    "resize_image_plane",
    "build_joint_nodes",
    "local_angle_to_parent",
    "calculate_local_angle_to_parent",
    "compute_bone_transform",
    "update_line_node",
    "connect_node_to_parent",
    "apply_head_box",
    "camera_representation_pivot_transform",
    "create_camera_node",
    "create_camera_pyramid_node",
    "build_camera_node",
]
