"""Joint alphabet, kinematic tree and the per-image observation."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Iterator, List, Mapping, Optional, Tuple

import numpy as np

from .errors import KinematicTreeError, MissingJointError
from .transforms import Matrix4, Vector3, as_matrix4, identity, translation_vector


class JointName(str, Enum):
    TOP_HEAD = "topHead"
    CENTER_HEAD = "centerHead"
    CENTER_SHOULDER = "centerShoulder"
    LEFT_SHOULDER = "leftShoulder"
    RIGHT_SHOULDER = "rightShoulder"
    LEFT_ELBOW = "leftElbow"
    RIGHT_ELBOW = "rightElbow"
    LEFT_WRIST = "leftWrist"
    RIGHT_WRIST = "rightWrist"
    SPINE = "spine"
    ROOT = "root"
    LEFT_HIP = "leftHip"
    RIGHT_HIP = "rightHip"
    LEFT_KNEE = "leftKnee"
    RIGHT_KNEE = "rightKnee"
    LEFT_ANKLE = "leftAnkle"
    RIGHT_ANKLE = "rightAnkle"

    def __str__(self) -> str:
        return self.value


KinematicTree = Mapping[JointName, Optional[JointName]]

# 関節 -> 親関節
KINEMATIC_TREE: Dict[JointName, Optional[JointName]] = {
    JointName.ROOT: None,
    JointName.SPINE: JointName.ROOT,
    JointName.CENTER_SHOULDER: JointName.SPINE,
    JointName.CENTER_HEAD: JointName.CENTER_SHOULDER,
    JointName.TOP_HEAD: JointName.CENTER_HEAD,
    JointName.LEFT_SHOULDER: JointName.CENTER_SHOULDER,
    JointName.LEFT_ELBOW: JointName.LEFT_SHOULDER,
    JointName.LEFT_WRIST: JointName.LEFT_ELBOW,
    JointName.RIGHT_SHOULDER: JointName.CENTER_SHOULDER,
    JointName.RIGHT_ELBOW: JointName.RIGHT_SHOULDER,
    JointName.RIGHT_WRIST: JointName.RIGHT_ELBOW,
    JointName.LEFT_HIP: JointName.ROOT,
    JointName.LEFT_KNEE: JointName.LEFT_HIP,
    JointName.LEFT_ANKLE: JointName.LEFT_KNEE,
    JointName.RIGHT_HIP: JointName.ROOT,
    JointName.RIGHT_KNEE: JointName.RIGHT_HIP,
    JointName.RIGHT_ANKLE: JointName.RIGHT_KNEE,
}

# Bones are connected in this order. A joint node is moved onto its bone
# midpoint once connected, so children must come before their parents.
BONE_ORDER: Tuple[JointName, ...] = (
    JointName.LEFT_WRIST,
    JointName.LEFT_ELBOW,
    JointName.LEFT_SHOULDER,
    JointName.RIGHT_WRIST,
    JointName.RIGHT_ELBOW,
    JointName.RIGHT_SHOULDER,
    JointName.CENTER_SHOULDER,
    JointName.SPINE,
    JointName.RIGHT_ANKLE,
    JointName.RIGHT_KNEE,
    JointName.RIGHT_HIP,
    JointName.LEFT_ANKLE,
    JointName.LEFT_KNEE,
    JointName.LEFT_HIP,
)


def validate_kinematic_tree(tree: KinematicTree) -> JointName:
    """Check that ``tree`` has exactly one root and no cycles.

    Returns the root joint. Raises :class:`KinematicTreeError` otherwise.
    """

    roots = [joint for joint, parent in tree.items() if parent is None]
    if len(roots) != 1:
        raise KinematicTreeError(f"Expected a single root joint, found {roots}.")

    for joint, parent in tree.items():
        if parent is not None and parent not in tree:
            raise KinematicTreeError(f"Parent {parent} of {joint} is not in the tree.")

    for joint in tree:
        seen = {joint}
        current = tree[joint]
        while current is not None:
            if current in seen:
                raise KinematicTreeError(f"Cycle through joint {current}.")
            seen.add(current)
            current = tree[current]
    return roots[0]


def parent_chain(joint: JointName, tree: KinematicTree = KINEMATIC_TREE) -> List[JointName]:
    """Joints visited walking from ``joint`` up to the root (both included)."""

    chain = [joint]
    parent = tree[joint]
    while parent is not None:
        if len(chain) > len(tree):
            raise KinematicTreeError(f"Parent chain of {joint} does not terminate.")
        chain.append(parent)
        parent = tree[parent]
    return chain


ROOT_JOINT = validate_kinematic_tree(KINEMATIC_TREE)


@dataclass(frozen=True, eq=False)
class RecognizedPoint:
    """A detected joint.

    attributes:
            position: 4x4 transform of the joint in skeleton (model) space.
            local_position: 4x4 transform of the joint relative to its parent.
    """

    position: Matrix4
    local_position: Matrix4 = field(default_factory=identity)

    def __post_init__(self) -> None:
        object.__setattr__(self, "position", as_matrix4(self.position))
        object.__setattr__(self, "local_position", as_matrix4(self.local_position))

    @property
    def translation(self) -> Vector3:
        return translation_vector(self.position)

    @property
    def local_translation(self) -> Vector3:
        return translation_vector(self.local_position)


@dataclass(frozen=True, eq=False)
class Observation:
    """One detection result: 3D joints, their 2D projections and the camera pose.

    attributes:
            points: recognized joints keyed by :class:`JointName`.
            image_points: normalized ``(x, y)`` image coordinates in ``[0, 1]``,
                    origin at the lower-left corner with y pointing up.
            camera_origin_matrix: 4x4 pose of the camera relative to the subject.
            tree: parent-of relation used by :meth:`parent_joint_name`.
    """

    points: Mapping[JointName, RecognizedPoint]
    image_points: Mapping[JointName, Tuple[float, float]]
    camera_origin_matrix: Matrix4 = field(default_factory=identity)
    tree: KinematicTree = field(default_factory=lambda: KINEMATIC_TREE, repr=False)

    def __post_init__(self) -> None:
        object.__setattr__(self, "points", dict(self.points))
        object.__setattr__(
            self,
            "image_points",
            {joint: (float(x), float(y)) for joint, (x, y) in self.image_points.items()},
        )
        object.__setattr__(
            self, "camera_origin_matrix", as_matrix4(self.camera_origin_matrix)
        )
        extra = set(self.image_points) - set(self.points)
        if extra:
            names = sorted(str(joint) for joint in extra)
            raise ValueError(f"Image points given for undetected joints: {names}.")

    @property
    def available_joint_names(self) -> List[JointName]:
        return list(self.points.keys())

    def recognized_point(self, joint: JointName) -> RecognizedPoint:
        try:
            return self.points[joint]
        except KeyError:
            raise MissingJointError(joint) from None

    def point_in_image(self, joint: JointName) -> Tuple[float, float]:
        try:
            return self.image_points[joint]
        except KeyError:
            raise MissingJointError(joint, "image point") from None

    def parent_joint_name(self, joint: JointName) -> Optional[JointName]:
        return self.tree.get(joint)

    def __iter__(self) -> Iterator[JointName]:
        return iter(self.points)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "joints": {
                joint.value: {
                    "position": point.position.tolist(),
                    "local_position": point.local_position.tolist(),
                    **(
                        {"image_point": list(self.image_points[joint])}
                        if joint in self.image_points
                        else {}
                    ),
                }
                for joint, point in self.points.items()
            },
            "camera_origin_matrix": self.camera_origin_matrix.tolist(),
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "Observation":
        points: Dict[JointName, RecognizedPoint] = {}
        image_points: Dict[JointName, Tuple[float, float]] = {}
        for name, entry in data.get("joints", {}).items():
            joint = JointName(name)
            points[joint] = RecognizedPoint(
                position=np.asarray(entry["position"], dtype=np.float64),
                local_position=np.asarray(
                    entry.get("local_position", identity()), dtype=np.float64
                ),
            )
            if "image_point" in entry:
                x, y = entry["image_point"]
                image_points[joint] = (float(x), float(y))
        camera = data.get("camera_origin_matrix")
        return cls(
            points=points,
            image_points=image_points,
            camera_origin_matrix=identity() if camera is None else camera,
        )


__all__ = [
    "JointName",
    "KinematicTree",
    "KINEMATIC_TREE",
    "BONE_ORDER",
    "ROOT_JOINT",
    "validate_kinematic_tree",
    "parent_chain",
    "RecognizedPoint",
    "Observation",
]
