from .compose import ComposedScene, SkeletonSceneController, compose_scene
from .config import RenderConfig, load_render_config
from .data import (
    BONE_ORDER,
    KINEMATIC_TREE,
    JointName,
    Observation,
    RecognizedPoint,
    parent_chain,
    validate_kinematic_tree,
)
from .errors import (
    DetectionError,
    DetectionFailure,
    KinematicTreeError,
    MissingJointError,
    Pose3DError,
)
from .renderer import (
    BoneSegment,
    BoneTransform,
    CameraMode,
    build_camera_node,
    build_image_plane,
    build_joint_nodes,
    compute_bone_transform,
    compute_root_offset,
    estimate_scale,
)
from .scene import InMemorySurface, Scene, SceneNode
from .session import DetectionSession, PoseDetector


# pyglet / mediapipe / matplotlib are only imported when asked for
def __getattr__(name):
    if name == "PoseEstimator3D":
        from .detect import PoseEstimator3D

        return PoseEstimator3D
    elif name == "PygletSceneSurface":
        from .util_3d import PygletSceneSurface

        return PygletSceneSurface
    elif name == "MatplotlibSnapshotSurface":
        from .util_plot import MatplotlibSnapshotSurface

        return MatplotlibSnapshotSurface
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")


__all__ = [
    "JointName",
    "KINEMATIC_TREE",
    "BONE_ORDER",
    "RecognizedPoint",
    "Observation",
    "parent_chain",
    "validate_kinematic_tree",
    "Pose3DError",
    "KinematicTreeError",
    "MissingJointError",
    "DetectionError",
    "DetectionFailure",
    "RenderConfig",
    "load_render_config",
    "CameraMode",
    "BoneTransform",
    "BoneSegment",
    "estimate_scale",
    "compute_root_offset",
    "build_image_plane",
    "build_joint_nodes",
    "compute_bone_transform",
    "build_camera_node",
    "Scene",
    "SceneNode",
    "InMemorySurface",
    "ComposedScene",
    "compose_scene",
    "SkeletonSceneController",
    "DetectionSession",
    "PoseDetector",
    "PoseEstimator3D",
    "PygletSceneSurface",
    "MatplotlibSnapshotSurface",
]
