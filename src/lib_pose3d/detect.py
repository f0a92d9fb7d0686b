"""MediaPipe を用いた 3D 姿勢検出。

MediaPipe Pose の 33 ランドマークを :class:`~lib_pose3d.data.JointName` の
17 関節に変換し、カメラ姿勢を solvePnP で推定して Observation を返す。
"""

from __future__ import annotations

import logging
from typing import Dict, Optional, Tuple

import cv2
import numpy as np
from mediapipe import Image, ImageFormat
from mediapipe.tasks.python.core.base_options import BaseOptions
from mediapipe.tasks.python.vision.core.vision_task_running_mode import (
    VisionTaskRunningMode as RunningMode,
)
from mediapipe.tasks.python.vision.pose_landmarker import (
    PoseLandmarker,
    PoseLandmarkerOptions,
    PoseLandmarkerResult,
)

from .data import KINEMATIC_TREE, JointName, Observation, RecognizedPoint
from .errors import DetectionError, DetectionFailure
from .transforms import Matrix4, identity, translation

logger = logging.getLogger(__name__)

# Mediapipe Pose のランドマーク番号
_LEFT_EAR = 7
_RIGHT_EAR = 8
_LEFT_SHOULDER = 11
_RIGHT_SHOULDER = 12
_LEFT_ELBOW = 13
_RIGHT_ELBOW = 14
_LEFT_WRIST = 15
_RIGHT_WRIST = 16
_LEFT_HIP = 23
_RIGHT_HIP = 24
_LEFT_KNEE = 25
_RIGHT_KNEE = 26
_LEFT_ANKLE = 27
_RIGHT_ANKLE = 28

_DIRECT_JOINTS: Dict[JointName, int] = {
    JointName.LEFT_SHOULDER: _LEFT_SHOULDER,
    JointName.RIGHT_SHOULDER: _RIGHT_SHOULDER,
    JointName.LEFT_ELBOW: _LEFT_ELBOW,
    JointName.RIGHT_ELBOW: _RIGHT_ELBOW,
    JointName.LEFT_WRIST: _LEFT_WRIST,
    JointName.RIGHT_WRIST: _RIGHT_WRIST,
    JointName.LEFT_HIP: _LEFT_HIP,
    JointName.RIGHT_HIP: _RIGHT_HIP,
    JointName.LEFT_KNEE: _LEFT_KNEE,
    JointName.RIGHT_KNEE: _RIGHT_KNEE,
    JointName.LEFT_ANKLE: _LEFT_ANKLE,
    JointName.RIGHT_ANKLE: _RIGHT_ANKLE,
}

# topHead は centerShoulder -> centerHead の延長上に置く
_TOP_HEAD_EXTENSION = 0.5

# MediaPipe / OpenCV (y 下向き, z 奥向き) から y 上向き右手系への変換
_FLIP_YZ = np.diag([1.0, -1.0, -1.0, 1.0])


def synthesize_joints(landmarks: np.ndarray) -> Dict[JointName, np.ndarray]:
    """(33, k) 配列のランドマークから 17 関節の座標を作る。"""

    joints = {joint: landmarks[index] for joint, index in _DIRECT_JOINTS.items()}
    root = (landmarks[_LEFT_HIP] + landmarks[_RIGHT_HIP]) / 2.0
    center_shoulder = (landmarks[_LEFT_SHOULDER] + landmarks[_RIGHT_SHOULDER]) / 2.0
    center_head = (landmarks[_LEFT_EAR] + landmarks[_RIGHT_EAR]) / 2.0
    joints[JointName.ROOT] = root
    joints[JointName.CENTER_SHOULDER] = center_shoulder
    joints[JointName.SPINE] = (root + center_shoulder) / 2.0
    joints[JointName.CENTER_HEAD] = center_head
    joints[JointName.TOP_HEAD] = center_head + _TOP_HEAD_EXTENSION * (
        center_head - center_shoulder
    )
    return joints


def estimate_camera_pose(
    world: np.ndarray, image_px: np.ndarray, image_size: Tuple[int, int]
) -> Matrix4:
    """カメラの被写体に対する姿勢を solvePnP で推定する。

    world は MediaPipe のワールド座標 (N, 3)、image_px はピクセル座標 (N, 2)。
    焦点距離は画像の長辺とみなす。失敗時は単位行列を返す。
    """

    width, height = image_size
    focal = float(max(width, height))
    camera_matrix = np.array(
        [[focal, 0.0, width / 2.0], [0.0, focal, height / 2.0], [0.0, 0.0, 1.0]],
        dtype=np.float64,
    )
    try:
        ok, rvec, tvec = cv2.solvePnP(
            world.astype(np.float64),
            image_px.astype(np.float64),
            camera_matrix,
            np.zeros(4),
            flags=cv2.SOLVEPNP_ITERATIVE,
        )
    except cv2.error as exc:
        logger.warning("solvePnP failed: %s", exc)
        return identity()
    if not ok:
        logger.warning("solvePnP did not converge; using identity camera pose.")
        return identity()

    rotation, _ = cv2.Rodrigues(rvec)
    world_to_camera = identity()
    world_to_camera[:3, :3] = rotation
    world_to_camera[:3, 3] = tvec.ravel()
    camera_to_world = np.linalg.inv(world_to_camera)
    return _FLIP_YZ @ camera_to_world @ _FLIP_YZ


def _landmarks_to_observation(
    result: "PoseLandmarkerResult", image_size: Tuple[int, int]
) -> Observation:
    width, height = image_size
    normalized = np.array(
        [(lm.x, lm.y) for lm in result.pose_landmarks[0]], dtype=np.float64
    )
    world = np.array(
        [(lm.x, lm.y, lm.z) for lm in result.pose_world_landmarks[0]], dtype=np.float64
    )

    # y 上向きへ
    world_up = world * np.array([1.0, -1.0, -1.0])
    positions = synthesize_joints(world_up)
    image_points_raw = synthesize_joints(normalized)

    points: Dict[JointName, RecognizedPoint] = {}
    for joint, position in positions.items():
        parent = KINEMATIC_TREE[joint]
        local = position if parent is None else position - positions[parent]
        points[joint] = RecognizedPoint(
            position=translation(position), local_position=translation(local)
        )

    # 画像座標は左下原点
    image_points = {
        joint: (float(x), float(1.0 - y)) for joint, (x, y) in image_points_raw.items()
    }

    camera = estimate_camera_pose(
        world, normalized * np.array([width, height], dtype=np.float64), image_size
    )
    return Observation(points=points, image_points=image_points, camera_origin_matrix=camera)


class PoseEstimator3D:
    """長寿命の MediaPipe PoseLandmarker ラッパー。

    with 文で使用でき、`detect(image_rgb)` を呼ぶと Observation を返す。
    人物が検出できなければ DetectionError を送出する。
    """

    def __init__(
        self,
        model_asset_path: str = "pose_landmarker_full.task",
        min_detection_confidence: float = 0.5,
        min_presence_confidence: float = 0.5,
    ):
        base_options = BaseOptions(model_asset_path=model_asset_path)
        options = PoseLandmarkerOptions(
            base_options=base_options,
            running_mode=RunningMode.IMAGE,
            min_pose_detection_confidence=min_detection_confidence,
            min_pose_presence_confidence=min_presence_confidence,
            output_segmentation_masks=False,
        )
        self._detector: Optional[PoseLandmarker] = PoseLandmarker.create_from_options(
            options
        )
        logger.info("PoseEstimator3D initialized with model %s", model_asset_path)

    def detect(self, image_rgb: np.ndarray) -> Observation:
        """RGB 画像から Observation を推定する。"""
        if self._detector is None:
            raise DetectionError(DetectionFailure.ENGINE_ERROR, "estimator is closed")

        height, width = image_rgb.shape[:2]
        mp_image = Image(image_format=ImageFormat.SRGB, data=np.ascontiguousarray(image_rgb))
        result = self._detector.detect(mp_image)
        if not result.pose_landmarks or not result.pose_world_landmarks:
            raise DetectionError(DetectionFailure.ENGINE_ERROR, "no person detected")
        return _landmarks_to_observation(result, (width, height))

    def close(self) -> None:
        if self._detector is not None:
            self._detector.close()
            self._detector = None

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb):
        self.close()


__all__ = ["PoseEstimator3D", "synthesize_joints", "estimate_camera_pose"]
