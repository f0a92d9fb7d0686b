import numpy as np
import pytest

pytest.importorskip("mediapipe")
cv2 = pytest.importorskip("cv2")

from lib_pose3d.data import JointName  # noqa: E402
from lib_pose3d.detect import estimate_camera_pose, synthesize_joints  # noqa: E402


def test_synthesized_joints_cover_the_skeleton():
    landmarks = np.arange(33 * 3, dtype=np.float64).reshape(33, 3)
    joints = synthesize_joints(landmarks)

    assert set(joints) == set(JointName)
    np.testing.assert_allclose(joints[JointName.ROOT], (landmarks[23] + landmarks[24]) / 2)
    np.testing.assert_allclose(
        joints[JointName.SPINE],
        (joints[JointName.ROOT] + joints[JointName.CENTER_SHOULDER]) / 2,
    )
    np.testing.assert_allclose(joints[JointName.LEFT_WRIST], landmarks[15])


def test_top_of_head_extends_past_center_head():
    landmarks = np.zeros((33, 2))
    landmarks[[11, 12]] = (0.5, 0.6)
    landmarks[[7, 8]] = (0.5, 0.8)

    joints = synthesize_joints(landmarks)

    np.testing.assert_allclose(joints[JointName.TOP_HEAD], (0.5, 0.9))


def test_camera_pose_is_recovered_in_y_up_frame():
    world = np.array(
        [
            [0.0, 0.0, 0.0],
            [0.3, 0.0, 0.1],
            [-0.3, 0.1, -0.1],
            [0.0, -0.5, 0.2],
            [0.2, 0.4, -0.2],
            [-0.2, -0.3, 0.15],
            [0.1, 0.2, 0.3],
            [-0.1, 0.5, -0.05],
        ]
    )
    size = (640, 480)
    focal = 640.0
    camera_matrix = np.array([[focal, 0, 320.0], [0, focal, 240.0], [0, 0, 1.0]])
    projected, _ = cv2.projectPoints(
        world, np.zeros(3), np.array([0.0, 0.0, 3.0]), camera_matrix, np.zeros(4)
    )

    pose = estimate_camera_pose(world, projected.reshape(-1, 2), size)

    np.testing.assert_allclose(pose[:3, :3], np.eye(3), atol=1e-4)
    np.testing.assert_allclose(pose[:3, 3], (0.0, 0.0, 3.0), atol=1e-3)
