import math

import numpy as np

from lib_pose3d.transforms import (
    euler_angles,
    euler_rotation,
    identity,
    rotation_only,
    rotation_x,
    rotation_y,
    rotation_z,
    safe_inverse,
    transform_points,
    translation,
    translation_vector,
)


def test_rotation_x_turns_y_onto_z():
    point = rotation_x(math.pi / 2) @ np.array([0.0, 1.0, 0.0, 1.0])
    np.testing.assert_allclose(point, (0.0, 0.0, 1.0, 1.0), atol=1e-12)


def test_rotation_z_turns_x_onto_y():
    point = rotation_z(math.pi / 2) @ np.array([1.0, 0.0, 0.0, 1.0])
    np.testing.assert_allclose(point, (0.0, 1.0, 0.0, 1.0), atol=1e-12)


def test_euler_rotation_applies_roll_then_yaw_then_pitch():
    pitch, yaw, roll = 0.3, -0.7, 1.1
    expected = rotation_x(pitch) @ rotation_y(yaw) @ rotation_z(roll)
    np.testing.assert_allclose(euler_rotation(pitch, yaw, roll), expected, atol=1e-12)
    np.testing.assert_allclose(
        euler_angles(euler_rotation(pitch, yaw, roll)), (pitch, yaw, roll), atol=1e-9
    )


def test_rotation_only_drops_translation():
    pose = rotation_y(0.4) @ translation((1.0, 2.0, 3.0))
    stripped = rotation_only(pose)

    np.testing.assert_allclose(translation_vector(stripped), (0.0, 0.0, 0.0))
    np.testing.assert_allclose(stripped[:3, :3], pose[:3, :3])
    np.testing.assert_allclose(
        translation_vector(pose), rotation_y(0.4)[:3, :3] @ np.array([1.0, 2.0, 3.0])
    )


def test_singular_inverse_falls_back_to_identity():
    np.testing.assert_allclose(safe_inverse(np.zeros((4, 4))), identity())


def test_transform_points():
    points = transform_points(translation((0.0, 1.0, 0.0)), np.zeros((2, 3)))
    np.testing.assert_allclose(points, [[0.0, 1.0, 0.0], [0.0, 1.0, 0.0]])
