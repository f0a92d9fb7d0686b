import numpy as np
import pytest

from lib_pose3d.data import (
    BONE_ORDER,
    KINEMATIC_TREE,
    ROOT_JOINT,
    JointName,
    Observation,
    RecognizedPoint,
    parent_chain,
    validate_kinematic_tree,
)
from lib_pose3d.errors import KinematicTreeError, MissingJointError
from lib_pose3d.transforms import translation

from conftest import make_observation


def test_builtin_tree_is_rooted_at_root():
    assert validate_kinematic_tree(KINEMATIC_TREE) is JointName.ROOT
    assert ROOT_JOINT is JointName.ROOT
    assert set(KINEMATIC_TREE) == set(JointName)


def test_every_joint_reaches_root():
    for joint in JointName:
        chain = parent_chain(joint)
        assert chain[0] is joint
        assert chain[-1] is JointName.ROOT
        assert len(chain) <= len(KINEMATIC_TREE)


def test_cycle_is_rejected():
    tree = {
        JointName.ROOT: None,
        JointName.SPINE: JointName.CENTER_SHOULDER,
        JointName.CENTER_SHOULDER: JointName.SPINE,
    }
    with pytest.raises(KinematicTreeError):
        validate_kinematic_tree(tree)


def test_second_root_is_rejected():
    tree = {JointName.ROOT: None, JointName.SPINE: None}
    with pytest.raises(KinematicTreeError):
        validate_kinematic_tree(tree)


def test_parent_outside_tree_is_rejected():
    tree = {JointName.ROOT: None, JointName.SPINE: JointName.CENTER_HEAD}
    with pytest.raises(KinematicTreeError):
        validate_kinematic_tree(tree)


def test_bone_order_connects_children_before_parents():
    for index, joint in enumerate(BONE_ORDER):
        parent = KINEMATIC_TREE[joint]
        assert parent not in BONE_ORDER[:index]


def test_missing_joint_raises(torso_observation):
    with pytest.raises(MissingJointError) as excinfo:
        torso_observation.recognized_point(JointName.LEFT_WRIST)
    assert excinfo.value.joint is JointName.LEFT_WRIST
    with pytest.raises(KeyError):
        torso_observation.point_in_image(JointName.TOP_HEAD)


def test_parent_lookup(torso_observation):
    assert torso_observation.parent_joint_name(JointName.ROOT) is None
    assert torso_observation.parent_joint_name(JointName.SPINE) is JointName.ROOT


def test_default_tree_is_the_builtin_skeleton():
    obs = Observation(
        points={JointName.ROOT: RecognizedPoint(translation((0, 0, 0)))},
        image_points={},
    )

    assert obs.tree is KINEMATIC_TREE
    assert obs.parent_joint_name(JointName.LEFT_WRIST) is JointName.LEFT_ELBOW


def test_image_points_must_belong_to_detected_joints():
    with pytest.raises(ValueError):
        Observation(
            points={JointName.ROOT: RecognizedPoint(translation((0, 0, 0)))},
            image_points={JointName.SPINE: (0.5, 0.5)},
        )


def test_camera_matrix_must_be_4x4():
    with pytest.raises(ValueError):
        Observation(points={}, image_points={}, camera_origin_matrix=np.eye(3))


def test_dict_form_keeps_joints_and_camera(torso_observation):
    restored = Observation.from_dict(torso_observation.to_dict())

    assert restored.available_joint_names == torso_observation.available_joint_names
    np.testing.assert_allclose(
        restored.camera_origin_matrix, torso_observation.camera_origin_matrix
    )
    np.testing.assert_allclose(
        restored.recognized_point(JointName.SPINE).local_translation, (0.0, 0.25, 0.0)
    )
    assert restored.point_in_image(JointName.CENTER_SHOULDER) == pytest.approx((0.5, 0.6))


def test_local_translation_defaults_to_offset_from_parent():
    obs = make_observation(
        {JointName.ROOT: (1.0, 0.0, 0.0), JointName.LEFT_HIP: (1.5, 0.0, 0.0)}
    )
    np.testing.assert_allclose(
        obs.recognized_point(JointName.LEFT_HIP).local_translation, (0.5, 0.0, 0.0)
    )
