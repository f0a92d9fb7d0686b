import pytest

from lib_pose3d.config import RenderConfig, config_from_mapping, load_render_config
from lib_pose3d.data import JointName


def test_defaults():
    config = RenderConfig()

    assert config.image_node_size == (1.8, 1.8)
    assert config.input_image_alpha == pytest.approx(0.85)
    assert config.camera_node_alpha == pytest.approx(0.6)
    assert config.camera_pyramid_size == (0.25, 0.25, 0.25)
    assert config.reference_joints == (JointName.CENTER_SHOULDER, JointName.SPINE)


def test_load_from_toml(tmp_path):
    path = tmp_path / "render.toml"
    path.write_text(
        "[render]\n"
        "image_node_size = [2.0, 1.0]\n"
        "input_image_alpha = 0.5\n"
        'reference_joints = ["leftShoulder", "leftHip"]\n'
    )

    config = load_render_config(path)

    assert config.image_node_size == (2.0, 1.0)
    assert config.input_image_alpha == 0.5
    assert config.reference_joints == (JointName.LEFT_SHOULDER, JointName.LEFT_HIP)
    assert config.bone_width == RenderConfig().bone_width


def test_file_without_render_table_gives_defaults(tmp_path):
    path = tmp_path / "empty.toml"
    path.write_text("[other]\nvalue = 1\n")

    assert load_render_config(path) == RenderConfig()


def test_unknown_key_is_rejected():
    with pytest.raises(ValueError, match="bone_colour"):
        config_from_mapping({"bone_colour": "red"})


def test_alpha_out_of_range_is_rejected():
    with pytest.raises(ValueError):
        RenderConfig(input_image_alpha=1.5)


def test_replace_returns_copy():
    config = RenderConfig()
    changed = config.replace(bone_width=0.1)

    assert changed.bone_width == 0.1
    assert config.bone_width == 0.05
