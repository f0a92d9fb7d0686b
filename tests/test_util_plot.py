import matplotlib

matplotlib.use("Agg")

from lib_pose3d.compose import compose_scene  # noqa: E402
from lib_pose3d.util_plot import MatplotlibSnapshotSurface  # noqa: E402


def test_snapshot_is_written(full_observation, tmp_path):
    output = tmp_path / "scene.png"
    surface = MatplotlibSnapshotSurface(output, size_px=200)

    composed = compose_scene(full_observation)
    surface.set_scene(composed.scene)

    assert output.exists()
    # top of head is hidden, the camera indicator takes its place
    assert len(surface.visuals.collections) == len(composed.joint_nodes)


def test_new_scene_replaces_old_artists(full_observation, torso_observation):
    surface = MatplotlibSnapshotSurface(size_px=200)

    surface.set_scene(compose_scene(full_observation).scene)
    surface.set_scene(compose_scene(torso_observation).scene)

    assert len(surface.ax.collections) == len(surface.visuals.collections)
