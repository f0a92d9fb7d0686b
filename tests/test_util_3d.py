import threading

import pytest

try:
    from lib_pose3d import util_3d
except Exception as exc:  # pyglet needs a windowing library to import
    pytest.skip(f"pyglet unavailable: {exc}", allow_module_level=True)

from lib_pose3d.compose import compose_scene  # noqa: E402


class _VertexList:
    def __init__(self):
        self.deleted = False

    def delete(self):
        self.deleted = True


class _Shader:
    def vertex_list(self, count, mode, **kwargs):
        return _VertexList()


@pytest.fixture
def counted_tessellation(monkeypatch):
    calls = []
    real = util_3d.tessellate_scene

    def counting(scene, subdivisions=1):
        calls.append(subdivisions)
        return real(scene, subdivisions)

    monkeypatch.setattr(util_3d, "tessellate_scene", counting)
    monkeypatch.setattr(util_3d.pyglet.graphics, "get_default_shader", lambda: _Shader())
    return calls


def _offscreen_surface():
    surface = util_3d.PygletSceneSurface.__new__(util_3d.PygletSceneSurface)
    surface.batch = object()
    surface.visuals = None
    surface._subdivisions = 8
    surface._pending = None
    surface._pending_lock = threading.Lock()
    surface._scene = None
    return surface


def test_scene_swap_tessellates_once(counted_tessellation, full_observation):
    surface = _offscreen_surface()
    scene = compose_scene(full_observation).scene

    surface.set_scene(scene)
    surface._update(0.0)

    assert counted_tessellation == [8]
    assert surface._scene is scene
    assert len(surface.visuals.entries) == len(surface.visuals.soups)
    assert surface._distance >= 1.0


def test_replaced_scene_releases_vertex_lists(
    counted_tessellation, full_observation, torso_observation
):
    surface = _offscreen_surface()
    surface.set_scene(compose_scene(full_observation).scene)
    surface._update(0.0)
    old_lists = list(surface.visuals.entries.values())

    surface.set_scene(compose_scene(torso_observation).scene)
    surface._update(0.0)

    assert all(vertex_list.deleted for vertex_list in old_lists)
    assert len(counted_tessellation) == 2
