import numpy as np

from lib_pose3d.scene import Box, Material, Plane, Scene, SceneNode
from lib_pose3d.tessellate import scene_bounds, tessellate_node, tessellate_scene


def test_box_node_is_placed_in_world():
    scene = Scene()
    scene.root_node.add_child(
        SceneNode(Box(1.0, 1.0, 1.0, material=Material(color=(1, 0, 0, 1))), position=(5, 0, 0))
    )

    soups = tessellate_scene(scene)

    assert len(soups) == 1
    assert soups[0].triangles.shape == (12, 3, 3)
    np.testing.assert_allclose(soups[0].triangles[..., 0].min(), 4.5)
    np.testing.assert_allclose(soups[0].colors[0], (1, 0, 0, 1))


def test_hidden_and_empty_nodes_are_skipped():
    hidden = SceneNode(Box(1.0, 1.0, 1.0))
    hidden.hidden = True

    assert tessellate_node(hidden) is None
    assert tessellate_node(SceneNode()) is None


def test_opacity_scales_alpha():
    node = SceneNode(Box(1.0, 1.0, 1.0))
    node.opacity = 0.6

    soup = tessellate_node(node)

    np.testing.assert_allclose(soup.colors[:, 3], 0.6)


def test_texture_is_sampled_upright():
    image = np.zeros((2, 2, 3), dtype=np.uint8)
    image[0, :] = (255, 0, 0)  # top row
    image[1, :] = (0, 0, 255)  # bottom row
    node = SceneNode(Plane(2.0, 2.0, material=Material(texture=image)))

    soup = tessellate_node(node, subdivisions=2)

    centroid_y = soup.triangles[:, :, 1].mean(axis=1)
    top = soup.colors[centroid_y > 0]
    bottom = soup.colors[centroid_y < 0]
    np.testing.assert_allclose(top[:, :3], np.tile((1.0, 0.0, 0.0), (len(top), 1)))
    np.testing.assert_allclose(bottom[:, :3], np.tile((0.0, 0.0, 1.0), (len(bottom), 1)))


def test_bounds_of_empty_scene():
    center, radius = scene_bounds([])

    np.testing.assert_allclose(center, (0.0, 0.0, 0.0))
    assert radius == 1.0
