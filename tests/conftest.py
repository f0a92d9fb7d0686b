from typing import Dict, Mapping, Optional, Tuple

import numpy as np
import pytest

from lib_pose3d.data import KINEMATIC_TREE, JointName, Observation, RecognizedPoint
from lib_pose3d.transforms import identity, translation


def make_observation(
    positions: Mapping[JointName, Tuple[float, float, float]],
    image_points: Optional[Mapping[JointName, Tuple[float, float]]] = None,
    camera: Optional[np.ndarray] = None,
    local_translations: Optional[Mapping[JointName, Tuple[float, float, float]]] = None,
) -> Observation:
    """Observation whose local positions are offsets from the detected parent."""

    local_translations = dict(local_translations or {})
    points: Dict[JointName, RecognizedPoint] = {}
    for joint, position in positions.items():
        pos = np.asarray(position, dtype=np.float64)
        if joint in local_translations:
            local = np.asarray(local_translations[joint], dtype=np.float64)
        else:
            parent = KINEMATIC_TREE[joint]
            if parent is not None and parent in positions:
                local = pos - np.asarray(positions[parent], dtype=np.float64)
            else:
                local = pos
        points[joint] = RecognizedPoint(
            position=translation(pos), local_position=translation(local)
        )
    return Observation(
        points=points,
        image_points=dict(image_points or {}),
        camera_origin_matrix=identity() if camera is None else camera,
    )


@pytest.fixture
def torso_observation() -> Observation:
    """root, spine and centerShoulder only."""

    return make_observation(
        {
            JointName.ROOT: (0.0, 0.0, 0.0),
            JointName.SPINE: (0.0, 0.25, 0.0),
            JointName.CENTER_SHOULDER: (0.0, 0.5, 0.0),
        },
        image_points={
            JointName.ROOT: (0.5, 0.4),
            JointName.SPINE: (0.5, 0.5),
            JointName.CENTER_SHOULDER: (0.5, 0.6),
        },
        camera=translation((0.0, 0.0, 3.0)),
    )


@pytest.fixture
def full_observation() -> Observation:
    """All 17 joints in a loose standing pose."""

    positions = {
        JointName.ROOT: (0.0, 0.0, 0.0),
        JointName.SPINE: (0.0, 0.25, 0.0),
        JointName.CENTER_SHOULDER: (0.0, 0.5, 0.0),
        JointName.CENTER_HEAD: (0.0, 0.65, 0.0),
        JointName.TOP_HEAD: (0.0, 0.75, 0.0),
        JointName.LEFT_SHOULDER: (0.18, 0.5, 0.0),
        JointName.LEFT_ELBOW: (0.25, 0.25, 0.0),
        JointName.LEFT_WRIST: (0.3, 0.0, 0.05),
        JointName.RIGHT_SHOULDER: (-0.18, 0.5, 0.0),
        JointName.RIGHT_ELBOW: (-0.25, 0.25, 0.0),
        JointName.RIGHT_WRIST: (-0.3, 0.0, 0.05),
        JointName.LEFT_HIP: (0.1, 0.0, 0.0),
        JointName.LEFT_KNEE: (0.12, -0.4, 0.02),
        JointName.LEFT_ANKLE: (0.12, -0.8, 0.0),
        JointName.RIGHT_HIP: (-0.1, 0.0, 0.0),
        JointName.RIGHT_KNEE: (-0.12, -0.4, 0.02),
        JointName.RIGHT_ANKLE: (-0.12, -0.8, 0.0),
    }
    image_points = {
        joint: (0.5 + x * 0.4, 0.45 + y * 0.4) for joint, (x, y, _z) in positions.items()
    }
    return make_observation(positions, image_points=image_points)
