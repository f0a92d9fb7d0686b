"""4x4 homogeneous transform helpers.

All matrices act on column vectors, so ``a @ b`` applies ``b`` first.
"""

from __future__ import annotations

import logging
from typing import Sequence, TypeAlias

import numpy as np
from numpy.typing import NDArray
from scipy.spatial.transform import Rotation

logger = logging.getLogger(__name__)

Matrix4: TypeAlias = NDArray[np.float64]
Vector3: TypeAlias = NDArray[np.float64]


def identity() -> Matrix4:
    return np.eye(4, dtype=np.float64)


def as_matrix4(matrix: Sequence[Sequence[float]] | np.ndarray) -> Matrix4:
    """Return ``matrix`` as a float64 4x4 array, raising on any other shape."""

    out = np.array(matrix, dtype=np.float64)
    if out.shape != (4, 4):
        raise ValueError(f"Expected a 4x4 matrix, got shape {out.shape}.")
    return out


def _embed(rotation: np.ndarray) -> Matrix4:
    out = identity()
    out[:3, :3] = rotation
    return out


def rotation_x(angle: float) -> Matrix4:
    return _embed(Rotation.from_euler("x", angle).as_matrix())


def rotation_y(angle: float) -> Matrix4:
    return _embed(Rotation.from_euler("y", angle).as_matrix())


def rotation_z(angle: float) -> Matrix4:
    return _embed(Rotation.from_euler("z", angle).as_matrix())


def translation(vector: Sequence[float] | np.ndarray) -> Matrix4:
    out = identity()
    out[:3, 3] = np.asarray(vector, dtype=np.float64)[:3]
    return out


def translation_vector(matrix: np.ndarray) -> Vector3:
    """Translation column of a homogeneous transform."""

    return np.array(matrix[:3, 3], dtype=np.float64)


def rotation_only(matrix: np.ndarray) -> Matrix4:
    """Copy of ``matrix`` with its translation column reset to ``(0, 0, 0, 1)``."""

    out = as_matrix4(matrix)
    out[:, 3] = (0.0, 0.0, 0.0, 1.0)
    return out


def euler_rotation(pitch: float, yaw: float, roll: float) -> Matrix4:
    """Rotation for Euler angles ``(pitch, yaw, roll)`` about X, Y and Z.

    Roll is applied first, then yaw, then pitch: ``Rx(pitch) @ Ry(yaw) @ Rz(roll)``.
    """

    return _embed(Rotation.from_euler("XYZ", [pitch, yaw, roll]).as_matrix())


def euler_angles(matrix: np.ndarray) -> Vector3:
    """Inverse of :func:`euler_rotation` for the upper-left 3x3 block."""

    rotation = np.asarray(matrix, dtype=np.float64)[:3, :3]
    return Rotation.from_matrix(rotation).as_euler("XYZ")


def safe_inverse(matrix: np.ndarray) -> Matrix4:
    """Inverse of ``matrix``; a singular matrix falls back to the identity."""

    try:
        return np.linalg.inv(as_matrix4(matrix))
    except np.linalg.LinAlgError:
        logger.warning("Singular transform; using identity instead.")
        return identity()


def transform_points(matrix: np.ndarray, points: np.ndarray) -> np.ndarray:
    """Apply ``matrix`` to an (N, 3) point array."""

    pts = np.asarray(points, dtype=np.float64).reshape(-1, 3)
    homogeneous = np.hstack([pts, np.ones((pts.shape[0], 1))])
    return (homogeneous @ np.asarray(matrix, dtype=np.float64).T)[:, :3]


__all__ = [
    "Matrix4",
    "Vector3",
    "identity",
    "as_matrix4",
    "rotation_x",
    "rotation_y",
    "rotation_z",
    "translation",
    "translation_vector",
    "rotation_only",
    "euler_rotation",
    "euler_angles",
    "safe_inverse",
    "transform_points",
]
