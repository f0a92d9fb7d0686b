"""Exceptions raised while reconstructing a pose scene."""

from __future__ import annotations

from enum import Enum
from typing import Any


class Pose3DError(Exception):
    """Base class for every error raised by :mod:`lib_pose3d`."""


class KinematicTreeError(Pose3DError):
    """The parent-of relation is not a single-rooted, acyclic tree."""


class MissingJointError(Pose3DError, KeyError):
    """A joint was requested that the detector did not report."""

    def __init__(self, joint: Any, what: str = "point") -> None:
        self.joint = joint
        self.what = what
        super().__init__(f"no {what} recognized for joint {joint!s}")

    def __str__(self) -> str:
        # KeyError quotes its argument; keep the plain message instead.
        return str(self.args[0])


class DetectionFailure(str, Enum):
    FILE_MISSING = "file_missing"
    INVALID_IMAGE = "invalid_image"
    ENGINE_ERROR = "engine_error"


class DetectionError(Pose3DError):
    """Detection could not produce an observation for an image."""

    def __init__(self, reason: DetectionFailure, message: str) -> None:
        self.reason = reason
        super().__init__(message)


__all__ = [
    "Pose3DError",
    "KinematicTreeError",
    "MissingJointError",
    "DetectionFailure",
    "DetectionError",
]
